# relaychat/api/v1/routes/users.py
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from relaychat.core.schemas.auth import UserResponse
from relaychat.core.utils import get_auth_service, get_current_user
from relaychat.models.media import MediaType
from relaychat.models.user import User
from relaychat.services.auth_service import AuthService
from relaychat.services.uploads import discard_upload, save_upload

router = APIRouter(tags=["users"])


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Все пользователи (публичные поля + аватар)"""
    return await auth_service.user_repository.list_all()


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    password: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    bio: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Изменение username / bio / аватара. Требует текущий пароль"""
    upload = await save_upload(avatar, MediaType.AVATAR)
    try:
        return await auth_service.update_profile(current_user, password, username, bio, upload)
    except Exception:
        await discard_upload(upload)
        raise
