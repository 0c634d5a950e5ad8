# relaychat/api/v1/routes/auth.py
from fastapi import APIRouter, Depends, status, Request
from relaychat.core.config import settings
from relaychat.core.schemas.auth import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    AuthResponse,
    RefreshTokenRequest,
)
from relaychat.core.utils import get_auth_service, get_current_user
from relaychat.services.auth_service import AuthService
from relaychat.models.user import User
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

logger = logging.getLogger(__name__)

# Rate limiter (in-memory; в продакшене можно подключить Redis через storage_uri)
limiter = Limiter(key_func=get_remote_address, enabled=settings.security.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.security.RATE_LIMIT_REGISTER)
async def register_user(
    request: Request,
    user_create: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Регистрация нового пользователя"""
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Registration attempt from IP: {client_ip} for email: {user_create.email}")

    user, token = await auth_service.register_user(user_create)
    return AuthResponse(**token.model_dump(), user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.security.RATE_LIMIT_LOGIN)
async def login(
    request: Request,
    credentials: UserLogin,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Логин пользователя и получение токенов"""
    client_ip = request.client.host if request.client else "unknown"
    logger.info(f"Login attempt from IP: {client_ip} for email: {credentials.email}")

    user, token = await auth_service.authenticate_user(credentials)
    return AuthResponse(**token.model_dump(), user=UserResponse.model_validate(user))


@router.post("/refresh", response_model=Token)
async def refresh_access_token(
    refresh_request: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Обновление access token с помощью refresh token"""
    return await auth_service.refresh_tokens(refresh_request.refresh_token)


@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
