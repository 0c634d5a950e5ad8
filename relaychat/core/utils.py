# relaychat/core/utils.py
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from relaychat.core.database import db_helper
from relaychat.repositories.user_repository import UserRepository
from relaychat.services.auth_service import AuthService
from relaychat.services.dispatcher import DeliveryDispatcher, dispatcher
from relaychat.services.message_service import MessagePipeline
from relaychat.services.ws_manager import ConnectionRegistry, registry
from relaychat.models.user import User
import logging

logger = logging.getLogger(__name__)

# auto_error=False: отсутствие токена обрабатывается AuthService как AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login", auto_error=False)


async def get_auth_service(
    session: AsyncSession = Depends(db_helper.session_getter)
) -> AuthService:
    return AuthService(UserRepository(session))


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Зависимость для получения текущего пользователя из токена"""
    return await auth_service.get_current_user(token)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return db_helper.session_factory


def get_registry() -> ConnectionRegistry:
    return registry


def get_dispatcher() -> DeliveryDispatcher:
    return dispatcher


async def get_message_pipeline(
    session: AsyncSession = Depends(db_helper.session_getter),
    delivery: DeliveryDispatcher = Depends(get_dispatcher),
) -> MessagePipeline:
    return MessagePipeline(session, delivery)
