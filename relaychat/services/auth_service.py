# relaychat/services/auth_service.py
from typing import Tuple, Optional
from datetime import timedelta
from relaychat.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    create_refresh_token,
    decode_token
)
from relaychat.repositories.user_repository import UserRepository
from relaychat.core.schemas.auth import UserCreate, UserLogin, Token
from relaychat.core.schemas.chat import UploadMetadata
from relaychat.core.config import settings
from relaychat.core.exceptions import AuthenticationError, ValidationError, DuplicateError
from relaychat.services.attachments import AttachmentRegistrar
from relaychat.models.user import User
import logging

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field: str) -> str:
    if not value:
        raise ValidationError(f"{field} is required")
    return value


class AuthService:
    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository

    async def register_user(self, user_create: UserCreate) -> Tuple[User, Token]:
        """Регистрация нового пользователя"""
        username = _require(user_create.username, "Username")
        email = _require(user_create.email, "Email")
        password = _require(user_create.password, "Password")

        if await self.user_repository.get_by_email(email):
            raise DuplicateError("User with this email already exists")
        if await self.user_repository.get_by_username(username):
            raise DuplicateError("User with this username already exists")

        user = await self.user_repository.create(username, email, get_password_hash(password))
        logger.info(f"Registered user ID: {user.id}")
        return user, self._generate_tokens(user.id)

    async def authenticate_user(self, credentials: UserLogin) -> Tuple[User, Token]:
        """Вход по email и паролю"""
        email = _require(credentials.email, "Email")
        password = _require(credentials.password, "Password")

        user = await self.user_repository.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email/password")

        return user, self._generate_tokens(user.id)

    async def refresh_tokens(self, refresh_token: str) -> Token:
        """Обновление access token с помощью refresh token"""
        user = await self._resolve(refresh_token, expected_type="refresh")
        return self._generate_tokens(user.id)

    async def get_current_user(self, token: Optional[str]) -> User:
        """
        Контекст сессии: проверяет токен и загружает пользователя (вместе с аватаром).
        Только чтение, ничего не пишет.
        """
        return await self._resolve(token, expected_type="access")

    async def update_profile(
        self,
        user: User,
        password: Optional[str],
        username: Optional[str],
        bio: Optional[str],
        avatar: Optional[UploadMetadata] = None,
    ) -> User:
        """Изменение профиля. Требует текущий пароль"""
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid password")

        if username and username != user.username and await self.user_repository.get_by_username(username):
            raise DuplicateError("Username is already taken")

        avatar_id = None
        # Пустая часть формы (filename="") - аватар не менялся
        if avatar is not None and avatar.hash:
            registrar = AttachmentRegistrar(self.user_repository.session)
            media = await registrar.register(avatar)
            avatar_id = media.id

        return await self.user_repository.update_profile(user, username, bio, avatar_id)

    async def _resolve(self, token: Optional[str], expected_type: str) -> User:
        if not token:
            raise AuthenticationError("Invalid token")
        if token.startswith("Bearer "):
            token = token.split(" ", 1)[1]

        try:
            payload = decode_token(token)
        except ValueError as e:
            raise AuthenticationError(str(e))

        if payload.get("type") != expected_type:
            raise AuthenticationError("Invalid token type for this operation")

        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid token payload")

        user = await self.user_repository.get_by_id(user_id)
        if not user:
            raise AuthenticationError("Invalid token")
        return user

    def _generate_tokens(self, user_id: int) -> Token:
        """Генерация пары access/refresh токенов"""
        access_token_expires = timedelta(
            minutes=settings.security.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
        )
        return Token(
            access_token=create_access_token(user_id, access_token_expires),
            refresh_token=create_refresh_token(user_id),
            expires_in=int(access_token_expires.total_seconds())
        )
