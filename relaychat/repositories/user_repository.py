# relaychat/repositories/user_repository.py
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from relaychat.models.user import User
from relaychat.core.exceptions import DuplicateError


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        """Получить пользователя по email"""
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Получить пользователя по ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_all(self) -> List[User]:
        stmt = select(User).order_by(User.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """Создать нового пользователя"""
        db_user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(db_user)
        await self._commit("User with this email or username already exists")
        await self.session.refresh(db_user)
        return db_user

    async def update_profile(
        self,
        user: User,
        username: Optional[str],
        bio: Optional[str],
        avatar_id: Optional[int] = None,
    ) -> User:
        """Обновить профиль. Аватар (если есть) уже добавлен в текущую транзакцию"""
        if username:
            user.username = username
        if bio is not None:
            user.bio = bio
        if avatar_id is not None:
            user.avatar_id = avatar_id
        user.updated_at = datetime.now(timezone.utc)

        await self._commit("Username is already taken")
        await self.session.refresh(user, attribute_names=["avatar"])
        return user

    async def _commit(self, duplicate_detail: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise DuplicateError(duplicate_detail)
