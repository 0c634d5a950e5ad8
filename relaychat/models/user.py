# relaychat/models/user.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
import enum
from .base import Base


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    role = Column(String, default=UserRole.USER.value)

    # Слабая ссылка: удаление пользователя не трогает Media
    avatar_id = Column(Integer, ForeignKey("media.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    avatar = relationship("Media", foreign_keys=[avatar_id], lazy="selectin")

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"

    def __str__(self):
        return self.username
