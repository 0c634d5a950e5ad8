# relaychat/core/schemas/auth.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from relaychat.core.schemas.chat import MediaSchema


class UserCreate(BaseModel):
    # Обязательность полей проверяется в сервисе, чтобы отдавать 400 с понятным текстом
    username: Optional[str] = Field(None, description="Unique username")
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="User password")


class UserLogin(BaseModel):
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="User password")


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Refresh token for getting new access token")


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    bio: Optional[str] = None
    avatar_id: Optional[int] = None
    avatar: Optional[MediaSchema] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token expiration time in seconds")


class AuthResponse(Token):
    user: UserResponse
