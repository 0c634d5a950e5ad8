# relaychat/core/schemas/chat.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class MediaSchema(BaseModel):
    id: int
    hash: str
    type: str
    format: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    """Минимальная проекция профиля собеседника"""
    id: int
    username: str
    email: str
    bio: Optional[str] = None
    avatar_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class UploadMetadata(BaseModel):
    """Результат обработки загруженного файла: (ключ, категория, формат)"""
    hash: Optional[str] = None
    type: str
    format: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    sender: int
    recipient: Optional[int] = None
    content: str
    type: str
    attachment: Optional[MediaSchema] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_message(cls, message) -> "MessageResponse":
        return cls(
            id=message.id,
            sender=message.sender_id,
            recipient=message.recipient_id,
            content=message.content or "",
            type=message.type,
            attachment=MediaSchema.model_validate(message.attachment) if message.attachment else None,
            created_at=message.created_at,
        )


class ConversationMessage(MessageResponse):
    counterpart: Optional[UserBrief] = None
