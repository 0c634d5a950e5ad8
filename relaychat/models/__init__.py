# relaychat/models/__init__.py
from .base import Base
from .user import User, UserRole
from .media import Media, MediaType
from .message import Message, MessageType

__all__ = [
    "Base",
    "User", "UserRole",
    "Media", "MediaType",
    "Message", "MessageType",
]
