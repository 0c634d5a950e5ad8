# relaychat/models/message.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .base import Base


class MessageType:
    GLOBAL = "global"
    DIRECT = "direct"


class Message(Base):
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Без внешнего ключа: получатель не проверяется при записи (NULL = общий чат)
    recipient_id = Column(Integer, nullable=True, index=True)

    content = Column(Text, nullable=False, default="")
    attachment_id = Column(Integer, ForeignKey("media.id", ondelete="SET NULL"), nullable=True)
    type = Column(String, nullable=False, default=MessageType.GLOBAL)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    sender = relationship("User", foreign_keys=[sender_id], lazy="selectin")
    recipient = relationship(
        "User",
        primaryjoin="foreign(Message.recipient_id) == User.id",
        viewonly=True,
        lazy="selectin",
    )
    attachment = relationship("Media", foreign_keys=[attachment_id], lazy="selectin")

    def __repr__(self):
        return f"<Message(id={self.id}, sender={self.sender_id}, recipient={self.recipient_id})>"
