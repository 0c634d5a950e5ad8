# relaychat/repositories/message_repository.py
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from relaychat.models.message import Message, MessageType
from relaychat.core.exceptions import PersistenceError
import logging

logger = logging.getLogger(__name__)


class MessageRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        sender_id: int,
        content: str,
        recipient_id: Optional[int] = None,
        attachment_id: Optional[int] = None,
    ) -> Message:
        """Записать сообщение одной транзакцией (вместе с уже добавленным вложением)"""
        message = Message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            attachment_id=attachment_id,
            type=MessageType.GLOBAL if recipient_id is None else MessageType.DIRECT,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(message)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Message insert rejected: {e}")
            raise PersistenceError("Could not save message")

        await self.session.refresh(message, attribute_names=["sender", "recipient", "attachment"])
        return message

    async def list_conversation(self, user_id: int, counterpart_id: int) -> List[Message]:
        """Личные сообщения между двумя пользователями в обе стороны, по возрастанию времени"""
        stmt = (
            select(Message)
            .where(
                or_(
                    and_(Message.sender_id == user_id, Message.recipient_id == counterpart_id),
                    and_(Message.sender_id == counterpart_id, Message.recipient_id == user_id),
                )
            )
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
