# relaychat/services/message_service.py
from typing import List, Optional, Union
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from relaychat.core.config import settings
from relaychat.core.exceptions import AuthenticationError, InvalidRecipientError, DispatchFailure
from relaychat.core.schemas.chat import ConversationMessage, MessageResponse, UploadMetadata, UserBrief
from relaychat.models.message import Message
from relaychat.models.user import User
from relaychat.repositories.message_repository import MessageRepository
from relaychat.repositories.user_repository import UserRepository
from relaychat.services.attachments import AttachmentRegistrar
from relaychat.services.dispatcher import DeliveryDispatcher

logger = logging.getLogger(__name__)


def parse_user_id(raw: Union[str, int, None]) -> int:
    """Идентификатор пользователя из пути запроса: только положительное целое"""
    if isinstance(raw, bool):
        raise InvalidRecipientError()
    try:
        user_id = int(str(raw).strip())
    except (TypeError, ValueError):
        raise InvalidRecipientError()
    if user_id <= 0:
        raise InvalidRecipientError()
    return user_id


class MessagePipeline:
    """
    Отправка сообщения: контекст -> валидация -> вложение -> запись -> рассылка.

    Рассылка выполняется только после успешного коммита и никогда его не
    откатывает: история в БД - источник истины, live-доставка best-effort.
    """

    def __init__(
        self,
        session: AsyncSession,
        dispatcher: DeliveryDispatcher,
        enforce_recipient_exists: Optional[bool] = None,
    ):
        self.session = session
        self.messages = MessageRepository(session)
        self.users = UserRepository(session)
        self.registrar = AttachmentRegistrar(session)
        self.dispatcher = dispatcher
        if enforce_recipient_exists is None:
            enforce_recipient_exists = settings.chat.ENFORCE_RECIPIENT_EXISTS
        self.enforce_recipient_exists = enforce_recipient_exists

    async def submit_message(
        self,
        user: Optional[User],
        content: Optional[str],
        recipient: Union[str, int, None] = None,
        attachment: Optional[UploadMetadata] = None,
    ) -> Message:
        if user is None:
            raise AuthenticationError()

        recipient_id = None
        if recipient is not None:
            recipient_id = parse_user_id(recipient)
            if self.enforce_recipient_exists and not await self.users.get_by_id(recipient_id):
                raise InvalidRecipientError()

        attachment_id = None
        if attachment is not None:
            media = await self.registrar.register(attachment)
            attachment_id = media.id

        message = await self.messages.create(
            sender_id=user.id,
            content=content or "",
            recipient_id=recipient_id,
            attachment_id=attachment_id,
        )
        logger.info(f"Message {message.id} stored ({message.type}) from user {user.id}")

        payload = MessageResponse.from_message(message).model_dump(mode="json")
        try:
            # Отмена запроса после коммита не отменяет рассылку
            await asyncio.shield(self.dispatcher.dispatch(payload))
        except DispatchFailure as e:
            logger.error(f"Live delivery of message {message.id} failed: {e.detail}")
        except Exception:
            logger.exception(f"Unexpected error while dispatching message {message.id}")

        return message

    async def list_messages(
        self,
        user: Optional[User],
        counterpart: Union[str, int],
    ) -> List[ConversationMessage]:
        if user is None:
            raise AuthenticationError()
        counterpart_id = parse_user_id(counterpart)

        messages = await self.messages.list_conversation(user.id, counterpart_id)
        return [self._with_counterpart(message, user.id) for message in messages]

    @staticmethod
    def _with_counterpart(message: Message, user_id: int) -> ConversationMessage:
        other = message.recipient if message.sender_id == user_id else message.sender
        return ConversationMessage(
            **MessageResponse.from_message(message).model_dump(),
            counterpart=UserBrief.model_validate(other) if other is not None else None,
        )
