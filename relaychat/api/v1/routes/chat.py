# relaychat/api/v1/routes/chat.py
from typing import List, Optional, Union
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from relaychat.core.schemas.chat import ConversationMessage, MessageResponse
from relaychat.core.utils import get_current_user, get_message_pipeline
from relaychat.models.media import MediaType
from relaychat.models.user import User
from relaychat.services.message_service import MessagePipeline, parse_user_id
from relaychat.services.uploads import discard_upload, save_upload

router = APIRouter(tags=["chat"])


async def _submit(
    pipeline: MessagePipeline,
    user: User,
    content: str,
    attachment: Optional[UploadFile],
    recipient: Union[int, None] = None,
) -> MessageResponse:
    upload = await save_upload(attachment, MediaType.ATTACHMENT)
    try:
        message = await pipeline.submit_message(user, content, recipient, upload)
    except Exception:
        # Сообщение не записано - файл на диске никому не нужен
        await discard_upload(upload)
        raise
    return MessageResponse.from_message(message)


@router.post("/chat/global", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_global_message(
    content: str = Form(""),
    attachment: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    pipeline: MessagePipeline = Depends(get_message_pipeline),
):
    """Сообщение в общий чат: рассылается всем подключенным"""
    return await _submit(pipeline, current_user, content, attachment)


# Объявлен после /chat/global, иначе "global" попадет в recipient_id
@router.post("/chat/{recipient_id}", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_direct_message(
    recipient_id: str,
    content: str = Form(""),
    attachment: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    pipeline: MessagePipeline = Depends(get_message_pipeline),
):
    """Личное сообщение. Существование получателя не проверяется (см. CHAT__ENFORCE_RECIPIENT_EXISTS)"""
    recipient = parse_user_id(recipient_id)
    return await _submit(pipeline, current_user, content, attachment, recipient)


@router.get("/messages/{counterpart_id}", response_model=List[ConversationMessage])
async def list_conversation(
    counterpart_id: str,
    current_user: User = Depends(get_current_user),
    pipeline: MessagePipeline = Depends(get_message_pipeline),
):
    """История личной переписки с пользователем, по возрастанию времени"""
    return await pipeline.list_messages(current_user, counterpart_id)
