# relaychat/services/attachments.py
from sqlalchemy.ext.asyncio import AsyncSession
from relaychat.core.exceptions import ValidationError
from relaychat.core.schemas.chat import UploadMetadata
from relaychat.models.media import Media
from relaychat.repositories.media_repository import MediaRepository


class AttachmentRegistrar:
    """
    Создает запись Media по метаданным загрузки.

    Запись только добавляется в текущую транзакцию (flush), поэтому она
    фиксируется или откатывается вместе с сообщением / профилем, который на
    нее ссылается.
    """

    def __init__(self, session: AsyncSession):
        self.media_repository = MediaRepository(session)

    async def register(self, upload: UploadMetadata) -> Media:
        if not upload.hash:
            raise ValidationError("Attachment upload has no storage key")
        return await self.media_repository.add(upload.hash, upload.type, upload.format)
