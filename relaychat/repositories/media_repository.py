# relaychat/repositories/media_repository.py
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from relaychat.models.media import Media


class MediaRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, hash: str, type: str, format: Optional[str]) -> Media:
        """Добавить запись Media без коммита (коммитит вызывающая сторона)"""
        media = Media(
            hash=hash,
            type=type,
            format=format,
            created_at=datetime.now(timezone.utc),
        )
        self.session.add(media)
        await self.session.flush()
        return media
