# relaychat/services/uploads.py
import secrets
from pathlib import Path
from typing import Optional
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool
from relaychat.core.config import settings
from relaychat.core.schemas.chat import UploadMetadata
import logging

logger = logging.getLogger(__name__)


async def save_upload(upload: Optional[UploadFile], category: str) -> Optional[UploadMetadata]:
    """
    Сохраняет файл в MEDIA__UPLOAD_DIR под случайным именем.

    None - файла в запросе нет. Часть формы без имени файла дает метаданные
    с пустым ключом, их отклонит AttachmentRegistrar.
    """
    if upload is None:
        return None

    if not upload.filename:
        return UploadMetadata(hash=None, type=category, format=upload.content_type)

    upload_dir = Path(settings.media.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    stored_name = secrets.token_hex(16) + Path(upload.filename).suffix.lower()
    data = await upload.read()
    await run_in_threadpool((upload_dir / stored_name).write_bytes, data)
    logger.info(f"Stored {category} upload {upload.filename!r} as {stored_name} ({len(data)} bytes)")

    return UploadMetadata(hash=stored_name, type=category, format=upload.content_type)


async def discard_upload(upload: Optional[UploadMetadata]) -> None:
    """Удаляет файл, для которого так и не появилась запись Media"""
    if upload is None or not upload.hash:
        return
    path = Path(settings.media.UPLOAD_DIR) / upload.hash
    await run_in_threadpool(path.unlink, missing_ok=True)
    logger.info(f"Discarded orphaned upload {upload.hash}")
