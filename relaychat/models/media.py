# relaychat/models/media.py
from sqlalchemy import Column, Integer, String, DateTime, func
from .base import Base


class MediaType:
    AVATAR = "avatar"
    ATTACHMENT = "attachment"


class Media(Base):
    """Описание загруженного файла. Не изменяется после создания"""
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True)
    hash = Column(String, nullable=False)    # ключ в хранилище (имя файла)
    type = Column(String, nullable=False)    # avatar / attachment
    format = Column(String, nullable=True)   # MIME тип

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Media(id={self.id}, type={self.type}, hash={self.hash})>"

    def __str__(self):
        return self.hash
