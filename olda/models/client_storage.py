# olda/models/client_storage.py
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text
from olda.db import Base


class ClientStorageEntry(Base):
    """Одна запись key-value хранилища (очередь PRT, todo и картинки карточек)."""
    __tablename__ = "client_storage"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
