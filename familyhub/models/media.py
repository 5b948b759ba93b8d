from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, JSON
from datetime import datetime
import uuid

from familyhub.database import Base


class Media(Base):
    __tablename__ = "media"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # File info
    url = Column(String, nullable=False, index=True)
    thumb_url = Column(String, nullable=True)
    type = Column(String, nullable=False, index=True)  # image / video / document / audio
    name = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    mime_type = Column(String, nullable=False)

    # "metadata" is reserved on declarative classes
    media_metadata = Column("metadata", JSON, nullable=False, default=dict)

    uploaded_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
