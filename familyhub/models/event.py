from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from datetime import datetime
import uuid

from familyhub.database import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    family_id = Column(String, ForeignKey("families.id"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(String, nullable=True)

    start_date = Column(DateTime, nullable=True, index=True)
    end_date = Column(DateTime, nullable=True)

    # { name, address, coordinates }
    location = Column(JSON, nullable=True)
    category = Column(String, nullable=False, default="general")  # general | birthday | holiday | appointment | social | other

    # { frequency, interval, endDate }
    recurring = Column(JSON, nullable=True)
    # [ { type, time } ]
    reminders = Column(JSON, nullable=True)

    created_by = Column(String, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
