# familyhub/models/post.py

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from familyhub.database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)

    media_urls = Column(JSON, nullable=False, default=list)
    type = Column(String, nullable=False, default="regular")  # regular | memory | milestone | announcement
    privacy = Column(String, nullable=False, default="family")  # family | public | private
    tags = Column(JSON, nullable=False, default=list)
    location = Column(JSON, nullable=True)

    created_by = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # -------------------------
    # RELATIONSHIPS (read-only, join rows are written directly)
    # -------------------------

    author = relationship(
        "User",
        foreign_keys=[created_by],
        lazy="joined",
    )

    families = relationship(
        "Family",
        secondary="post_families",
        viewonly=True,
    )

    events = relationship(
        "Event",
        secondary="post_events",
        viewonly=True,
    )


class PostFamily(Base):
    __tablename__ = "post_families"
    __table_args__ = (
        UniqueConstraint("post_id", "family_id", name="uq_post_family"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String, ForeignKey("posts.id"), nullable=False, index=True)
    family_id = Column(String, ForeignKey("families.id"), nullable=False, index=True)


class PostEvent(Base):
    __tablename__ = "post_events"
    __table_args__ = (
        UniqueConstraint("post_id", "event_id", name="uq_post_event"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String, ForeignKey("posts.id"), nullable=False, index=True)
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)
