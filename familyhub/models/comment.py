# familyhub/models/comment.py

from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from familyhub.database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id = Column(String, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)

    # Threaded replies point at a comment on the same post
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # -------------------------
    # RELATIONSHIPS
    # -------------------------

    author = relationship(
        "User",
        foreign_keys=[user_id],
        lazy="joined",
    )

    replies = relationship(
        "Comment",
        foreign_keys=[parent_id],
        order_by="Comment.created_at",
        viewonly=True,
    )
