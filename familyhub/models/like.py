from typing import Literal, NamedTuple

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Index
from datetime import datetime
import uuid

from familyhub.database import Base


class LikeTarget(NamedTuple):
    """The thing a like points at: a post or a comment."""

    kind: Literal["post", "comment"]
    id: str

    @classmethod
    def post(cls, post_id: str) -> "LikeTarget":
        return cls("post", post_id)


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        # One reaction per user per target
        UniqueConstraint("user_id", "target_type", "target_id", name="uq_like_user_target"),
        Index("ix_likes_target", "target_type", "target_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    target_type = Column(String, nullable=False)  # post | comment
    target_id = Column(String, nullable=False)

    reaction = Column(String, nullable=False, default="like")  # like | love | laugh | wow | sad | angry

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @classmethod
    def for_target(cls, target: LikeTarget):
        """Filter clauses matching every like on ``target``."""
        return (cls.target_type == target.kind, cls.target_id == target.id)
