from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from familyhub.database import Base
import uuid


ADMIN_PERMISSIONS = ["view", "edit", "delete", "invite"]
DEFAULT_MEMBER_PERMISSIONS = ["view"]


class FamilyMember(Base):
    __tablename__ = "family_members"
    __table_args__ = (
        UniqueConstraint("family_id", "user_id", name="uq_family_member"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    family_id = Column(String, ForeignKey("families.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    role = Column(String, nullable=False, default="member")  # admin | member | viewer
    permissions = Column(JSON, nullable=False, default=lambda: list(DEFAULT_MEMBER_PERMISSIONS))
    joined_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id], lazy="joined")
