from pydantic import EmailStr
from typing import Optional, List, Literal
from datetime import datetime

from familyhub.schemas.base import CamelModel, UserSummary


# --------------------------------------------------
# CREATE / UPDATE
# --------------------------------------------------
class FamilyCreate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[dict] = None


class FamilyUpdate(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[dict] = None


# --------------------------------------------------
# MEMBERS
# --------------------------------------------------
class MemberAdd(CamelModel):
    email: EmailStr
    role: Optional[Literal["admin", "member", "viewer"]] = None
    permissions: Optional[List[str]] = None


class FamilyMemberOut(CamelModel):
    id: str
    family_id: str
    user_id: str
    role: str
    permissions: List[str] = []
    joined_at: Optional[datetime] = None

    user: Optional[UserSummary] = None


# --------------------------------------------------
# FAMILY
# --------------------------------------------------
class FamilyOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    settings: dict = {}
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FamilyDetailOut(FamilyOut):
    members: List[FamilyMemberOut] = []


class MyFamilyOut(FamilyOut):
    user_role: str
    user_permissions: List[str] = []
    joined_at: Optional[datetime] = None
