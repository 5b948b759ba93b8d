import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from familyhub.auth import get_current_user
from familyhub.core.access import (
    count_admins,
    get_membership,
    require_admin,
    require_member,
    resolve_family,
)
from familyhub.core.cascades import delete_family
from familyhub.database import get_db
from familyhub.models.family import Family
from familyhub.models.family_member import (
    ADMIN_PERMISSIONS,
    DEFAULT_MEMBER_PERMISSIONS,
    FamilyMember,
)
from familyhub.models.user import User
from familyhub.schemas.base import UserSummary
from familyhub.schemas.family_schema import (
    FamilyCreate,
    FamilyDetailOut,
    FamilyMemberOut,
    FamilyOut,
    FamilyUpdate,
    MemberAdd,
    MyFamilyOut,
)

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/families", tags=["Families"])


# --------------------------------------------------
# HELPERS
# --------------------------------------------------
def _clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise HTTPException(400, "Please provide a family name")
    if not 2 <= len(name) <= 100:
        raise HTTPException(400, "Family name must be between 2 and 100 characters")
    return name


def _check_description(description: str | None) -> None:
    if description and len(description) > 500:
        raise HTTPException(400, "Description cannot be more than 500 characters")


def _membership_of(db: Session, family: Family, user_id: str) -> FamilyMember:
    return require_member(db, family.id, user_id, detail="Not authorized to access this family")


# --------------------------------------------------
# CREATE
# --------------------------------------------------
@router.post("", status_code=201)
def create_family(
    payload: FamilyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    name = _clean_name(payload.name)
    _check_description(payload.description)

    family = Family(
        name=name,
        description=payload.description,
        settings=payload.settings or {},
        created_by=current_user.id,
    )
    db.add(family)
    db.flush()

    db.add(FamilyMember(
        family_id=family.id,
        user_id=current_user.id,
        role="admin",
        permissions=list(ADMIN_PERMISSIONS),
    ))

    db.commit()
    db.refresh(family)

    log.info("Family %s created by %s", family.id, current_user.id)
    return {"success": True, "family": FamilyOut.model_validate(family)}


# --------------------------------------------------
# LIST MY FAMILIES
# --------------------------------------------------
@router.get("")
def get_my_families(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(Family, FamilyMember)
        .join(FamilyMember, FamilyMember.family_id == Family.id)
        .filter(FamilyMember.user_id == current_user.id)
        .order_by(Family.created_at.desc())
        .all()
    )

    families = [
        MyFamilyOut(
            **FamilyOut.model_validate(family).model_dump(),
            user_role=member.role,
            user_permissions=member.permissions or [],
            joined_at=member.joined_at,
        )
        for family, member in rows
    ]

    return {"success": True, "count": len(families), "families": families}


# --------------------------------------------------
# DETAIL
# --------------------------------------------------
@router.get("/{family_id}")
def get_family(
    family_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    me = _membership_of(db, family, current_user.id)

    members = (
        db.query(FamilyMember)
        .filter(FamilyMember.family_id == family.id)
        .order_by(FamilyMember.joined_at)
        .all()
    )

    detail = FamilyDetailOut(
        **FamilyOut.model_validate(family).model_dump(),
        members=[FamilyMemberOut.model_validate(m) for m in members],
    )

    return {
        "success": True,
        "family": detail,
        "userRole": me.role,
        "userPermissions": me.permissions or [],
    }


# --------------------------------------------------
# UPDATE
# --------------------------------------------------
@router.put("/{family_id}")
def update_family(
    family_id: str,
    payload: FamilyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_admin(db, family.id, current_user.id, detail="Not authorized to update this family")

    if payload.name is not None:
        family.name = _clean_name(payload.name)

    if payload.description is not None:
        _check_description(payload.description)
        family.description = payload.description

    if payload.settings is not None:
        family.settings = payload.settings

    db.commit()
    db.refresh(family)

    return {"success": True, "family": FamilyOut.model_validate(family)}


# --------------------------------------------------
# DELETE
# --------------------------------------------------
@router.delete("/{family_id}")
def delete_family_route(
    family_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)

    if family.created_by != current_user.id:
        raise HTTPException(403, "Only the family creator can delete the family")

    delete_family(db, family.id)
    db.commit()

    log.info("Family %s deleted by %s", family_id, current_user.id)
    return {"success": True, "message": "Family deleted successfully"}


# --------------------------------------------------
# MEMBERS
# --------------------------------------------------
@router.post("/{family_id}/members", status_code=201)
def add_family_member(
    family_id: str,
    payload: MemberAdd,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_admin(db, family.id, current_user.id, detail="Not authorized to add members to this family")

    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user:
        raise HTTPException(404, "User not found")

    if get_membership(db, family.id, user.id):
        raise HTTPException(400, "User is already a member of this family")

    member = FamilyMember(
        family_id=family.id,
        user_id=user.id,
        role=payload.role or "member",
        permissions=payload.permissions or list(DEFAULT_MEMBER_PERMISSIONS),
    )
    db.add(member)
    db.commit()
    db.refresh(member)

    log.info("User %s added to family %s as %s", user.id, family.id, member.role)
    return {
        "success": True,
        "membership": FamilyMemberOut.model_validate(member),
        "user": UserSummary.model_validate(user),
    }


@router.delete("/{family_id}/members/{user_id}")
def remove_family_member(
    family_id: str,
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    family = resolve_family(db, family_id)
    require_admin(db, family.id, current_user.id, detail="Not authorized to remove members from this family")

    member = get_membership(db, family.id, user_id)
    if not member:
        raise HTTPException(404, "User is not a member of this family")

    if family.created_by == user_id:
        raise HTTPException(400, "Cannot remove the family creator")

    if member.role == "admin" and count_admins(db, family.id) <= 1:
        raise HTTPException(400, "Cannot remove the last admin from the family")

    db.delete(member)
    db.commit()

    return {"success": True, "message": "Member removed successfully"}
