import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from familyhub.auth import (
    authenticate_user,
    get_current_user,
    hash_password,
    require_platform_admin,
    token_for,
    verify_password,
)
from familyhub.core.cascades import delete_comments, delete_events, delete_family, delete_posts
from familyhub.database import get_db
from familyhub.models.comment import Comment
from familyhub.models.event import Event
from familyhub.models.event_attendee import EventAttendee
from familyhub.models.event_invitation import EventInvitation
from familyhub.models.family import Family
from familyhub.models.family_member import FamilyMember
from familyhub.models.like import Like
from familyhub.models.media import Media
from familyhub.models.post import Post
from familyhub.models.user import User
from familyhub.schemas.user_schema import (
    AuthUserOut,
    LoginRequest,
    ProfileDelete,
    ProfileUpdate,
    RegisterRequest,
    UserOut,
)
from familyhub.storage import StorageBackend, delete_blobs, get_storage

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

MIN_PASSWORD_LENGTH = 6


def _auth_payload(user: User) -> AuthUserOut:
    return AuthUserOut(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        token=token_for(user),
    )


# ----------------- REGISTER ------------------

@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    first_name = (payload.first_name or "").strip()
    last_name = (payload.last_name or "").strip()

    if not first_name or not last_name:
        raise HTTPException(400, "Please provide first and last name")

    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
        )

    email = payload.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(400, "User already exists")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        hashed_password=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log.info("Registered user %s", user.id)
    return {"success": True, "user": _auth_payload(user)}


# ----------------- LOGIN ------------------

@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email.lower(), payload.password)
    if not user:
        raise HTTPException(401, "Invalid email or password")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    return {"success": True, "user": _auth_payload(user)}


# ----------------- PROFILE ------------------

@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": UserOut.model_validate(current_user)}


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True)

    if data.get("email"):
        email = data["email"].lower()
        taken = db.query(User).filter(User.email == email, User.id != current_user.id).first()
        if taken:
            raise HTTPException(400, "Email is already in use")
        current_user.email = email

    password = data.pop("password", None)
    if password:
        if len(password) < MIN_PASSWORD_LENGTH:
            raise HTTPException(
                400, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        current_user.hashed_password = hash_password(password)

    for field in ("first_name", "last_name"):
        value = data.get(field)
        if value is not None and value.strip():
            setattr(current_user, field, value.strip())

    for field in ("phone", "profile_image", "date_of_birth"):
        if field in data:
            setattr(current_user, field, data[field])

    db.commit()
    db.refresh(current_user)

    user = UserOut.model_validate(current_user).model_dump(by_alias=True)
    user["token"] = token_for(current_user)
    return {"success": True, "user": user}


@router.delete("/profile")
def delete_profile(
    payload: ProfileDelete,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
):
    if not verify_password(payload.password, current_user.hashed_password):
        raise HTTPException(401, "Password is incorrect")

    user_id = current_user.id

    # --------------------------------------------------
    # Families this user created: hand over or remove
    # --------------------------------------------------
    for family in db.query(Family).filter(Family.created_by == user_id).all():
        successor = (
            db.query(FamilyMember)
            .filter(
                FamilyMember.family_id == family.id,
                FamilyMember.role == "admin",
                FamilyMember.user_id != user_id,
            )
            .order_by(FamilyMember.joined_at)
            .first()
        )
        if successor:
            family.created_by = successor.user_id
            log.info("Family %s handed to %s", family.id, successor.user_id)
        else:
            delete_family(db, family.id)
            log.info("Family %s deleted with its creator", family.id)

    db.flush()

    # --------------------------------------------------
    # Content authored by this user
    # --------------------------------------------------
    delete_posts(db, [pid for (pid,) in db.query(Post.id).filter(Post.created_by == user_id).all()])
    delete_comments(db, [cid for (cid,) in db.query(Comment.id).filter(Comment.user_id == user_id).all()])
    delete_events(db, [eid for (eid,) in db.query(Event.id).filter(Event.created_by == user_id).all()])

    db.query(Like).filter(Like.user_id == user_id).delete(synchronize_session=False)
    db.query(EventAttendee).filter(EventAttendee.user_id == user_id).delete(synchronize_session=False)
    db.query(EventInvitation).filter(
        (EventInvitation.user_id == user_id) | (EventInvitation.invited_by == user_id)
    ).delete(synchronize_session=False)
    db.query(FamilyMember).filter(FamilyMember.user_id == user_id).delete(synchronize_session=False)

    blobs = []
    for media in db.query(Media).filter(Media.uploaded_by == user_id).all():
        blobs.extend([media.url, media.thumb_url])
    db.query(Media).filter(Media.uploaded_by == user_id).delete(synchronize_session=False)

    db.delete(current_user)
    db.commit()

    delete_blobs(storage, *blobs)

    log.info("Deleted user %s", user_id)
    return {"success": True, "message": "User account deleted successfully"}


# ----------------- ADMIN ------------------

@router.get("")
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_platform_admin),
):
    users = db.query(User).order_by(User.created_at.desc()).all()
    return {
        "success": True,
        "count": len(users),
        "users": [UserOut.model_validate(u) for u in users],
    }
