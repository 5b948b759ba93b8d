from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException, Depends, Header
from jose import jwt, JWTError
from sqlalchemy.orm import Session
import bcrypt

from familyhub.config import settings
from familyhub.database import get_db
from familyhub.models.user import User


# ============================================================
# PASSWORD HELPERS
# ============================================================

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    password_bytes = password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed.encode())
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ============================================================
# LOGIN
# ============================================================

def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.email == email).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# ============================================================
# TOKEN CREATION
# ============================================================

def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(
        minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for(user: User) -> str:
    return create_access_token({"sub": user.id})


# ============================================================
# GET CURRENT USER
# ============================================================

def get_current_user(
    authorization: str = Header(None),
    db: Session = Depends(get_db),
) -> User:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authorized, no token")

    token = authorization.replace("Bearer ", "", 1).strip()

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id: str = payload.get("sub")
    except JWTError:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    if user_id is None:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    user = db.query(User).filter(User.id == user_id).first()

    # Token outlived its user (account deleted)
    if not user:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")

    return user


def require_platform_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Not authorized as an admin")
    return current_user
