from datetime import date, datetime
from typing import Optional

from pydantic import EmailStr

from familyhub.schemas.base import CamelModel


# --------------------------------------------------
# REQUESTS
# --------------------------------------------------
class RegisterRequest(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    password: str


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    profile_image: Optional[str] = None
    date_of_birth: Optional[date] = None


class ProfileDelete(CamelModel):
    password: str


# --------------------------------------------------
# OUTPUT
# --------------------------------------------------
class UserOut(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    status: str

    profile_image: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None

    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class AuthUserOut(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    token: str
