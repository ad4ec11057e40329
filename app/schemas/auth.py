"""Request/response schemas for registration, login and token claims."""

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel
from app.schemas.user import UserRead


class TokenClaims(BaseModel):
    """Identity carried inside a verified access token."""

    id: str = Field(..., min_length=1)
    email: str
    username: str
    role: str


class RegisterRequest(CamelModel):
    """
    Sign-up form.

    Fields default to empty strings so the account service can report
    missing fields with its own message instead of a schema error.
    """

    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    phone: str = ""
    country: str = ""
    password: str = ""
    dob: str = ""
    gender: str = ""


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = ""
    password: str = ""


class ChangePasswordRequest(CamelModel):
    old_password: str = ""
    new_password: str = ""


class LoginResponse(BaseModel):
    """Access token plus the signed-in user."""

    message: str = "Login successful."
    token: str = Field(..., description="JWT access token; send as 'Authorization: Bearer <token>'")
    user: UserRead
