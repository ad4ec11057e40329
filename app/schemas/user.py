"""Schemas for user profiles and admin moderation."""

import uuid

from pydantic import BaseModel

from app.schemas.common import CamelModel, PageMeta, UtcDateTime

ROLES: frozenset[str] = frozenset({"member", "admin"})

# Fields a user may change on their own profile.
SELF_EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "username",
    "email",
    "phone",
    "country",
    "dob",
    "gender",
)


class UserRead(CamelModel):
    """User as returned to clients. The password hash is never part of it."""

    id: uuid.UUID
    first_name: str
    last_name: str
    username: str
    email: str
    phone: str
    country: str
    dob: str
    gender: str
    role: str
    is_banned: bool
    ban_reason: str
    banned_until: UtcDateTime | None = None
    created_at: UtcDateTime | None = None
    updated_at: UtcDateTime | None = None


class UserUpdate(CamelModel):
    """Partial profile update. Unset fields are left alone; unknown keys are dropped."""

    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    email: str | None = None
    phone: str | None = None
    country: str | None = None
    dob: str | None = None
    gender: str | None = None


class UserResponse(BaseModel):
    user: UserRead


class UserEnvelope(BaseModel):
    message: str
    user: UserRead


class UsersPage(BaseModel):
    users: list[UserRead]
    meta: PageMeta


class BanRequest(CamelModel):
    reason: str | None = None
    until: str | None = None


class RoleUpdate(CamelModel):
    # Plain str so an unknown role reaches the moderation service and gets its message.
    role: str = ""


class BanStatus(CamelModel):
    id: uuid.UUID
    is_banned: bool
    ban_reason: str
    banned_until: UtcDateTime | None = None


class RoleStatus(CamelModel):
    id: uuid.UUID
    role: str


class BanEnvelope(BaseModel):
    message: str
    user: BanStatus


class RoleEnvelope(BaseModel):
    message: str
    user: RoleStatus
