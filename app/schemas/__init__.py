"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    TokenClaims,
)
from app.schemas.booking import (
    AdminBookingRead,
    BookingAction,
    BookingCreate,
    BookingRead,
)
from app.schemas.common import MessageResponse, PageMeta
from app.schemas.health import HealthResponse
from app.schemas.user import BanRequest, RoleUpdate, UserRead, UserUpdate

__all__ = [
    "AdminBookingRead",
    "BanRequest",
    "BookingAction",
    "BookingCreate",
    "BookingRead",
    "ChangePasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "PageMeta",
    "RegisterRequest",
    "RoleUpdate",
    "TokenClaims",
    "UserRead",
    "UserUpdate",
]
