"""Admin console endpoints: user moderation and booking moderation. Admin only."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import AdminContext, require_admin
from app.core.database import get_db
from app.schemas.booking import (
    AdminBookingEnvelope,
    AdminBookingRead,
    BookingAction,
    BookingsPage,
)
from app.schemas.common import MessageResponse
from app.schemas.user import (
    BanEnvelope,
    BanRequest,
    BanStatus,
    RoleEnvelope,
    RoleStatus,
    RoleUpdate,
    UserRead,
    UsersPage,
)
from app.services import bookings, moderation

logger = logging.getLogger(__name__)
router = APIRouter()


# -------- Users --------


@router.get("/users", response_model=UsersPage)
def list_users(
    _admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    q: str = "",
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> UsersPage:
    """
    Search users by email, username, first/last name or phone.

    q is matched literally (case-insensitive substring). limit is clamped to
    5..100 (default 20); page starts at 1.
    """
    users, meta = moderation.list_users(db, q=q, page=page, limit=limit)
    return UsersPage(users=[UserRead.model_validate(u) for u in users], meta=meta)


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    moderation.delete_user(db, admin.id, user_id)
    return MessageResponse(message="User deleted.")


@router.post("/users/{user_id}/ban", response_model=BanEnvelope)
def ban_user(
    user_id: str,
    admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    body: BanRequest | None = None,
) -> BanEnvelope:
    """Ban a user. `until` is recorded for reference; bans are only lifted by unban."""
    user = moderation.ban_user(db, admin.id, user_id, body or BanRequest())
    return BanEnvelope(message="User banned.", user=BanStatus.model_validate(user))


@router.post("/users/{user_id}/unban", response_model=BanEnvelope)
def unban_user(
    user_id: str,
    admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> BanEnvelope:
    user = moderation.unban_user(db, user_id)
    return BanEnvelope(message="User unbanned.", user=BanStatus.model_validate(user))


@router.patch("/users/{user_id}/role", response_model=RoleEnvelope)
def change_role(
    user_id: str,
    body: RoleUpdate,
    admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> RoleEnvelope:
    """Set role to member or admin. Admins cannot demote themselves."""
    user = moderation.set_role(db, admin.id, user_id, body.role)
    return RoleEnvelope(message="Role updated.", user=RoleStatus.model_validate(user))


# -------- Bookings --------


@router.get("/bookings", response_model=BookingsPage)
def list_bookings(
    _admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    q: str = "",
    status: str | None = None,
    page: Annotated[str | None, Query()] = None,
    limit: Annotated[str | None, Query()] = None,
) -> BookingsPage:
    """
    List bookings with their owners' public details, newest first.

    Optional status filter and literal search over notes, platform details and
    platform. limit is clamped to 5..100 (default 50).
    """
    rows, meta = bookings.admin_list_bookings(
        db, status=status, q=q, page=page, limit=limit
    )
    return BookingsPage(
        bookings=[AdminBookingRead.model_validate(b) for b in rows], meta=meta
    )


@router.patch("/bookings/{booking_id}", response_model=AdminBookingEnvelope)
def update_booking(
    booking_id: str,
    body: BookingAction,
    admin: Annotated[AdminContext, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminBookingEnvelope:
    """Approve, cancel or reschedule a booking. reschedule needs rescheduledTo."""
    booking = bookings.admin_transition(db, booking_id, body)
    logger.info("Admin id=%s updated booking id=%s", admin.id, booking.id)
    return AdminBookingEnvelope(
        message="Booking updated", booking=AdminBookingRead.model_validate(booking)
    )
