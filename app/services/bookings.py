"""Booking lifecycle: member booking requests and admin moderation transitions."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models import Booking, User
from app.schemas.booking import BOOKING_STATUSES, BOOKING_TYPES, BookingAction, BookingCreate
from app.schemas.common import PageMeta
from app.services.listing import PageParams, apply_search, parse_id, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_BOOKING_PAGE_LIMIT = 50

ACTION_APPROVE = "approve"
ACTION_CANCEL = "cancel"
ACTION_RESCHEDULE = "reschedule"

# Action -> resulting status. Every action applies from every status.
TRANSITIONS: dict[str, str] = {
    ACTION_APPROVE: "approved",
    ACTION_CANCEL: "cancelled",
    ACTION_RESCHEDULE: "rescheduled",
}


def create_booking(db: Session, user_id: Any, body: BookingCreate) -> Booking:
    """
    Record a new pending booking for the caller.

    type, duration, platform and scheduled_at are required; duration and
    platform are otherwise stored as given. Raises NotFound when the caller's
    account no longer exists.
    """
    owner_id = parse_id(user_id, "user id")
    # Tokens outlive account deletion; the owner must still exist.
    if db.get(User, owner_id) is None:
        raise NotFound("User not found")
    if not body.type or not body.duration or not body.platform or not body.scheduled_at:
        raise ValidationError("Missing required fields.")
    if body.type not in BOOKING_TYPES:
        raise ValidationError(
            f"Invalid booking type; expected one of {sorted(BOOKING_TYPES)}."
        )

    scheduled_at = parse_timestamp(body.scheduled_at)
    if scheduled_at is None:
        raise ValidationError("Invalid scheduledAt date.")

    booking = Booking(
        user_id=owner_id,
        type=body.type,
        duration=body.duration,
        platform=body.platform,
        platform_details=body.platform_details or "",
        scheduled_at=scheduled_at,
        notes=body.notes or "",
        status="pending",
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info("Booking id=%s created by user id=%s", booking.id, owner_id)
    return booking


def list_own_bookings(db: Session, user_id: Any) -> list[Booking]:
    """Return the caller's bookings, newest first."""
    owner_id = parse_id(user_id, "user id")
    return (
        db.query(Booking)
        .filter(Booking.user_id == owner_id)
        .order_by(Booking.created_at.desc())
        .all()
    )


def admin_list_bookings(
    db: Session,
    *,
    status: str | None = None,
    q: str | None = None,
    page: Any = None,
    limit: Any = None,
) -> tuple[list[Booking], PageMeta]:
    """
    Page through all bookings for moderation, newest first.

    status filters exactly; q is a literal, case-insensitive substring matched
    against notes, platform details and platform.
    """
    params = PageParams.from_query(page, limit, DEFAULT_BOOKING_PAGE_LIMIT)
    query = db.query(Booking)
    if status:
        if status not in BOOKING_STATUSES:
            raise ValidationError("Invalid status filter")
        query = query.filter(Booking.status == status)
    query = apply_search(
        query, q, [Booking.notes, Booking.platform_details, Booking.platform]
    )

    total = query.order_by(None).count()
    bookings = (
        query.order_by(Booking.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return bookings, params.meta(total)


def admin_transition(db: Session, booking_id: Any, body: BookingAction) -> Booking:
    """
    Apply a moderation action to a booking.

    approve/cancel clear rescheduled_to; reschedule requires a valid
    rescheduled_to. The admin note is overwritten by every action. The read
    and the write are not atomic: concurrent edits are last-write-wins.
    """
    bid = parse_id(booking_id, "booking id")
    booking = db.get(Booking, bid)
    if booking is None:
        raise NotFound("Booking not found")

    action = body.action
    if action not in TRANSITIONS:
        raise ValidationError("Invalid action")

    if action == ACTION_RESCHEDULE:
        new_time = parse_timestamp(body.rescheduled_to)
        if new_time is None:
            raise ValidationError("Invalid rescheduledTo date")
        booking.rescheduled_to = new_time
    else:
        booking.rescheduled_to = None

    previous = booking.status
    booking.status = TRANSITIONS[action]
    booking.admin_note = body.admin_note or ""
    db.commit()
    db.refresh(booking)
    logger.info(
        "Booking id=%s %s -> %s (action=%s)", booking.id, previous, booking.status, action
    )
    return booking
