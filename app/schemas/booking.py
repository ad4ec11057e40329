"""Schemas for bookings, both member-facing and admin moderation."""

import uuid

from pydantic import BaseModel

from app.schemas.common import CamelModel, PageMeta, UtcDateTime

BOOKING_TYPES: frozenset[str] = frozenset({"appointment", "session", "callback"})
BOOKING_STATUSES: frozenset[str] = frozenset(
    {"pending", "approved", "cancelled", "rescheduled"}
)


class BookingCreate(CamelModel):
    """
    New booking request.

    scheduled_at is a string so an unparseable date is reported by the
    booking service as a 400 rather than a schema error.
    """

    type: str | None = None
    duration: int | None = None
    platform: str | None = None
    platform_details: str = ""
    scheduled_at: str | None = None
    notes: str = ""


class BookingOwner(CamelModel):
    """Public fields of the user a booking belongs to."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    username: str


class BookingRead(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID | None
    type: str
    duration: int
    platform: str
    platform_details: str
    scheduled_at: UtcDateTime
    status: str
    notes: str
    admin_note: str
    rescheduled_to: UtcDateTime | None = None
    created_at: UtcDateTime | None = None
    updated_at: UtcDateTime | None = None


class AdminBookingRead(BookingRead):
    """Booking as seen by admins, with the owner's public fields attached."""

    user: BookingOwner | None = None


class BookingAction(CamelModel):
    """Admin moderation action on a booking."""

    action: str = ""
    admin_note: str | None = None
    rescheduled_to: str | None = None


class BookingEnvelope(BaseModel):
    message: str
    booking: BookingRead


class AdminBookingEnvelope(BaseModel):
    message: str
    booking: AdminBookingRead


class BookingList(BaseModel):
    bookings: list[BookingRead]


class BookingsPage(BaseModel):
    bookings: list[AdminBookingRead]
    meta: PageMeta
