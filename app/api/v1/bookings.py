"""Member booking endpoints: create a booking and list your own."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.schemas.auth import TokenClaims
from app.schemas.booking import BookingCreate, BookingEnvelope, BookingList, BookingRead
from app.services import bookings

router = APIRouter()


@router.post("", response_model=BookingEnvelope, status_code=201)
def create_booking(
    body: BookingCreate,
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> BookingEnvelope:
    """
    Request a booking. type, duration, platform and scheduledAt are required.
    New bookings start as pending; only admins can change them afterwards.
    """
    booking = bookings.create_booking(db, claims.id, body)
    return BookingEnvelope(
        message="Booking created", booking=BookingRead.model_validate(booking)
    )


@router.get("/me", response_model=BookingList)
def list_my_bookings(
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> BookingList:
    """Return the caller's bookings, newest first."""
    rows = bookings.list_own_bookings(db, claims.id)
    return BookingList(bookings=[BookingRead.model_validate(b) for b in rows])
