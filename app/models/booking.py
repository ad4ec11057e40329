"""ORM model for bookings made by members and moderated by admins."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Booking(Base):
    """
    A booking request owned by one user.

    status: 'pending' | 'approved' | 'cancelled' | 'rescheduled'.
    rescheduled_to is only set while status is 'rescheduled'.
    """

    __tablename__ = "bookings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Nulled if the owner's account is deleted; bookings themselves are kept.
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    type = Column(String(32), nullable=False)
    duration = Column(Integer, nullable=False)
    platform = Column(String(255), nullable=False)
    platform_details = Column(Text, nullable=False, default="")
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(32), nullable=False, default="pending", index=True)
    notes = Column(Text, nullable=False, default="")
    admin_note = Column(Text, nullable=False, default="")
    rescheduled_to = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    user = relationship("User", back_populates="bookings", lazy="joined")
