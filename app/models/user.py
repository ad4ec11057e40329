"""ORM model for member and admin accounts."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from app.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class User(Base):
    """
    Account with profile, credential hash and moderation state.

    role: 'member' or 'admin'. email is stored trimmed and lowercased;
    email and username carry unique indexes, which are the final guard
    against duplicate sign-ups racing each other.
    """

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    phone = Column(String(64), nullable=False)
    country = Column(String(255), nullable=False)

    password_hash = Column(String(255), nullable=False)

    dob = Column(String(32), nullable=False)
    gender = Column(String(64), nullable=False)

    role = Column(String(32), nullable=False, default="member")
    is_banned = Column(Boolean, nullable=False, default=False)
    ban_reason = Column(String(1024), nullable=False, default="")
    banned_until = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    # Deleting a user detaches their bookings (user_id -> NULL) instead of
    # removing them.
    bookings = relationship("Booking", back_populates="user")
