"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.booking import Booking
from app.models.user import User

__all__ = ["Base", "Booking", "User"]
