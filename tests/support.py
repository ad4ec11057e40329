"""Shared helpers: in-memory database sessions and user/booking factories."""

from datetime import UTC, datetime

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import hash_password
from app.models import Base, Booking, User
from app.schemas.auth import RegisterRequest

DEFAULT_PASSWORD = "correct-horse-battery"


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def register_request(**overrides: object) -> RegisterRequest:
    """Build a complete RegisterRequest; override any field by keyword."""
    fields: dict[str, object] = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "username": "ada",
        "email": "ada@example.com",
        "phone": "+44 20 7946 0000",
        "country": "GB",
        "password": DEFAULT_PASSWORD,
        "dob": "1815-12-10",
        "gender": "female",
    }
    fields.update(overrides)
    return RegisterRequest(**fields)


def make_user(
    db: Session,
    username: str = "member",
    role: str = "member",
    password: str = DEFAULT_PASSWORD,
    **kwargs: object,
) -> User:
    """Insert a user directly, bypassing the registration rules."""
    defaults: dict[str, object] = {
        "first_name": username.title(),
        "last_name": "Tester",
        "email": f"{username}@example.com",
        "phone": "555-0100",
        "country": "US",
        "dob": "1990-01-01",
        "gender": "other",
    }
    defaults.update(kwargs)
    user = User(
        username=username,
        role=role,
        password_hash=hash_password(password),
        **defaults,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_booking(
    db: Session,
    user: User,
    created_at: datetime | None = None,
    **kwargs: object,
) -> Booking:
    """Insert a pending booking for user; created_at can be pinned for ordering tests."""
    defaults: dict[str, object] = {
        "type": "session",
        "duration": 30,
        "platform": "zoom",
        "platform_details": "",
        "scheduled_at": datetime(2030, 1, 1, 10, 0, tzinfo=UTC),
        "notes": "",
        "status": "pending",
    }
    defaults.update(kwargs)
    booking = Booking(user_id=user.id, **defaults)
    if created_at is not None:
        booking.created_at = created_at
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def naive_utc(dt: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; SQLite hands datetimes back naive."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.replace(tzinfo=None)
