"""Account lifecycle: registration, login, profile self-service, password change, deletion."""

import logging
import uuid
from functools import lru_cache
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import (
    Conflict,
    Forbidden,
    InvalidCredentials,
    NotFound,
    ValidationError,
)
from app.core.security import PASSWORD_MIN_LEN, TokenService, hash_password, verify_password
from app.models import User
from app.schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest
from app.schemas.user import SELF_EDITABLE_FIELDS, UserUpdate
from app.services.listing import parse_id, parse_timestamp

logger = logging.getLogger(__name__)

REGISTRATION_FIELDS = (
    "first_name",
    "last_name",
    "username",
    "email",
    "phone",
    "country",
    "password",
    "dob",
    "gender",
)

# Same message for unknown email and wrong password.
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
DEFAULT_BAN_REASON = "No reason provided"

# Column name -> client-facing field name used in conflict messages.
_UNIQUE_FIELDS = {"email": "Email", "username": "Username"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _email_taken(db: Session, email: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _username_taken(db: Session, username: str, exclude_id: uuid.UUID | None = None) -> bool:
    query = db.query(User.id).filter(User.username == username)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


def _conflict_from_integrity_error(err: IntegrityError) -> Conflict:
    """Name the unique field(s) a store-level duplicate key violation was about."""
    text = str(err.orig).lower()
    fields = [name for column, name in _UNIQUE_FIELDS.items() if column in text]
    label = ", ".join(fields) or "Field"
    return Conflict(f"{label} already exists.", details={"fields": fields})


def _commit_unique(db: Session) -> None:
    """Commit, turning a unique index violation into Conflict."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Unique constraint violation on users: %s", e.orig)
        raise _conflict_from_integrity_error(e) from e


@lru_cache
def _dummy_password_hash() -> str:
    """Hash checked for unknown emails so login costs one bcrypt round either way."""
    return hash_password(uuid.uuid4().hex)


def _get_user(db: Session, user_id: Any) -> User:
    user = db.get(User, parse_id(user_id, "user id"))
    if user is None:
        raise NotFound("User not found")
    return user


def register(db: Session, body: RegisterRequest) -> User:
    """
    Create a member account.

    All registration fields are required and the password must be at least
    PASSWORD_MIN_LEN characters. Email (case-insensitive) and username must be
    unused. The password is stored only as a bcrypt hash.

    Raises ValidationError for missing fields or a short password, Conflict for
    a taken email or username (including a concurrent sign-up that wins the race).
    """
    values = {name: getattr(body, name) or "" for name in REGISTRATION_FIELDS}
    for name in REGISTRATION_FIELDS:
        if name != "password":
            values[name] = values[name].strip()
    if not all(values.values()):
        raise ValidationError("Missing required fields.")

    if len(values["password"]) < PASSWORD_MIN_LEN:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LEN} characters.")

    email = normalize_email(values["email"])
    if _email_taken(db, email):
        raise Conflict("Email already registered.", details={"fields": ["Email"]})
    if _username_taken(db, values["username"]):
        raise Conflict("Username already taken.", details={"fields": ["Username"]})

    user = User(
        first_name=values["first_name"],
        last_name=values["last_name"],
        username=values["username"],
        email=email,
        phone=values["phone"],
        country=values["country"],
        password_hash=hash_password(values["password"]),
        dob=values["dob"],
        gender=values["gender"],
        role="member",
    )
    db.add(user)
    _commit_unique(db)
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return user


def login(db: Session, body: LoginRequest, tokens: TokenService) -> tuple[str, User]:
    """
    Check credentials and issue an access token.

    The ban check runs only after the password matched, so ban status is never
    revealed to someone who does not know the password.
    """
    if not body.email or not body.password:
        raise ValidationError("Email and password required.")

    user = db.query(User).filter(User.email == normalize_email(body.email)).first()
    if user is None:
        verify_password(body.password, _dummy_password_hash())
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)
    if not verify_password(body.password, user.password_hash):
        raise InvalidCredentials(INVALID_CREDENTIALS_MESSAGE)

    if user.is_banned:
        raise Forbidden(
            "Account is banned.",
            details={
                "ban": {
                    "reason": user.ban_reason or DEFAULT_BAN_REASON,
                    "until": parse_timestamp(user.banned_until),
                }
            },
        )

    return tokens.issue(user), user


def get_self(db: Session, user_id: Any) -> User:
    return _get_user(db, user_id)


def update_self(db: Session, user_id: Any, body: UserUpdate) -> User:
    """
    Patch the caller's own profile.

    Only SELF_EDITABLE_FIELDS can change; role, ban state and password are not
    reachable from here. A new email or username must not belong to anyone else.
    """
    user = _get_user(db, user_id)
    updates: dict[str, str] = {}
    for name in SELF_EDITABLE_FIELDS:
        value = getattr(body, name)
        if value is None:
            continue
        value = value.strip()
        if not value:
            raise ValidationError(f"{name} cannot be empty.")
        updates[name] = value

    if "email" in updates:
        updates["email"] = normalize_email(updates["email"])
        if _email_taken(db, updates["email"], exclude_id=user.id):
            raise Conflict("Email already in use.", details={"fields": ["Email"]})
    if "username" in updates:
        if _username_taken(db, updates["username"], exclude_id=user.id):
            raise Conflict("Username already in use.", details={"fields": ["Username"]})

    for name, value in updates.items():
        setattr(user, name, value)
    _commit_unique(db)
    db.refresh(user)
    return user


def change_password(db: Session, user_id: Any, body: ChangePasswordRequest) -> None:
    """Replace the password hash after checking the current password."""
    if not body.old_password or not body.new_password:
        raise ValidationError("Old and new passwords required.")
    if len(body.new_password) < PASSWORD_MIN_LEN:
        raise ValidationError(
            f"New password must be at least {PASSWORD_MIN_LEN} characters."
        )

    user = _get_user(db, user_id)
    if not verify_password(body.old_password, user.password_hash):
        raise InvalidCredentials("Old password incorrect.")

    user.password_hash = hash_password(body.new_password)
    db.commit()
    logger.info("Password changed for user id=%s", user.id)


def delete_self(db: Session, user_id: Any) -> None:
    """Delete the caller's account. Deleting an already-missing account is a no-op."""
    user = db.get(User, parse_id(user_id, "user id"))
    if user is None:
        return
    db.delete(user)
    db.commit()
    logger.info("User id=%s deleted their account", user_id)
