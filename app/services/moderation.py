"""Admin user moderation: listing, deletion, bans and role changes."""

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models import User
from app.schemas.common import PageMeta
from app.schemas.user import ROLES, BanRequest
from app.services.accounts import DEFAULT_BAN_REASON
from app.services.listing import PageParams, apply_search, parse_id, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_USER_PAGE_LIMIT = 20


def _get_target(db: Session, target_id: Any) -> User:
    user = db.get(User, parse_id(target_id, "user id"))
    if user is None:
        raise NotFound("User not found")
    return user


def _is_self(actor_id: Any, target_id: Any) -> bool:
    return parse_id(actor_id, "user id") == parse_id(target_id, "user id")


def list_users(
    db: Session,
    *,
    q: str | None = None,
    page: Any = None,
    limit: Any = None,
) -> tuple[list[User], PageMeta]:
    """Page through users, newest first, optionally filtered by a literal search term."""
    params = PageParams.from_query(page, limit, DEFAULT_USER_PAGE_LIMIT)
    query = apply_search(
        db.query(User),
        q,
        [User.email, User.username, User.first_name, User.last_name, User.phone],
    )
    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return users, params.meta(total)


def delete_user(db: Session, actor_id: Any, target_id: Any) -> None:
    if _is_self(actor_id, target_id):
        raise ValidationError("Cannot delete your own admin account.")
    user = _get_target(db, target_id)
    db.delete(user)
    db.commit()
    logger.info("Admin id=%s deleted user id=%s", actor_id, target_id)


def ban_user(db: Session, actor_id: Any, target_id: Any, body: BanRequest) -> User:
    """
    Ban a user. banned_until is informational only: nothing lifts the ban
    when it passes, an explicit unban is always needed.
    """
    if _is_self(actor_id, target_id):
        raise ValidationError("Cannot ban yourself.")

    banned_until = None
    if body.until:
        banned_until = parse_timestamp(body.until)
        if banned_until is None:
            raise ValidationError("Invalid ban until date")

    user = _get_target(db, target_id)
    user.is_banned = True
    user.ban_reason = (body.reason or "").strip() or DEFAULT_BAN_REASON
    user.banned_until = banned_until
    db.commit()
    db.refresh(user)
    logger.info("Admin id=%s banned user id=%s", actor_id, user.id)
    return user


def unban_user(db: Session, target_id: Any) -> User:
    user = _get_target(db, target_id)
    user.is_banned = False
    user.ban_reason = ""
    user.banned_until = None
    db.commit()
    db.refresh(user)
    logger.info("User id=%s unbanned", user.id)
    return user


def set_role(db: Session, actor_id: Any, target_id: Any, role: str) -> User:
    """Change a user's role. An admin may not demote themself."""
    if role not in ROLES:
        raise ValidationError("Invalid role")
    if _is_self(actor_id, target_id) and role != "admin":
        raise ValidationError("Cannot remove admin role from yourself.")

    user = _get_target(db, target_id)
    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("Admin id=%s set role of user id=%s to %s", actor_id, user.id, role)
    return user
