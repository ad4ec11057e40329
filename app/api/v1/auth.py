"""Access control dependencies: any authenticated caller, or a live admin."""

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import Forbidden, InvalidToken, Unauthorized
from app.core.security import TokenService, get_token_service
from app.models.user import User
from app.schemas.auth import TokenClaims

security = HTTPBearer(auto_error=False)


@dataclass
class AdminContext:
    """Claims from the admin's token plus their user row as it is right now."""

    claims: TokenClaims
    user: User

    @property
    def id(self) -> uuid.UUID:
        return self.user.id


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenClaims:
    """Dependency: require a valid Bearer token and return its claims. Raises 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized")
    try:
        return tokens.verify(credentials.credentials)
    except InvalidToken:
        raise Unauthorized("Invalid or expired token")


def require_admin(
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminContext:
    """
    Dependency: require an authenticated caller whose account is currently an admin.

    The user is re-read on every call so that a demoted or deleted admin loses
    access at once, even though their token stays valid until it expires.
    Raises 401 if the account is gone, 403 if it is not an admin.
    """
    try:
        user_id = uuid.UUID(claims.id)
    except ValueError:
        raise Unauthorized("Unauthorized")
    user = db.get(User, user_id)
    if user is None:
        raise Unauthorized("Unauthorized")
    if user.role != "admin":
        raise Forbidden("Forbidden: admin only")
    return AdminContext(claims=claims, user=user)
