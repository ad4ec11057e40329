"""Account endpoints: register, login, and the caller's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.core.security import TokenService, get_token_service
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    TokenClaims,
)
from app.schemas.common import MessageResponse
from app.schemas.user import UserEnvelope, UserRead, UserResponse, UserUpdate
from app.services import accounts

router = APIRouter()


@router.post("/register", response_model=UserEnvelope, status_code=201)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserEnvelope:
    """Create a member account. Every field is required; password needs 8+ characters."""
    user = accounts.register(db, body)
    return UserEnvelope(message="Account created.", user=UserRead.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <token>
    """
    token, user = accounts.login(db, body, tokens)
    return LoginResponse(token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserResponse)
def read_me(
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    user = accounts.get_self(db, claims.id)
    return UserResponse(user=UserRead.model_validate(user))


@router.put("/me", response_model=UserEnvelope)
def update_me(
    body: UserUpdate,
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserEnvelope:
    """Update profile fields. Role, ban state and password cannot be changed here."""
    user = accounts.update_self(db, claims.id, body)
    return UserEnvelope(message="Profile updated", user=UserRead.model_validate(user))


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    accounts.change_password(db, claims.id, body)
    return MessageResponse(message="Password updated.")


@router.delete("/delete", response_model=MessageResponse)
def delete_me(
    claims: Annotated[TokenClaims, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    accounts.delete_self(db, claims.id)
    return MessageResponse(message="Account deleted.")
