"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import admin, bookings, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
