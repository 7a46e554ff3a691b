"""API v1 routes."""

from fastapi import APIRouter

from turnstile.api.v1 import auth, authorities, health, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(authorities.router, prefix="/authorities", tags=["authorities"])
