"""API routes for Boardroom."""

from fastapi import APIRouter

from .auth import router as auth_router
from .boards import router as boards_router
from .join_parent import router as join_parent_router
from .notifications import router as notifications_router
from .organizations import router as organizations_router
from .polls import router as polls_router
from .user import router as user_router

# Main API router
api_router = APIRouter()

# Auth routes (register, login, logout)
api_router.include_router(auth_router)

# User routes (/me/*)
api_router.include_router(user_router)
api_router.include_router(notifications_router)

api_router.include_router(organizations_router)
api_router.include_router(join_parent_router)
api_router.include_router(boards_router)
api_router.include_router(polls_router)

__all__ = ["api_router"]
