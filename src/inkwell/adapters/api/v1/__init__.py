"""API v1 router configuration.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .blogs import router as blogs_router
from .health import router as health_router
from .users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(blogs_router, prefix="/blogs", tags=["blogs"])
api_router.include_router(users_router, prefix="/users", tags=["users"])
