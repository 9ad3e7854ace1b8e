"""API routers."""

from printshop.routers.auth import router as auth_router
from printshop.routers.departments import router as departments_router
from printshop.routers.files import router as files_router
from printshop.routers.jobs import router as jobs_router
from printshop.routers.public import router as public_router
from printshop.routers.users import router as users_router
from printshop.routers.websocket import router as websocket_router

__all__ = [
    "auth_router",
    "departments_router",
    "files_router",
    "jobs_router",
    "public_router",
    "users_router",
    "websocket_router",
]
