"""API route modules for FastAPI endpoints."""

from deva.routes.auth import router as auth_router
from deva.routes.conversations import router as conversations_router
from deva.routes.history import router as history_router
from deva.routes.linear import router as linear_router
from deva.routes.process import router as process_router
from deva.routes.users import router as users_router

__all__ = [
    "auth_router",
    "conversations_router",
    "history_router",
    "linear_router",
    "process_router",
    "users_router",
]
