"""API routes module."""

from cloudops.api.routes.accounts import router as accounts_router
from cloudops.api.routes.automation import router as automation_router
from cloudops.api.routes.queue import router as queue_router
from cloudops.api.routes.recommendations import router as recommendations_router

__all__ = [
    "accounts_router",
    "automation_router",
    "queue_router",
    "recommendations_router",
]
