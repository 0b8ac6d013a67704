"""API routers."""

from dcmaint.routers.attachments import router as attachments_router
from dcmaint.routers.auth import router as auth_router
from dcmaint.routers.corrective import router as corrective_router
from dcmaint.routers.documents import router as documents_router
from dcmaint.routers.health import router as health_router
from dcmaint.routers.users import router as users_router
from dcmaint.routers.websocket import router as websocket_router

__all__ = [
    "attachments_router",
    "auth_router",
    "corrective_router",
    "documents_router",
    "health_router",
    "users_router",
    "websocket_router",
]
