"""
API Routers - FastAPI endpoint definitions.
"""

from webchat.presentation.api.conversations import router as conversations_router
from webchat.presentation.api.messages import router as messages_router
from webchat.presentation.api.metrics import router as metrics_router
from webchat.presentation.api.realtime import router as realtime_router
from webchat.presentation.api.users import router as users_router

__all__ = [
    "conversations_router",
    "messages_router",
    "metrics_router",
    "realtime_router",
    "users_router",
]
