"""
Cache Layer - Redis caching implementations.

Contains the async Redis client, the conversation cache and the cached
repository decorators.
"""

from webchat.infrastructure.cache.cached_conversation_repository import (
    CachedConversationRepository,
)
from webchat.infrastructure.cache.cached_message_repository import CachedMessageRepository
from webchat.infrastructure.cache.cached_user_repository import CachedUserRepository
from webchat.infrastructure.cache.conversation_cache import ConversationCache
from webchat.infrastructure.cache.redis_client import (
    close_redis_client,
    create_redis_client,
)

__all__ = [
    "CachedConversationRepository",
    "CachedMessageRepository",
    "CachedUserRepository",
    "ConversationCache",
    "close_redis_client",
    "create_redis_client",
]
