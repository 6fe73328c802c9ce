"""
Async Redis Client Factory.

Creates the Redis client with connection pooling for the DI container.
"""

import logging

import redis.asyncio as redis
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


async def create_redis_client(url: str) -> Redis:
    """
    Create async Redis client with connection pool.

    The connection is not tested here: a Redis outage degrades the cache
    to store reads, it must not keep the service from starting.
    """
    client = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )
    logger.info(f"[Redis] Client created for {url}")
    return client


async def close_redis_client(client: Redis) -> None:
    """Close Redis client connection. Called on application shutdown."""
    if client:
        await client.aclose()
        logger.info("[Redis] Connection closed")
