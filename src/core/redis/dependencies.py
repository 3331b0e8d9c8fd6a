from typing import cast

from fastapi import Request
from redis.asyncio import Redis


async def get_optional_redis_client(request: Request) -> Redis | None:
    """
    Redis client stored on app.state, or None when the in-memory registry
    backend is configured.
    """
    redis_client = getattr(request.app.state, "redis_client", None)
    return cast(Redis | None, redis_client)
