from collections.abc import Awaitable

from fastapi import FastAPI
from redis.asyncio import Redis

from loggers import get_logger
from src.core.errors.exceptions import InfrastructureException
from src.core.redis.core import create_redis_client

logger = get_logger("redis")


async def ping_redis(redis_client: Redis) -> bool:
    ping_result = redis_client.ping()
    if isinstance(ping_result, Awaitable):
        ping_result = await ping_result
    return bool(ping_result)


async def on_redis_startup(app: FastAPI, connection_url: str) -> None:
    """
    Connect to Redis and attach the client to app.state for DI access.

    Raises:
        InfrastructureException: Redis did not answer the startup ping
    """
    redis_client = create_redis_client(connection_url=connection_url)
    try:
        is_alive = await ping_redis(redis_client)
    except Exception as exc:
        await redis_client.aclose()
        raise InfrastructureException(
            "Redis is unreachable", additional_info={"error": str(exc)}
        ) from exc
    if not is_alive:
        await redis_client.aclose()
        raise InfrastructureException("Redis ping failed during startup")

    app.state.redis_client = redis_client
    logger.info("[Redis] Client connected")


async def on_redis_shutdown(app: FastAPI) -> None:
    redis_client = getattr(app.state, "redis_client", None)
    if redis_client is None:
        return
    await redis_client.aclose()
    app.state.redis_client = None
    logger.info("[Redis] Client closed")
