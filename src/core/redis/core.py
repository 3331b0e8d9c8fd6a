from typing import cast

from redis.asyncio import Redis

from loggers import get_logger

logger = get_logger(__name__)


def create_redis_client(
    connection_url: str,
    *,
    decode_responses: bool = True,
    socket_timeout: float | None = 5.0,
) -> Redis:
    """
    Build the async Redis client used by the refresh registry.
    Construction lives here so tests can monkeypatch a fake in.
    """
    client = Redis.from_url(
        connection_url,
        decode_responses=decode_responses,
        socket_timeout=socket_timeout,
    )
    return cast(Redis, client)
