from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from loggers import get_logger
from src.auth.identity import InMemoryIdentityProvider
from src.auth.registry import InMemoryRefreshTokenRegistry, RedisRefreshTokenRegistry
from src.core.redis.lifecycle import on_redis_shutdown, on_redis_startup
from src.main.config import config
from src.main.sentry import init_sentry

logger = get_logger(__name__)


async def init_refresh_registry(app: FastAPI) -> None:
    if config.registry.REGISTRY_BACKEND == "redis":
        await on_redis_startup(app, config.redis.REDIS_URL)
        app.state.refresh_registry = RedisRefreshTokenRegistry(
            app.state.redis_client, prefix=config.registry.REGISTRY_KEY_PREFIX
        )
    else:
        app.state.refresh_registry = InMemoryRefreshTokenRegistry()
    logger.info(
        "[Lifespan] Refresh registry backend: %s", config.registry.REGISTRY_BACKEND
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    init_sentry()
    await init_refresh_registry(app)
    app.state.identity_provider = InMemoryIdentityProvider(
        config.identity.IDENTITY_USERS
    )
    if not config.identity.IDENTITY_USERS:
        logger.warning("[Lifespan] No identity users configured; every login will fail")

    yield

    await on_redis_shutdown(app)
