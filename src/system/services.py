from redis.asyncio import Redis
import sentry_sdk

from loggers import get_logger
from src.core.errors.exceptions import InfrastructureException
from src.core.redis.lifecycle import ping_redis
from src.system.schemas import HealthCheckResponse

logger = get_logger(__name__)


class HealthService:
    def __init__(self, redis_client: Redis | None) -> None:
        self.redis_client = redis_client

    async def get_status(self) -> HealthCheckResponse:
        """
        The in-memory registry has nothing to probe; a Redis-backed registry
        is healthy only while Redis answers PING.
        """
        if self.redis_client is None:
            return HealthCheckResponse(status="ok")

        if not await self._check_redis():
            raise InfrastructureException(
                "System health check failed", additional_info={"redis": False}
            )
        return HealthCheckResponse(status="ok")

    async def _check_redis(self) -> bool:
        try:
            return await ping_redis(self.redis_client)  # type: ignore[arg-type]
        except Exception as exc:
            logger.error("[Health] Redis health check failed", exc_info=exc)
            sentry_sdk.capture_exception(exc)
            return False
