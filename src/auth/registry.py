"""
Server-side record of refresh tokens that are still usable.

A refresh token must be both correctly signed *and* registered here. Logout
removes it, which revokes it before its signed expiry. Entries are keyed by the
SHA-256 digest of the token.
"""

import asyncio
from collections.abc import Awaitable
from datetime import datetime
from math import ceil
from typing import Protocol, cast

from redis.asyncio import Redis

from loggers import get_logger
from src.auth.redis_scripts import REPLACE_REFRESH_TOKEN_SCRIPT
from src.core.utils.datetime_utils import Clock, get_utc_now
from src.core.utils.security import token_digest

logger = get_logger(__name__)


class RefreshTokenRegistry(Protocol):
    async def add(self, token: str, expires_at: datetime) -> None: ...

    async def contains(self, token: str) -> bool: ...

    async def remove(self, token: str) -> None:
        """Idempotent: removing an unknown token is a no-op."""
        ...

    async def replace(
        self, old_token: str, new_token: str, expires_at: datetime
    ) -> bool:
        """
        Atomically swap ``old_token`` for ``new_token``.
        Returns False, registering nothing, when ``old_token`` is not registered.
        """
        ...


class InMemoryRefreshTokenRegistry:
    """Process-local registry; a lock serializes every read and write."""

    def __init__(self, clock: Clock = get_utc_now) -> None:
        self._entries: dict[str, datetime] = {}
        self._lock = asyncio.Lock()
        self.clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    async def add(self, token: str, expires_at: datetime) -> None:
        async with self._lock:
            self._prune_locked()
            self._entries[token_digest(token)] = expires_at

    async def contains(self, token: str) -> bool:
        async with self._lock:
            expires_at = self._entries.get(token_digest(token))
            if expires_at is None:
                return False
            if expires_at <= self.clock():
                self._entries.pop(token_digest(token), None)
                return False
            return True

    async def remove(self, token: str) -> None:
        async with self._lock:
            self._entries.pop(token_digest(token), None)

    async def replace(
        self, old_token: str, new_token: str, expires_at: datetime
    ) -> bool:
        async with self._lock:
            if self._entries.pop(token_digest(old_token), None) is None:
                return False
            self._entries[token_digest(new_token)] = expires_at
            return True

    async def prune(self) -> int:
        async with self._lock:
            return self._prune_locked()

    def _prune_locked(self) -> int:
        now = self.clock()
        stale = [key for key, expires_at in self._entries.items() if expires_at <= now]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("[RefreshRegistry] Pruned %s expired entries", len(stale))
        return len(stale)


class RedisRefreshTokenRegistry:
    """
    Redis-backed registry. Keys expire together with the token they describe,
    so stale entries clean themselves up.
    """

    ACTIVE = "active"

    def __init__(
        self,
        redis_client: Redis,
        *,
        prefix: str = "refresh_token",
        clock: Clock = get_utc_now,
    ) -> None:
        self.redis_client = redis_client
        self.prefix = prefix
        self.clock = clock

    def _key(self, token: str) -> str:
        return f"{self.prefix}:{token_digest(token)}"

    def _ttl_seconds(self, expires_at: datetime) -> int:
        return ceil((expires_at - self.clock()).total_seconds())

    async def add(self, token: str, expires_at: datetime) -> None:
        ttl_seconds = self._ttl_seconds(expires_at)
        if ttl_seconds <= 0:
            logger.warning("[RefreshRegistry] Refusing to register an expired token")
            return
        await self.redis_client.set(self._key(token), self.ACTIVE, ex=ttl_seconds)

    async def contains(self, token: str) -> bool:
        return bool(await self.redis_client.exists(self._key(token)))

    async def remove(self, token: str) -> None:
        await self.redis_client.delete(self._key(token))

    async def replace(
        self, old_token: str, new_token: str, expires_at: datetime
    ) -> bool:
        ttl_seconds = max(1, self._ttl_seconds(expires_at))
        result: str = await cast(
            Awaitable[str],
            self.redis_client.eval(
                REPLACE_REFRESH_TOKEN_SCRIPT,
                2,  # Number of keys
                self._key(old_token),
                self._key(new_token),
                self.ACTIVE,
                str(ttl_seconds),
            ),
        )
        if isinstance(result, bytes):
            result = result.decode()
        return result == "OK"
