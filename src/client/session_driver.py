"""
Client side of the token session.

The driver wraps an ``httpx.AsyncClient`` whose cookie jar carries the
httpOnly token cookies. Protected calls that fail with 401/403 trigger at most
one silent refresh followed by exactly one retry. Concurrent failures share a
single in-flight refresh.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
import inspect
from typing import Any

import httpx

from loggers import get_logger
from src.auth.schemas import LoginResponseModel, RefreshResponseModel
from src.client.exceptions import LoginFailedError, ReauthenticationRequiredError
from src.core.utils.datetime_utils import (
    Clock,
    ensure_aware_utc,
    get_utc_now,
    seconds_until,
)

logger = get_logger(__name__)

AUTH_FAILURE_STATUSES = frozenset({401, 403})

ReauthenticationCallback = Callable[[], Awaitable[None] | None]
Sleep = Callable[[float], Awaitable[None]]


class SessionCountdown:
    """
    Expiry moments reported by the server. Display only: the server's
    verification is authoritative.
    """

    def __init__(self, clock: Clock = get_utc_now) -> None:
        self.clock = clock
        self.access_expires_at: datetime | None = None
        self.refresh_expires_at: datetime | None = None

    def update(
        self,
        *,
        access_expires_at: datetime | None = None,
        refresh_expires_at: datetime | None = None,
    ) -> None:
        if access_expires_at is not None:
            self.access_expires_at = ensure_aware_utc(access_expires_at)
        if refresh_expires_at is not None:
            self.refresh_expires_at = ensure_aware_utc(refresh_expires_at)

    def clear(self) -> None:
        self.access_expires_at = None
        self.refresh_expires_at = None

    @property
    def access_remaining(self) -> int:
        return seconds_until(self.access_expires_at, self.clock())

    @property
    def refresh_remaining(self) -> int:
        return seconds_until(self.refresh_expires_at, self.clock())

    @property
    def is_active(self) -> bool:
        return self.refresh_remaining > 0

    def seconds_until_refresh(self, margin: float) -> float:
        """Seconds to wait so the refresh lands ``margin`` seconds before expiry."""
        if self.access_expires_at is None:
            return 0.0
        now = ensure_aware_utc(self.clock())
        remaining = (self.access_expires_at - now).total_seconds()
        return max(0.0, remaining - margin)


class ClientSessionDriver:
    def __init__(
        self,
        base_url: str = "",
        *,
        http_client: httpx.AsyncClient | None = None,
        on_reauthentication_required: ReauthenticationCallback | None = None,
        clock: Clock = get_utc_now,
        sleep: Sleep = asyncio.sleep,
        timeout: float = 10.0,
    ) -> None:
        self._http_client = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout
        )
        self._owns_client = http_client is None
        self.on_reauthentication_required = on_reauthentication_required
        self.countdown = SessionCountdown(clock)
        self._sleep = sleep

        self._refresh_task: asyncio.Task[None] | None = None
        self._auto_refresh_task: asyncio.Task[None] | None = None
        # Bumped after every successful refresh
        self._generation = 0

    async def __aenter__(self) -> "ClientSessionDriver":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def refresh_in_flight(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def login(self, username: str, password: str) -> LoginResponseModel:
        """
        Raises:
            LoginFailedError: The server answered with anything but 200
        """
        response = await self._http_client.post(
            "/login", json={"username": username, "password": password}
        )
        if response.status_code != 200:
            message = _error_message(response, default="Login failed")
            logger.info(
                "[SessionDriver] Login rejected (%s): %s", response.status_code, message
            )
            raise LoginFailedError(message, status_code=response.status_code)

        data = LoginResponseModel.model_validate(response.json())
        self.countdown.update(
            access_expires_at=data.access_expires_at,
            refresh_expires_at=data.refresh_expires_at,
        )
        logger.info("[SessionDriver] Logged in as '%s'", username)
        return data

    async def refresh(self) -> None:
        """
        Refresh the access token, joining a refresh that is already running.

        Raises:
            ReauthenticationRequiredError: The server refused the refresh token
        """
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.create_task(self._refresh_once())
            self._refresh_task = task
        # Shielded so one cancelled caller does not cancel the refresh for the rest
        await asyncio.shield(task)

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a protected request. On 401/403 refresh once and retry once;
        the retry's response is returned whatever its status.
        """
        generation = self._generation
        response = await self._http_client.request(method, url, **kwargs)
        if response.status_code not in AUTH_FAILURE_STATUSES:
            return response

        if self._generation == generation:
            logger.info(
                "[SessionDriver] %s %s answered %s, refreshing",
                method,
                url,
                response.status_code,
            )
            await self.refresh()
        else:
            logger.debug(
                "[SessionDriver] Token already refreshed, retrying %s %s", method, url
            )

        return await self._http_client.request(method, url, **kwargs)

    async def logout(self) -> None:
        """Always discards the local session, even when the server call fails."""
        self.stop_auto_refresh()
        await self._end_session()

    async def _end_session(self) -> None:
        try:
            await self._http_client.post("/logout")
        finally:
            self.countdown.clear()
            self._http_client.cookies.clear()
            logger.info("[SessionDriver] Session cleared")

    def start_auto_refresh(
        self, margin: float = 5.0, min_interval: float = 1.0
    ) -> asyncio.Task[None]:
        """
        Refresh ``margin`` seconds before each access-token expiry for as long
        as the refresh token lives. Replaces a previously started loop.
        """
        self.stop_auto_refresh()
        self._auto_refresh_task = asyncio.create_task(
            self._auto_refresh_loop(margin, min_interval)
        )
        return self._auto_refresh_task

    def stop_auto_refresh(self) -> None:
        task = self._auto_refresh_task
        self._auto_refresh_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def close(self) -> None:
        self.stop_auto_refresh()
        if self._owns_client:
            await self._http_client.aclose()

    async def _refresh_once(self) -> None:
        try:
            await self._refresh_and_update()
        finally:
            self._refresh_task = None

    async def _refresh_and_update(self) -> None:
        response = await self._http_client.post("/refresh")
        if response.status_code != 200:
            message = _error_message(response, default="Session expired")
            logger.info(
                "[SessionDriver] Refresh rejected (%s): %s, logging out",
                response.status_code,
                message,
            )
            try:
                await self._end_session()
            except httpx.HTTPError as exc:
                logger.warning(
                    "[SessionDriver] Server logout failed after rejected refresh: %r",
                    exc,
                )
            await self._notify_reauthentication_required()
            raise ReauthenticationRequiredError(
                message, status_code=response.status_code
            )

        data = RefreshResponseModel.model_validate(response.json())
        self.countdown.update(
            access_expires_at=data.access_expires_at,
            refresh_expires_at=data.refresh_expires_at,
        )
        self._generation += 1
        logger.debug("[SessionDriver] Access token refreshed")

    async def _notify_reauthentication_required(self) -> None:
        if self.on_reauthentication_required is None:
            return
        result = self.on_reauthentication_required()
        if inspect.isawaitable(result):
            await result

    async def _auto_refresh_loop(self, margin: float, min_interval: float) -> None:
        while self.countdown.is_active:
            delay = max(min_interval, self.countdown.seconds_until_refresh(margin))
            await self._sleep(delay)
            if not self.countdown.is_active:
                break
            try:
                await self.refresh()
            except ReauthenticationRequiredError:
                return
            except httpx.HTTPError as exc:
                # Retried on the next tick while the refresh token lives
                logger.warning("[SessionDriver] Auto-refresh failed: %r", exc)
        logger.debug("[SessionDriver] Auto-refresh stopped")


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or default)
    return default
