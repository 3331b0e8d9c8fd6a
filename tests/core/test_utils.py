from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.core.utils import security
from src.core.utils.datetime_utils import ensure_aware_utc, get_utc_now, seconds_until


def test_get_utc_now_is_aware() -> None:
    assert get_utc_now().utcoffset() == timedelta(0)


def test_ensure_aware_utc_handles_naive_and_offset_datetimes() -> None:
    naive = datetime(2024, 1, 1, 12, 0)
    offset = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    assert ensure_aware_utc(naive) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert ensure_aware_utc(offset) == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_seconds_until_clamps_and_truncates() -> None:
    now = datetime(2024, 1, 1, tzinfo=ZoneInfo("UTC"))

    assert seconds_until(now + timedelta(seconds=19.9), now) == 19
    assert seconds_until(now - timedelta(seconds=5), now) == 0
    assert seconds_until(None, now) == 0


@pytest.mark.asyncio
async def test_hash_and_verify_password() -> None:
    hashed = security.hash_password("strong-pass")

    assert await security.verify_password("strong-pass", hashed) is True
    assert await security.verify_password("other", hashed) is False


@pytest.mark.asyncio
async def test_verify_password_with_unknown_hash_format() -> None:
    assert await security.verify_password("pw", "plain-text") is False


def test_token_digest_is_stable_and_opaque() -> None:
    digest = security.token_digest("header.payload.signature")

    assert digest == security.token_digest("header.payload.signature")
    assert len(digest) == 64
    assert "payload" not in digest
