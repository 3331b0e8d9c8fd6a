from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.main.config import config
import src.main.sentry as sentry_module


@pytest.fixture(autouse=True)
def reset_sentry_state(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    monkeypatch.setattr(sentry_module, "_sentry_initialized", False)
    init_mock = MagicMock()
    monkeypatch.setattr(sentry_module.sentry_sdk, "init", init_mock)
    monkeypatch.setattr(config.app, "DEBUG", False)
    monkeypatch.setattr(config.app, "TESTING", False)
    monkeypatch.setattr(config.sentry, "SENTRY_ENABLED", True)
    monkeypatch.setattr(config.sentry, "SENTRY_DSN", "http://key@example.com/1")
    return init_mock


@pytest.mark.parametrize(
    ("section", "field", "value"),
    [
        ("app", "DEBUG", True),
        ("app", "TESTING", True),
        ("sentry", "SENTRY_ENABLED", False),
        ("sentry", "SENTRY_DSN", None),
    ],
)
def test_init_sentry_skips(
    monkeypatch: pytest.MonkeyPatch,
    reset_sentry_state: MagicMock,
    section: str,
    field: str,
    value: object,
) -> None:
    monkeypatch.setattr(getattr(config, section), field, value)

    assert sentry_module.init_sentry() is False

    reset_sentry_state.assert_not_called()
    assert sentry_module._sentry_initialized is False


def test_init_sentry_initializes_once(
    monkeypatch: pytest.MonkeyPatch, reset_sentry_state: MagicMock
) -> None:
    monkeypatch.setattr(config.sentry, "SENTRY_ENV", "staging")
    monkeypatch.setattr(config.app, "VERSION", "1.2.3")

    assert sentry_module.init_sentry() is True
    assert sentry_module.init_sentry() is True

    reset_sentry_state.assert_called_once()
    kwargs = reset_sentry_state.call_args.kwargs
    assert kwargs["environment"] == "staging"
    assert kwargs["release"] == "1.2.3"
    assert kwargs["send_default_pii"] is False
