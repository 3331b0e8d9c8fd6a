import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from loggers import get_logger
from src.main.config import config

logger = get_logger(__name__)

_sentry_initialized = False


def init_sentry() -> bool:
    """
    Initialize the Sentry client at most once per process.

    Returns:
        bool: True when Sentry is active after the call
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    if config.app.DEBUG or config.app.TESTING:
        logger.info("[Sentry] DEBUG/TESTING enabled, not initializing")
        return False

    if not config.sentry.SENTRY_ENABLED or not config.sentry.SENTRY_DSN:
        logger.info("[Sentry] Disabled or DSN empty, not initializing")
        return False

    sentry_sdk.init(
        dsn=config.sentry.SENTRY_DSN,
        environment=config.sentry.SENTRY_ENV,
        release=config.app.VERSION,
        send_default_pii=False,
        integrations=[
            # Breadcrumbs from INFO, events only for explicit captures and CRITICAL
            LoggingIntegration(level=logging.INFO, event_level=logging.CRITICAL),
        ],
    )
    _sentry_initialized = True
    logger.info("[Sentry] Initialized for environment '%s'", config.sentry.SENTRY_ENV)
    return True
