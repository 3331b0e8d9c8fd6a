import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from loggers import get_logger
from src.core.middleware import register_middlewares
from src.main.config import AppConfig, config
from src.main.lifespan import lifespan
from src.main.presentation import include_exceptions_handlers, include_routers
from src.main.route_logging import log_routes_summary

logging.getLogger("uvicorn.access").disabled = True
logger = get_logger(__name__)


def build_cors_options(app_config: AppConfig) -> dict[str, Any]:
    """
    CORS options for cookie-authenticated clients.

    Browsers refuse credentialed responses for a wildcard origin, so token
    cookies would never reach the API; that combination fails at startup.
    """
    if app_config.CORS_ALLOW_CREDENTIALS and "*" in app_config.CORS_ALLOWED_ORIGINS:
        raise ValueError(
            "CORS_ALLOWED_ORIGINS must list explicit origins when credentials are allowed"
        )
    return {
        "allow_origins": app_config.CORS_ALLOWED_ORIGINS,
        "allow_credentials": app_config.CORS_ALLOW_CREDENTIALS,
        "allow_methods": app_config.CORS_ALLOWED_METHODS,
        "allow_headers": app_config.CORS_ALLOWED_HEADERS,
        "expose_headers": app_config.CORS_EXPOSE_HEADERS,
    }


def get_application() -> FastAPI:
    application = FastAPI(
        title=config.app.PROJECT_NAME,
        debug=config.app.DEBUG,
        version=config.app.VERSION,
        lifespan=lifespan,
    )

    register_middlewares(application)

    application.add_middleware(
        CORSMiddleware,  # noqa
        **build_cors_options(config.app),
    )

    include_exceptions_handlers(application)

    include_routers(application)
    log_routes_summary(application, include_debug_list=config.app.DEBUG)

    application.add_middleware(SentryAsgiMiddleware)

    return application


app = get_application()
