from collections import Counter

from fastapi import FastAPI
from fastapi.routing import APIRoute

from loggers import get_logger

logger = get_logger(__name__)

DOCS_PATHS = frozenset({"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"})


def collect_api_routes(application: FastAPI) -> list[APIRoute]:
    """API routes registered on the app, documentation routes excluded."""
    return [
        route
        for route in application.routes
        if isinstance(route, APIRoute) and route.path not in DOCS_PATHS
    ]


def log_routes_summary(application: FastAPI, include_debug_list: bool = False) -> None:
    routes = collect_api_routes(application)

    by_method: Counter[str] = Counter()
    by_tag: Counter[str] = Counter()
    for route in routes:
        by_method.update(route.methods or ())
        by_tag.update(route.tags or ["<untagged>"])

    logger.info(
        "[Routes] total=%s methods=%s tags=%s",
        len(routes),
        dict(by_method),
        dict(by_tag),
    )

    if include_debug_list:
        for route in sorted(routes, key=lambda r: (r.path, sorted(r.methods or ()))):
            logger.debug(
                "[Routes] %s %s -> %s",
                ",".join(sorted(route.methods or ())),
                route.path,
                route.name,
            )
