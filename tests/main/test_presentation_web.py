from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
import httpx
import pytest

from src.main.config import config
from src.main.route_logging import collect_api_routes
from src.main.web import build_cors_options


def test_application_exposes_session_endpoints(app: FastAPI) -> None:
    routes = {
        (route.path, method)
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }

    assert {
        ("/login", "POST"),
        ("/refresh", "POST"),
        ("/logout", "POST"),
        ("/me", "GET"),
        ("/health/", "GET"),
        ("/time/", "GET"),
    } <= routes


def test_cors_is_configured_with_credentials(app: FastAPI) -> None:
    cors = next(m for m in app.user_middleware if m.cls is CORSMiddleware)

    assert cors.kwargs["allow_credentials"] is True
    assert cors.kwargs["allow_origins"] == config.app.CORS_ALLOWED_ORIGINS


def test_wildcard_origin_with_credentials_is_rejected() -> None:
    app_config = config.app.model_copy(update={"CORS_ALLOWED_ORIGINS": ["*"]})

    with pytest.raises(ValueError, match="explicit origins"):
        build_cors_options(app_config)


def test_wildcard_origin_without_credentials_is_allowed() -> None:
    app_config = config.app.model_copy(
        update={"CORS_ALLOWED_ORIGINS": ["*"], "CORS_ALLOW_CREDENTIALS": False}
    )

    options = build_cors_options(app_config)

    assert options["allow_origins"] == ["*"]
    assert options["allow_credentials"] is False


def test_route_collection_skips_docs(app: FastAPI) -> None:
    paths = {route.path for route in collect_api_routes(app)}

    assert "/openapi.json" not in paths
    assert "/login" in paths


@pytest.mark.asyncio
async def test_preflight_from_allowed_origin(async_client: httpx.AsyncClient) -> None:
    origin = config.app.CORS_ALLOWED_ORIGINS[0]

    response = await async_client.options(
        "/login",
        headers={
            "Origin": origin,
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == origin
    assert response.headers["access-control-allow-credentials"] == "true"
