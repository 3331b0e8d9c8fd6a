from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from src.auth import routers as auth_routers
from src.core.errors.exceptions import (
    AccessForbiddenException,
    CoreException,
    InfrastructureException,
    UnauthorizedException,
)
from src.core.errors.handlers import (
    AccessForbiddenExceptionHandler,
    CoreExceptionHandler,
    InfrastructureExceptionHandler,
    RequestValidationExceptionHandler,
    UnauthorizedExceptionHandler,
    as_exception_handler,
)
from src.system import routers as system_routers


def include_routers(app: FastAPI) -> None:
    """
    Mount the session endpoints at the root, next to the system endpoints.
    """
    app.include_router(auth_routers.router, tags=["Auth"])
    app.include_router(system_routers.router, tags=["System"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses. Starlette resolves
    handlers by walking the exception MRO, so the most specific class wins.
    """
    app.add_exception_handler(
        InfrastructureException, as_exception_handler(InfrastructureExceptionHandler())
    )
    app.add_exception_handler(
        RequestValidationError,
        as_exception_handler(RequestValidationExceptionHandler()),
    )
    app.add_exception_handler(
        CoreException,
        as_exception_handler(CoreExceptionHandler()),
    )
    app.add_exception_handler(
        UnauthorizedException, as_exception_handler(UnauthorizedExceptionHandler())
    )
    app.add_exception_handler(
        AccessForbiddenException,
        as_exception_handler(AccessForbiddenExceptionHandler()),
    )
