from typing import cast

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyCookie

from src.auth.cookies import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE
from src.auth.exceptions import MissingTokenException
from src.auth.identity import IdentityProvider
from src.auth.registry import RefreshTokenRegistry
from src.auth.schemas import Identity
from src.auth.services import SessionService
from src.auth.tokens import TokenCodec, TokenKind
from src.main.config import Config, get_settings

access_token_cookie = APIKeyCookie(
    name=ACCESS_TOKEN_COOKIE, scheme_name="access-token", auto_error=False
)
refresh_token_cookie = APIKeyCookie(
    name=REFRESH_TOKEN_COOKIE, scheme_name="refresh-token", auto_error=False
)


def get_token_codec(settings: Config = Depends(get_settings)) -> TokenCodec:
    return TokenCodec.from_config(settings.jwt)


async def get_refresh_registry(request: Request) -> RefreshTokenRegistry:
    """
    Provide the shared refresh-token registry stored on app.state.
    """
    registry = getattr(request.app.state, "refresh_registry", None)
    if registry is None:
        raise RuntimeError(
            "Refresh registry is not initialized. Ensure startup lifecycle ran."
        )
    return cast(RefreshTokenRegistry, registry)


async def get_identity_provider(request: Request) -> IdentityProvider:
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise RuntimeError(
            "Identity provider is not initialized. Ensure startup lifecycle ran."
        )
    return cast(IdentityProvider, provider)


def get_session_service(
    codec: TokenCodec = Depends(get_token_codec),
    registry: RefreshTokenRegistry = Depends(get_refresh_registry),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    settings: Config = Depends(get_settings),
) -> SessionService:
    return SessionService(
        codec=codec,
        registry=registry,
        identity_provider=identity_provider,
        rotate_refresh_tokens=settings.jwt.REFRESH_TOKEN_ROTATION,
    )


async def get_current_identity(
    request: Request,
    access_token: str | None = Security(access_token_cookie),
    codec: TokenCodec = Depends(get_token_codec),
) -> Identity:
    """
    Guard for protected endpoints.

    Raises:
        MissingTokenException: No access token cookie (401)
        InvalidOrExpiredTokenException: Bad signature, wrong kind or expired (403)
    """
    if not access_token:
        raise MissingTokenException()

    identity = codec.verify(access_token, TokenKind.ACCESS)
    request.state.identity = identity
    return identity
