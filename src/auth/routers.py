from typing import Annotated

from fastapi import APIRouter, Depends, Response, Security

from src.auth.cookies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    clear_token_cookies,
    set_token_cookie,
)
from src.auth.dependencies import (
    get_current_identity,
    get_session_service,
    refresh_token_cookie,
)
from src.auth.schemas import (
    Identity,
    IdentityViewModel,
    LoginRequestModel,
    LoginResponseModel,
    RefreshResponseModel,
)
from src.auth.services import SessionService
from src.auth.tokens import TokenKind
from src.core.schemas import MessageResponse
from src.main.config import Config, get_settings

router = APIRouter()


@router.post("/login", response_model=LoginResponseModel)
async def login(
    response: Response,
    credentials: LoginRequestModel,
    service: Annotated[SessionService, Depends(get_session_service)],
    settings: Annotated[Config, Depends(get_settings)],
) -> LoginResponseModel:
    """
    Start a session and set both token cookies.
    """
    session = await service.login(credentials.username, credentials.password)

    set_token_cookie(
        response,
        ACCESS_TOKEN_COOKIE,
        session.access,
        service.codec.ttl(TokenKind.ACCESS),
        settings.cookies,
    )
    set_token_cookie(
        response,
        REFRESH_TOKEN_COOKIE,
        session.refresh,
        service.codec.ttl(TokenKind.REFRESH),
        settings.cookies,
    )
    return LoginResponseModel(
        message="Login successful",
        access_expires_at=session.access.expires_at,
        refresh_expires_at=session.refresh.expires_at,
    )


@router.post(
    "/refresh",
    response_model=RefreshResponseModel,
    response_model_exclude_none=True,
)
async def refresh(
    response: Response,
    service: Annotated[SessionService, Depends(get_session_service)],
    settings: Annotated[Config, Depends(get_settings)],
    refresh_token: str | None = Security(refresh_token_cookie),
) -> RefreshResponseModel:
    """
    Issue a new access token for a registered, unexpired refresh token.
    """
    session = await service.refresh(refresh_token)

    set_token_cookie(
        response,
        ACCESS_TOKEN_COOKIE,
        session.access,
        service.codec.ttl(TokenKind.ACCESS),
        settings.cookies,
    )
    if session.refresh is not None:
        set_token_cookie(
            response,
            REFRESH_TOKEN_COOKIE,
            session.refresh,
            service.codec.ttl(TokenKind.REFRESH),
            settings.cookies,
        )

    return RefreshResponseModel(
        message="Access token refreshed",
        access_expires_at=session.access.expires_at,
        refresh_expires_at=session.refresh.expires_at if session.refresh else None,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    service: Annotated[SessionService, Depends(get_session_service)],
    settings: Annotated[Config, Depends(get_settings)],
    refresh_token: str | None = Security(refresh_token_cookie),
) -> MessageResponse:
    await service.logout(refresh_token)
    clear_token_cookies(response, settings.cookies)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=IdentityViewModel)
async def read_current_identity(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> IdentityViewModel:
    """Protected endpoint returning the identity behind the access token."""
    return IdentityViewModel(id=identity.id, username=identity.username)
