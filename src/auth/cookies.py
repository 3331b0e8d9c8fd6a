from datetime import timedelta

from fastapi import Response

from src.auth.tokens import IssuedToken
from src.main.config import CookieConfig

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"


def set_token_cookie(
    response: Response,
    name: str,
    issued: IssuedToken,
    ttl: timedelta,
    cookie_config: CookieConfig,
) -> None:
    """
    Set a token cookie whose max-age equals the token TTL, so the browser
    drops the cookie at the moment the token stops verifying.
    """
    response.set_cookie(
        key=name,
        value=issued.token,
        max_age=int(ttl.total_seconds()),
        path=cookie_config.COOKIE_PATH,
        domain=cookie_config.COOKIE_DOMAIN,
        secure=cookie_config.COOKIE_SECURE,
        httponly=cookie_config.COOKIE_HTTPONLY,
        samesite=cookie_config.COOKIE_SAMESITE,
    )


def clear_token_cookies(response: Response, cookie_config: CookieConfig) -> None:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(
            key=name,
            path=cookie_config.COOKIE_PATH,
            domain=cookie_config.COOKIE_DOMAIN,
            secure=cookie_config.COOKIE_SECURE,
            httponly=cookie_config.COOKIE_HTTPONLY,
            samesite=cookie_config.COOKIE_SAMESITE,
        )
