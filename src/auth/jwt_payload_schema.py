from typing import Literal, TypedDict


class JWTPayload(TypedDict):
    """Type definition for session JWT payload"""

    sub: str  # Identity ID
    username: str
    iat: int  # Issued-at timestamp
    exp: int  # Expiration timestamp
    jti: str  # Unique per token, so two logins in one second never collide
    mode: Literal["access_token", "refresh_token"]
