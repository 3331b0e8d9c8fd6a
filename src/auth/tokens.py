"""
Signed session tokens.

Access and refresh tokens are HMAC-signed JWTs with independent secrets, so a
leaked access secret cannot mint refresh tokens and vice versa. Each token
carries the identity claims plus its ``mode``; a token presented as the wrong
kind is rejected even if someone configured both secrets identically.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import cast
from uuid import uuid4

import jwt
from pydantic import ValidationError

from src.auth.exceptions import TokenExpiredException, TokenInvalidException
from src.auth.jwt_payload_schema import JWTPayload
from src.auth.schemas import Identity
from src.core.utils.datetime_utils import Clock, get_utc_now
from src.main.config import JWTConfig

REQUIRED_CLAIMS = ["sub", "username", "exp", "iat", "jti", "mode"]


class TokenKind(str, Enum):
    ACCESS = "access_token"
    REFRESH = "refresh_token"


@dataclass(slots=True, frozen=True)
class IssuedToken:
    token: str
    expires_at: datetime


class TokenCodec:
    def __init__(
        self,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        leeway: int = 0,
        clock: Clock = get_utc_now,
    ) -> None:
        self._secrets = {
            TokenKind.ACCESS: access_secret,
            TokenKind.REFRESH: refresh_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: access_ttl,
            TokenKind.REFRESH: refresh_ttl,
        }
        self.algorithm = algorithm
        self.leeway = leeway
        self.clock = clock

    @classmethod
    def from_config(
        cls, jwt_config: JWTConfig, clock: Clock = get_utc_now
    ) -> "TokenCodec":
        return cls(
            access_secret=jwt_config.ACCESS_TOKEN_SECRET,
            refresh_secret=jwt_config.REFRESH_TOKEN_SECRET,
            access_ttl=timedelta(seconds=jwt_config.ACCESS_TOKEN_EXPIRE_SECONDS),
            refresh_ttl=timedelta(seconds=jwt_config.REFRESH_TOKEN_EXPIRE_SECONDS),
            algorithm=jwt_config.ALGORITHM,
            leeway=jwt_config.TOKEN_LEEWAY_SECONDS,
            clock=clock,
        )

    def ttl(self, kind: TokenKind) -> timedelta:
        return self._ttls[kind]

    def issue_access(self, identity: Identity) -> IssuedToken:
        return self._issue(identity, TokenKind.ACCESS)

    def issue_refresh(self, identity: Identity) -> IssuedToken:
        return self._issue(identity, TokenKind.REFRESH)

    def verify(self, token: str, kind: TokenKind) -> Identity:
        """
        Verify signature, expiry and kind of a token.

        Args:
            token: Encoded JWT
            kind: Which secret/mode the token must match

        Returns:
            Identity: The claims carried by the token

        Raises:
            TokenExpiredException: The token is past its ``exp``
            TokenInvalidException: Malformed, wrong secret, wrong kind or missing claims
        """
        if not isinstance(token, str) or not token:
            raise TokenInvalidException()

        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredException()
        except jwt.PyJWTError:
            raise TokenInvalidException()

        payload_typed = cast(JWTPayload, payload)
        if payload_typed["mode"] != kind.value:
            raise TokenInvalidException("Invalid token type")

        try:
            return Identity(id=payload_typed["sub"], username=payload_typed["username"])
        except ValidationError:
            raise TokenInvalidException("Invalid token structure")

    def _issue(self, identity: Identity, kind: TokenKind) -> IssuedToken:
        # Whole seconds, so expires_at matches the exp claim exactly
        issued_at = self.clock().replace(microsecond=0)
        expires_at = issued_at + self._ttls[kind]

        payload: JWTPayload = {
            "sub": identity.id,
            "username": identity.username,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": str(uuid4()),
            "mode": kind.value,
        }

        encoded_jwt = jwt.encode(
            dict(payload), self._secrets[kind], algorithm=self.algorithm
        )
        return IssuedToken(token=str(encoded_jwt), expires_at=expires_at)
