from dataclasses import dataclass

from loggers import get_logger
from src.auth.exceptions import (
    IdentityProviderUnavailableException,
    InvalidCredentialsException,
    MissingRefreshTokenException,
    TokenExpiredException,
    TokenNotRegisteredException,
)
from src.auth.identity import IdentityProvider
from src.auth.registry import RefreshTokenRegistry
from src.auth.schemas import Identity
from src.auth.tokens import IssuedToken, TokenCodec, TokenKind
from src.core.errors.exceptions import CoreException

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class IssuedSession:
    identity: Identity
    access: IssuedToken
    refresh: IssuedToken


@dataclass(slots=True, frozen=True)
class RefreshedSession:
    identity: Identity
    access: IssuedToken
    # Set only when refresh-token rotation is enabled
    refresh: IssuedToken | None = None


class SessionService:
    """
    Login, refresh and logout of token sessions.

    The refresh token is not rotated on refresh unless ``rotate_refresh_tokens``
    is set; without rotation it stays usable until logout or its own expiry.
    """

    def __init__(
        self,
        codec: TokenCodec,
        registry: RefreshTokenRegistry,
        identity_provider: IdentityProvider,
        *,
        rotate_refresh_tokens: bool = False,
    ) -> None:
        self.codec = codec
        self.registry = registry
        self.identity_provider = identity_provider
        self.rotate_refresh_tokens = rotate_refresh_tokens

    async def login(self, username: str, password: str) -> IssuedSession:
        try:
            identity = await self.identity_provider.verify_credentials(
                username, password
            )
        except CoreException:
            raise
        except Exception as exc:
            logger.exception("[Login] Identity provider failed for '%s'", username)
            raise IdentityProviderUnavailableException(
                additional_info={"username": username}
            ) from exc

        if identity is None:
            logger.info("[Login] Rejected credentials for '%s'", username)
            raise InvalidCredentialsException()

        access = self.codec.issue_access(identity)
        refresh = self.codec.issue_refresh(identity)
        await self.registry.add(refresh.token, refresh.expires_at)

        logger.info("[Login] Session started for '%s'", identity.username)
        return IssuedSession(identity=identity, access=access, refresh=refresh)

    async def refresh(self, refresh_token: str | None) -> RefreshedSession:
        if not refresh_token:
            raise MissingRefreshTokenException()

        if not await self.registry.contains(refresh_token):
            logger.info("[Refresh] Presented refresh token is not registered")
            raise TokenNotRegisteredException()

        try:
            identity = self.codec.verify(refresh_token, TokenKind.REFRESH)
        except TokenExpiredException:
            await self.registry.remove(refresh_token)
            raise

        access = self.codec.issue_access(identity)

        if not self.rotate_refresh_tokens:
            logger.debug("[Refresh] Access token reissued for '%s'", identity.username)
            return RefreshedSession(identity=identity, access=access)

        new_refresh = self.codec.issue_refresh(identity)
        replaced = await self.registry.replace(
            refresh_token, new_refresh.token, new_refresh.expires_at
        )
        if not replaced:
            # Lost the race against a logout or another refresh of the same token
            logger.info(
                "[Refresh] Refresh token for '%s' revoked during rotation",
                identity.username,
            )
            raise TokenNotRegisteredException()

        logger.debug("[Refresh] Tokens rotated for '%s'", identity.username)
        return RefreshedSession(identity=identity, access=access, refresh=new_refresh)

    async def logout(self, refresh_token: str | None) -> None:
        if refresh_token:
            await self.registry.remove(refresh_token)
        logger.info("[Logout] Session closed")
