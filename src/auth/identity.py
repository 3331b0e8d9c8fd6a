from typing import Protocol

from loggers import get_logger
from src.auth.schemas import Identity
from src.core.utils.security import hash_password, verify_password
from src.main.config import IdentityUser

logger = get_logger(__name__)

# Verified against when the username is unknown so both failure paths cost
# the same amount of hashing work.
DUMMY_PASSWORD_HASH = hash_password("dummy-password")


class IdentityProvider(Protocol):
    async def verify_credentials(self, username: str, password: str) -> Identity | None:
        """
        Return the identity for valid credentials, ``None`` otherwise.
        Backend failures are raised, not reported as ``None``.
        """
        ...


class InMemoryIdentityProvider:
    """Checks credentials against pre-hashed users supplied by configuration."""

    def __init__(self, users: list[IdentityUser]) -> None:
        self._users = {user.username: user for user in users}

    async def verify_credentials(self, username: str, password: str) -> Identity | None:
        user = self._users.get(username)
        if user is None:
            logger.debug("[IdentityProvider] Unknown username '%s'", username)
            await verify_password(password, DUMMY_PASSWORD_HASH)
            return None

        if not await verify_password(password, user.password_hash):
            logger.debug("[IdentityProvider] Incorrect password for '%s'", username)
            return None

        return Identity(id=user.id, username=user.username)
