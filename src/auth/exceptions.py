from src.core.errors.exceptions import (
    AccessForbiddenException,
    InfrastructureException,
    UnauthorizedException,
)


class InvalidCredentialsException(UnauthorizedException):
    default_message = "Invalid credentials"


class MissingTokenException(UnauthorizedException):
    default_message = "Missing token"


class InvalidOrExpiredTokenException(AccessForbiddenException):
    default_message = "Token invalid or expired"


class TokenExpiredException(InvalidOrExpiredTokenException):
    default_message = "Token expired"


class TokenInvalidException(InvalidOrExpiredTokenException):
    default_message = "Invalid token"


class MissingRefreshTokenException(AccessForbiddenException):
    default_message = "Missing refresh token"


class TokenNotRegisteredException(AccessForbiddenException):
    """Refresh token was revoked by logout or was never issued by this server."""

    default_message = "Invalid refresh token"


class IdentityProviderUnavailableException(InfrastructureException):
    default_message = "Server error"
