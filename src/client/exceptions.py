class SessionClientError(Exception):
    """Base error of the client-side session driver."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class LoginFailedError(SessionClientError):
    """The server rejected the login; ``message`` carries its explanation."""


class ReauthenticationRequiredError(SessionClientError):
    """Silent refresh failed and the local session was discarded; log in again."""
