"""Exceptions raised by the stores and the :class:`.Authenticator`."""


class RegistrationFailed(RuntimeError):
    """Could not create a new user."""


class Conflict(RegistrationFailed):
    """A uniqueness constraint on the users table was violated."""

    field = ''
    """The name of the conflicting field."""


class UsernameTaken(Conflict):
    """Username is already in use."""

    field = 'username'


class EmailTaken(Conflict):
    """Email address is already in use."""

    field = 'email'


class WeakPassword(RegistrationFailed, ValueError):
    """Password does not meet the length requirements."""

    def __init__(self, message: str, too_long: bool = False) -> None:
        super().__init__(message)
        self.too_long = too_long


class MissingUserData(RegistrationFailed, ValueError):
    """A required registration field is empty."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message)
        self.field = field


class InvalidCredentials(RuntimeError):
    """Username or password is not correct; deliberately undifferentiated."""


class InvalidSession(RuntimeError):
    """Session token is unknown, expired or already rotated away."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class Unavailable(RuntimeError):
    """A backing store timed out or refused the connection. Retryable."""


class ConfigurationError(RuntimeError):
    """Raised when a required service parameter is missing."""
