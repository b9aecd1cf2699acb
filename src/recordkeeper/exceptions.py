"""Error taxonomy shared by every Record Keeper component."""


class RecordKeeperError(Exception):
    """Base exception for Record Keeper errors."""


class ValidationError(RecordKeeperError):
    """Input was rejected before it reached storage."""


class NothingToUpdateError(ValidationError):
    """An update was requested without any field to change."""


class InvalidDatabasePathError(ValidationError):
    """Database location does not have a recognized extension."""


class ConfigError(ValidationError):
    """Raised when configuration is invalid or missing."""


class NotFoundError(RecordKeeperError):
    """Record with the given key does not exist."""


class StudentNotFoundError(NotFoundError):
    """Student with given ID does not exist."""


class UserNotFoundError(NotFoundError):
    """User with given ID does not exist."""


class ConflictError(RecordKeeperError):
    """Request conflicts with existing data."""


class EmailExistsError(ConflictError):
    """A user with this email already exists."""


class AuthError(RecordKeeperError):
    """Authentication or authorization failure."""


class InvalidCredentialsError(AuthError):
    """Email or password did not match.

    The message is the same whether the email is unknown or the password
    is wrong.
    """

    def __init__(self, attempts_remaining: int) -> None:
        super().__init__("Invalid email or password.")
        self.attempts_remaining = attempts_remaining


class LockedOutError(AuthError):
    """The login session used up its attempts and is closed."""

    def __init__(self) -> None:
        super().__init__("Maximum number of login attempts exceeded.")


class PermissionDeniedError(AuthError):
    """The current identity may not perform the requested operation."""

    def __init__(self) -> None:
        super().__init__("Operation not permitted.")


class StorageError(RecordKeeperError):
    """The database connection or statement failed."""
