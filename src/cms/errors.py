"""Error hierarchy for the CMS.

Each error carries the HTTP status it surfaces as, so handlers can map
failures to responses without knowing every subclass.
"""


class CMSError(Exception):
    """Base class for CMS errors."""

    status_code = 500


class InvalidInputError(CMSError):
    """Raised when untrusted input fails validation."""

    status_code = 400


class InvalidPathError(InvalidInputError):
    """Raised when a content path is unsafe or malformed."""

    def __init__(self, message: str, path: object) -> None:
        """Initialize path error.

        Args:
            message: Error description.
            path: The offending path value.
        """
        super().__init__(message)
        self.path = path


class InvalidUsernameError(InvalidInputError):
    """Raised when a username fails validation."""


class InvalidPasswordError(InvalidInputError):
    """Raised when a password fails validation."""


class FileTooLargeError(InvalidInputError):
    """Raised when content exceeds the configured size ceiling."""

    status_code = 413

    def __init__(self, size: int, limit: int) -> None:
        """Initialize size error.

        Args:
            size: Offending size in bytes.
            limit: Maximum allowed size in bytes.
        """
        super().__init__(
            f"File size ({size} bytes) exceeds maximum allowed size ({limit} bytes)"
        )
        self.size = size
        self.limit = limit


class NotFoundError(CMSError):
    """Raised when a content item or upload does not exist."""

    status_code = 404

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class StorageUnavailableError(CMSError):
    """Raised when the storage backend fails for reasons other than absence."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigurationError(CMSError):
    """Raised when required server configuration is missing or malformed."""


class MisconfiguredAuthError(ConfigurationError):
    """Raised when admin credentials are not configured."""


class MisconfiguredSecretError(ConfigurationError):
    """Raised when the session secret is missing or too short."""
