"""Admin credential checking with constant-time comparison."""

import hmac

import structlog

from cms.errors import InvalidInputError, MisconfiguredAuthError
from cms.validation import validate_password, validate_username

logger = structlog.get_logger()


def timing_safe_equal(provided: str, expected: str) -> bool:
    """Compare two strings in time independent of their contents.

    When lengths differ, the provided value is still compared against a
    zero buffer of its own length so timing does not reveal the expected
    length.

    Args:
        provided: Untrusted value submitted by the client.
        expected: Configured secret value.

    Returns:
        True if the values are equal.
    """
    provided_bytes = provided.encode("utf-8")
    expected_bytes = expected.encode("utf-8")

    if len(provided_bytes) != len(expected_bytes):
        hmac.compare_digest(provided_bytes, bytes(len(provided_bytes)))
        return False

    return hmac.compare_digest(provided_bytes, expected_bytes)


class CredentialChecker:
    """Checks submitted credentials against the configured administrator."""

    def __init__(
        self,
        admin_username: str,
        admin_password: str,
        password_min_length: int = 0,
    ) -> None:
        """Initialize credential checker.

        Args:
            admin_username: Configured administrator username.
            admin_password: Configured administrator password.
            password_min_length: Minimum accepted password length.
        """
        self._admin_username = admin_username
        self._admin_password = admin_password
        self._password_min_length = password_min_length

    @property
    def is_configured(self) -> bool:
        return bool(self._admin_username and self._admin_password)

    def validate(self, username: object, password: object) -> bool:
        """Validate submitted credentials.

        Malformed input yields False rather than an error, so callers cannot
        tell which field was rejected. Both comparisons always run.

        Args:
            username: Submitted username.
            password: Submitted password.

        Returns:
            True only if both username and password match.

        Raises:
            MisconfiguredAuthError: If admin credentials are not configured.
        """
        if not self.is_configured:
            raise MisconfiguredAuthError(
                "CMS_ADMIN_USERNAME and CMS_ADMIN_PASSWORD must be set"
            )

        try:
            validate_username(username)
            validate_password(password, min_length=self._password_min_length)
        except InvalidInputError:
            return False

        username_match = timing_safe_equal(username, self._admin_username)  # type: ignore[arg-type]
        password_match = timing_safe_equal(password, self._admin_password)  # type: ignore[arg-type]

        return username_match and password_match
