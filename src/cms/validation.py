"""Input validation for paths, credentials and frontmatter."""

import posixpath
import re
from datetime import date, datetime
from typing import Any

from cms.errors import (
    FileTooLargeError,
    InvalidPasswordError,
    InvalidPathError,
    InvalidUsernameError,
)

MAX_USERNAME_LENGTH = 100
MAX_PASSWORD_LENGTH = 1000
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
USERNAME_PATTERN = KEY_PATTERN

DANGEROUS_CHARACTERS = re.compile(r'[<>:"|?*]')
RESERVED_NAMES = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)

_SCALAR_TYPES = (bool, int, float, date, datetime)


def validate_file_path(file_path: object) -> str:
    """Validate and normalize a relative content path.

    The traversal check runs on the raw value, before normalization, so
    that segments like ``a/../b`` are rejected rather than silently
    collapsed.

    Args:
        file_path: Untrusted path value.

    Returns:
        The normalized relative path.

    Raises:
        InvalidPathError: If the path is empty, contains a null byte,
            a traversal sequence, dangerous characters, is absolute,
            or names a reserved device.
    """
    if not file_path or not isinstance(file_path, str):
        raise InvalidPathError("Invalid file path", file_path)

    if "\0" in file_path:
        raise InvalidPathError("Invalid file path: null byte detected", file_path)

    if ".." in file_path:
        raise InvalidPathError(
            "Invalid file path: directory traversal detected", file_path
        )

    normalized = posixpath.normpath(file_path)

    if normalized.startswith(("/", "\\")):
        raise InvalidPathError(
            "Invalid file path: directory traversal detected", file_path
        )

    if DANGEROUS_CHARACTERS.search(normalized) or any(
        RESERVED_NAMES.match(segment) for segment in normalized.split("/")
    ):
        raise InvalidPathError(
            "Invalid file path: contains dangerous characters", file_path
        )

    if normalized == ".":
        raise InvalidPathError("Invalid file path", file_path)

    return normalized


def validate_username(username: object) -> bool:
    """Validate a login username.

    Raises:
        InvalidUsernameError: If empty, too long, or not ``[a-zA-Z0-9_-]+``.
    """
    if not username or not isinstance(username, str):
        raise InvalidUsernameError("Username is required")

    if len(username) > MAX_USERNAME_LENGTH:
        raise InvalidUsernameError(
            f"Username must be {MAX_USERNAME_LENGTH} characters or less"
        )

    if not USERNAME_PATTERN.match(username):
        raise InvalidUsernameError(
            "Username must contain only letters, numbers, underscores, and hyphens"
        )

    return True


def validate_password(password: object, min_length: int = 0) -> bool:
    """Validate a login password.

    Only length is checked. Strength policy is left to the operator via
    ``min_length``.

    Raises:
        InvalidPasswordError: If empty, longer than the maximum, or shorter
            than ``min_length``.
    """
    if not password or not isinstance(password, str):
        raise InvalidPasswordError("Password is required")

    if len(password) > MAX_PASSWORD_LENGTH:
        raise InvalidPasswordError(
            f"Password must be {MAX_PASSWORD_LENGTH} characters or less"
        )

    if len(password) < min_length:
        raise InvalidPasswordError(
            f"Password must be at least {min_length} characters"
        )

    return True


def validate_file_size(size: int, limit: int = MAX_FILE_SIZE) -> bool:
    """Raise FileTooLargeError if ``size`` exceeds ``limit`` bytes."""
    if size > limit:
        raise FileTooLargeError(size, limit)
    return True


def _strip_null(value: str) -> str:
    return value.replace("\0", "")


def sanitize_frontmatter(data: dict[str, Any]) -> dict[str, Any]:
    """Sanitize a frontmatter mapping before it is serialized.

    Keys that are not ``[a-zA-Z0-9_-]+`` are dropped, null bytes are
    removed from strings (including string list elements), nested
    mappings are sanitized recursively, and values of unsupported types
    are dropped.

    Args:
        data: Untrusted frontmatter mapping.

    Returns:
        A new sanitized mapping.
    """
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        if not isinstance(key, str) or not KEY_PATTERN.match(key):
            continue

        if isinstance(value, str):
            sanitized[key] = _strip_null(value)
        elif value is None or isinstance(value, _SCALAR_TYPES):
            sanitized[key] = value
        elif isinstance(value, (list, tuple)):
            sanitized[key] = [
                _strip_null(item) if isinstance(item, str) else item
                for item in value
            ]
        elif isinstance(value, dict):
            sanitized[key] = sanitize_frontmatter(value)

    return sanitized
