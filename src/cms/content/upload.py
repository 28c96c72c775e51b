"""Binary uploads stored under collision-avoiding names."""
import time
from pathlib import PurePosixPath

import structlog

from cms.storage.base import StorageProvider
from cms.validation import MAX_FILE_SIZE, validate_file_path, validate_file_size

logger = structlog.get_logger()


def unique_filename(filename: str, timestamp_ms: int) -> str:
    """Insert a millisecond timestamp before the extension.

    ``photo.png`` becomes ``photo-1700000000000.png``; names without an
    extension get the timestamp appended.
    """
    path = PurePosixPath(filename)
    return str(path.with_name(f"{path.stem}-{timestamp_ms}{path.suffix}"))


def upload_file(
    storage: StorageProvider,
    filename: str,
    data: bytes,
    max_file_size: int = MAX_FILE_SIZE,
    timestamp_ms: int | None = None,
) -> str:
    """Validate and store an uploaded file.

    Args:
        storage: Backend to store the upload in.
        filename: Client-supplied filename.
        data: File contents.
        max_file_size: Size ceiling in bytes.
        timestamp_ms: Timestamp used for the unique name; now if None.

    Returns:
        Public URL of the stored file.

    Raises:
        InvalidPathError: If the filename is unsafe.
        FileTooLargeError: If the file exceeds the size ceiling.
    """
    safe_name = validate_file_path(filename)
    validate_file_size(len(data), max_file_size)

    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)

    stored_name = unique_filename(safe_name, timestamp_ms)
    url = storage.upload_file(stored_name, data)
    logger.info("file_uploaded", filename=stored_name, size=len(data))
    return url
