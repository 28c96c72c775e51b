"""Local filesystem storage, used in development."""

from pathlib import Path

import structlog

from cms.errors import InvalidPathError, NotFoundError, StorageUnavailableError
from cms.storage.base import (
    FileEntry,
    StorageProvider,
    decode_text,
    is_listable,
    join_path,
    sort_entries,
)

logger = structlog.get_logger()


class LocalStorage(StorageProvider):
    """Stores content and uploads in directories on local disk.

    Attributes:
        content_dir: Root directory for markdown content.
        uploads_dir: Root directory for uploaded files.
    """

    name = "local"

    def __init__(
        self,
        content_dir: str | Path = "public/content",
        uploads_dir: str | Path = "public/uploads",
    ) -> None:
        """Initialize local storage.

        Args:
            content_dir: Content root, relative to the working directory or absolute.
            uploads_dir: Uploads root, relative to the working directory or absolute.
        """
        self.content_dir = Path(content_dir).resolve()
        self.uploads_dir = Path(uploads_dir).resolve()

    def _resolve(self, root: Path, relative: str) -> Path:
        """Resolve ``relative`` under ``root``, refusing anything that escapes it.

        Raises:
            InvalidPathError: If the resolved path is outside ``root``.
        """
        resolved = (root / relative).resolve()
        if resolved != root and root not in resolved.parents:
            raise InvalidPathError(f"Path resolves outside allowed root: {root}", relative)
        return resolved

    def read_file(self, file_path: str) -> str:
        path = self._resolve(self.content_dir, file_path)
        try:
            data = path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise NotFoundError(file_path) from e
        except OSError as e:
            logger.error("local_read_failed", path=file_path, error=str(e))
            raise StorageUnavailableError(f"Failed to read file: {e}", file_path) from e
        return decode_text(data, file_path)

    def write_file(self, file_path: str, content: str) -> None:
        path = self._resolve(self.content_dir, file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            logger.error("local_write_failed", path=file_path, error=str(e))
            raise StorageUnavailableError(f"Failed to write file: {e}", file_path) from e

    def delete_file(self, file_path: str) -> None:
        path = self._resolve(self.content_dir, file_path)
        try:
            path.unlink()
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(file_path) from e
        except OSError as e:
            logger.error("local_delete_failed", path=file_path, error=str(e))
            raise StorageUnavailableError(f"Failed to delete file: {e}", file_path) from e

    def list_files(self, directory: str) -> list[FileEntry]:
        path = self._resolve(self.content_dir, directory) if directory else self.content_dir
        try:
            children = list(path.iterdir())
        except OSError:
            return []

        entries = [
            FileEntry(
                path=join_path(directory, child.name),
                name=child.name,
                type="directory" if child.is_dir() else "file",
            )
            for child in children
            if not child.name.startswith(".")
        ]
        return sort_entries([e for e in entries if is_listable(e)])

    def exists(self, file_path: str) -> bool:
        try:
            return self._resolve(self.content_dir, file_path).exists()
        except (InvalidPathError, OSError):
            return False

    def upload_file(self, file_path: str, data: bytes) -> str:
        path = self._resolve(self.uploads_dir, file_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("local_upload_failed", path=file_path, error=str(e))
            raise StorageUnavailableError(f"Failed to upload file: {e}", file_path) from e
        return f"/uploads/{file_path}"

    def check(self) -> None:
        if self.content_dir.exists() and not self.content_dir.is_dir():
            raise StorageUnavailableError(
                f"Content root is not a directory: {self.content_dir}"
            )
