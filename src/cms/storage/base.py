"""Storage provider contract shared by all backends."""

from abc import ABC, abstractmethod
from typing import Literal

from pydantic import BaseModel, Field

from cms.errors import StorageUnavailableError

MARKDOWN_EXTENSION = ".md"


class FileEntry(BaseModel):
    """A file or directory inside the content root."""

    path: str = Field(description="Relative path from the content root")
    name: str
    type: Literal["file", "directory"]


def join_path(directory: str, name: str) -> str:
    """Join a relative directory and a child name without a leading slash."""
    return f"{directory.rstrip('/')}/{name}" if directory else name


def is_listable(entry: FileEntry) -> bool:
    """Whether an entry belongs in a listing: directories and markdown files."""
    return entry.type == "directory" or entry.name.endswith(MARKDOWN_EXTENSION)


def sort_entries(entries: list[FileEntry]) -> list[FileEntry]:
    """Directories first, then by name."""
    return sorted(entries, key=lambda e: (0 if e.type == "directory" else 1, e.name))


def decode_text(data: bytes, file_path: str) -> str:
    """Decode stored bytes as UTF-8.

    Raises:
        StorageUnavailableError: If the stored file is not valid UTF-8.
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise StorageUnavailableError(
            f"File is not valid UTF-8 text: {file_path}", file_path
        ) from e


class StorageProvider(ABC):
    """Uniform persistence interface for content and uploads.

    Paths passed to these methods are relative to the content root and
    have already been validated by the caller.
    """

    name: str = "storage"

    @abstractmethod
    def read_file(self, file_path: str) -> str:
        """Read a file as UTF-8 text.

        Raises:
            NotFoundError: If the file does not exist.
            StorageUnavailableError: On any other backend failure.
        """

    @abstractmethod
    def write_file(self, file_path: str, content: str) -> None:
        """Create or overwrite a file, creating parent structure as needed."""

    @abstractmethod
    def delete_file(self, file_path: str) -> None:
        """Delete a file.

        Raises:
            NotFoundError: If the file does not exist.
        """

    @abstractmethod
    def list_files(self, directory: str) -> list[FileEntry]:
        """List markdown files and directories directly under ``directory``.

        Returns an empty list when the directory does not exist.
        """

    @abstractmethod
    def exists(self, file_path: str) -> bool:
        """Check whether a file exists. Backend errors count as absent."""

    @abstractmethod
    def upload_file(self, file_path: str, data: bytes) -> str:
        """Store binary data in the uploads namespace.

        Returns:
            URL the caller can embed to reference the upload.
        """

    @abstractmethod
    def check(self) -> None:
        """Verify the backend is reachable.

        Raises:
            StorageUnavailableError: If it is not.
        """

    def close(self) -> None:
        """Release backend clients. No-op by default."""
