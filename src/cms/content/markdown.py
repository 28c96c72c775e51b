"""Markdown content with YAML frontmatter on top of a storage provider."""
import re
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field

from cms.storage.base import FileEntry, StorageProvider
from cms.validation import (
    MAX_FILE_SIZE,
    sanitize_frontmatter,
    validate_file_path,
    validate_file_size,
)

logger = structlog.get_logger()

FRONTMATTER_PATTERN = re.compile(
    r"^---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)(.*)$",
    re.DOTALL,
)


class MarkdownData(BaseModel):
    """Parsed markdown file.

    Attributes:
        data: Frontmatter mapping.
        content: Markdown body after the frontmatter block.
    """

    data: dict[str, Any] = Field(default_factory=dict)
    content: str = ""


def parse_markdown(raw: str) -> MarkdownData:
    """Split YAML frontmatter from the markdown body.

    Missing, malformed or non-mapping frontmatter yields an empty mapping
    and the raw text as the body.

    Args:
        raw: Raw file content with optional frontmatter.

    Returns:
        Parsed frontmatter and body.
    """
    match = FRONTMATTER_PATTERN.match(raw)
    if not match:
        return MarkdownData(data={}, content=raw)

    yaml_content = match.group(1)
    body = match.group(2)

    try:
        data = yaml.safe_load(yaml_content)
    except yaml.YAMLError:
        return MarkdownData(data={}, content=raw)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return MarkdownData(data={}, content=raw)

    return MarkdownData(data=data, content=body)


def stringify_markdown(data: dict[str, Any], content: str) -> str:
    """Serialize frontmatter and body back into a markdown file.

    An empty mapping produces the bare body, unless the body itself would
    be read back as frontmatter.
    """
    if not data and not FRONTMATTER_PATTERN.match(content):
        return content

    frontmatter = yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"---\n{frontmatter}---\n{content}"


class MarkdownContent:
    """Validated read/write access to markdown content items.

    Every path is validated before it reaches the storage provider.
    Size is enforced after reading and before writing.
    """

    def __init__(self, storage: StorageProvider, max_file_size: int = MAX_FILE_SIZE) -> None:
        """Initialize content layer.

        Args:
            storage: Backend that persists content.
            max_file_size: Size ceiling in bytes for serialized files.
        """
        self.storage = storage
        self.max_file_size = max_file_size

    def get(self, file_path: str) -> MarkdownData:
        """Read and parse a markdown file.

        Raises:
            InvalidPathError: If the path is unsafe.
            NotFoundError: If the file does not exist.
            FileTooLargeError: If the stored file exceeds the size ceiling.
        """
        path = validate_file_path(file_path)
        raw = self.storage.read_file(path)
        validate_file_size(len(raw.encode("utf-8")), self.max_file_size)
        return parse_markdown(raw)

    def save(self, file_path: str, data: dict[str, Any], content: str) -> None:
        """Sanitize, serialize and write a markdown file.

        Raises:
            InvalidPathError: If the path is unsafe.
            FileTooLargeError: If the serialized file exceeds the size ceiling;
                nothing is written.
        """
        path = validate_file_path(file_path)
        markdown = stringify_markdown(sanitize_frontmatter(data), content)
        size = len(markdown.encode("utf-8"))
        validate_file_size(size, self.max_file_size)
        self.storage.write_file(path, markdown)
        logger.info("content_saved", path=path, size=size)

    def delete(self, file_path: str) -> None:
        """Delete a markdown file.

        Raises:
            InvalidPathError: If the path is unsafe.
            NotFoundError: If the file does not exist.
        """
        path = validate_file_path(file_path)
        self.storage.delete_file(path)
        logger.info("content_deleted", path=path)

    def list_directory(self, directory: str = "") -> list[FileEntry]:
        """List markdown files and subdirectories of ``directory``."""
        validated = validate_file_path(directory) if directory else ""
        return self.storage.list_files(validated)

    def list_files(self, directory: str = "") -> list[str]:
        """List paths of markdown files directly under ``directory``."""
        return [entry.path for entry in self.list_directory(directory) if entry.type == "file"]

    def exists(self, file_path: str) -> bool:
        """Check whether a markdown file exists."""
        return self.storage.exists(validate_file_path(file_path))
