"""Collections: folders of markdown items read as a group."""

from typing import Any

import structlog
from pydantic import BaseModel

from cms.content.markdown import MarkdownContent
from cms.errors import CMSError
from cms.storage.base import MARKDOWN_EXTENSION

logger = structlog.get_logger()


class CollectionItem(BaseModel):
    """One markdown item in a collection.

    Attributes:
        slug: Filename without the ``.md`` extension.
        data: Frontmatter mapping.
        content: Markdown body.
    """

    slug: str
    data: dict[str, Any]
    content: str


def _slug(path: str) -> str:
    return path.rsplit("/", 1)[-1].removesuffix(MARKDOWN_EXTENSION)


def get_collection_items(content: MarkdownContent, folder: str) -> list[CollectionItem]:
    """Read every markdown item in ``folder``.

    Items that fail to load are logged and skipped.

    Args:
        content: Content layer to read through.
        folder: Collection folder under the content root, e.g. ``blog``.

    Returns:
        Items in listing order.
    """
    items: list[CollectionItem] = []

    for path in content.list_files(folder):
        if not path.endswith(MARKDOWN_EXTENSION):
            continue
        try:
            parsed = content.get(path)
        except CMSError as e:
            logger.warning("collection_item_skipped", path=path, error=str(e))
            continue
        items.append(CollectionItem(slug=_slug(path), data=parsed.data, content=parsed.content))

    return items


def get_collection_item(
    content: MarkdownContent, folder: str, slug: str
) -> CollectionItem | None:
    """Read a single item by slug.

    Returns:
        The item, or None if it is missing or cannot be read.
    """
    path = f"{folder}/{slug}{MARKDOWN_EXTENSION}"
    try:
        if not content.exists(path):
            return None
        parsed = content.get(path)
    except CMSError as e:
        logger.warning("collection_item_unavailable", path=path, error=str(e))
        return None

    return CollectionItem(slug=slug, data=parsed.data, content=parsed.content)


def get_collections(content: MarkdownContent, base_dir: str = "") -> list[str]:
    """Names of the collection folders directly under ``base_dir``."""
    return [
        entry.name
        for entry in content.list_directory(base_dir)
        if entry.type == "directory"
    ]
