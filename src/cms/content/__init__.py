"""Content module for markdown content access."""

from cms.content.collection import (
    CollectionItem,
    get_collection_item,
    get_collection_items,
    get_collections,
)
from cms.content.markdown import (
    MarkdownContent,
    MarkdownData,
    parse_markdown,
    stringify_markdown,
)
from cms.content.upload import unique_filename, upload_file

__all__ = [
    "CollectionItem",
    "MarkdownContent",
    "MarkdownData",
    "get_collection_item",
    "get_collection_items",
    "get_collections",
    "parse_markdown",
    "stringify_markdown",
    "unique_filename",
    "upload_file",
]
