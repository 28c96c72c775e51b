"""Pydantic schemas for CMS API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cms.content.collection import CollectionItem
from cms.storage.base import FileEntry


class LoginRequest(BaseModel):
    """Login form body. Missing fields are reported as 400 by the handler."""

    username: str | None = None
    password: str | None = None


class SaveContentRequest(BaseModel):
    """Body for creating or updating a content item."""

    data: dict[str, Any] | None = None
    content: str | None = None


class ContentResponse(BaseModel):
    """A content item's frontmatter and body."""

    data: dict[str, Any]
    content: str = Field(description="Raw markdown content")


class SuccessResponse(BaseModel):
    """Acknowledgement for mutating endpoints."""

    success: bool = True


class ListResponse(BaseModel):
    """Directory listing."""

    entries: list[FileEntry]


class UploadResponse(BaseModel):
    """Result of a file upload."""

    success: bool = True
    url: str
    filename: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str


class RateLimitedResponse(BaseModel):
    """Body returned with 429."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    retry_after: int = Field(alias="retryAfter")


class CollectionsResponse(BaseModel):
    """Collection folder names."""

    collections: list[str]


class CollectionItemsResponse(BaseModel):
    """Every readable item in a collection."""

    items: list[CollectionItem]
