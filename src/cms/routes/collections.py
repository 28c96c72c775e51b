"""Read-only collection endpoints for site builders."""

from fastapi import APIRouter, Request

from cms.content.collection import (
    CollectionItem,
    get_collection_item,
    get_collection_items,
    get_collections,
)
from cms.content.markdown import MarkdownContent
from cms.content.schemas import CollectionItemsResponse, CollectionsResponse, ErrorResponse
from cms.errors import NotFoundError
from cms.storage.base import MARKDOWN_EXTENSION

router = APIRouter(tags=["collections"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _content(request: Request) -> MarkdownContent:
    return request.app.state.content


@router.get(
    "/collections",
    response_model=CollectionsResponse,
    responses=ERROR_RESPONSES,
    summary="List collection folders",
)
def list_collections(request: Request) -> CollectionsResponse:
    """Folders directly under the content root."""
    return CollectionsResponse(collections=get_collections(_content(request)))


# Declared before the folder route, whose path parameter would match it
@router.get(
    "/collections/{folder:path}/items/{slug}",
    response_model=CollectionItem,
    responses=ERROR_RESPONSES,
    summary="Read one collection item",
)
def read_collection_item(folder: str, slug: str, request: Request) -> CollectionItem:
    """Return the item ``<folder>/<slug>.md``.

    Missing, unsafe and unreadable items all answer 404.
    """
    item = get_collection_item(_content(request), folder, slug)
    if item is None:
        raise NotFoundError(f"{folder}/{slug}{MARKDOWN_EXTENSION}")
    return item


@router.get(
    "/collections/{folder:path}",
    response_model=CollectionItemsResponse,
    responses=ERROR_RESPONSES,
    summary="Read every item in a collection",
)
def read_collection(folder: str, request: Request) -> CollectionItemsResponse:
    """Return all markdown items in ``folder``, skipping any that fail to load."""
    return CollectionItemsResponse(items=get_collection_items(_content(request), folder))
