"""Content CRUD and directory listing endpoints.

Domain errors propagate to the application's exception handlers, which
turn them into ``{"error": message}`` responses.
"""

from fastapi import APIRouter, Request

from cms.content.markdown import MarkdownContent
from cms.content.schemas import (
    ContentResponse,
    ErrorResponse,
    ListResponse,
    SaveContentRequest,
    SuccessResponse,
)

router = APIRouter(tags=["content"])

ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _content(request: Request) -> MarkdownContent:
    return request.app.state.content


@router.get(
    "/content/{file_path:path}",
    response_model=ContentResponse,
    responses=ERROR_RESPONSES,
    summary="Read a content item",
)
def get_content(file_path: str, request: Request) -> ContentResponse:
    """Return a content item's frontmatter and body.

    Args:
        file_path: Path relative to the content root, e.g. ``blog/post.md``.
        request: FastAPI request (provides access to app state).
    """
    item = _content(request).get(file_path)
    return ContentResponse(data=item.data, content=item.content)


@router.post(
    "/content/{file_path:path}",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    summary="Create or update a content item",
)
def save_content(
    file_path: str,
    body: SaveContentRequest,
    request: Request,
) -> SuccessResponse:
    """Write a content item. Missing data or content default to empty."""
    _content(request).save(file_path, body.data or {}, body.content or "")
    return SuccessResponse()


@router.delete(
    "/content/{file_path:path}",
    response_model=SuccessResponse,
    responses=ERROR_RESPONSES,
    summary="Delete a content item",
)
def delete_content(file_path: str, request: Request) -> SuccessResponse:
    _content(request).delete(file_path)
    return SuccessResponse()


@router.get(
    "/list",
    response_model=ListResponse,
    responses=ERROR_RESPONSES,
    summary="List the content root",
)
def list_root(request: Request) -> ListResponse:
    return ListResponse(entries=_content(request).list_directory(""))


@router.get(
    "/list/{directory:path}",
    response_model=ListResponse,
    responses=ERROR_RESPONSES,
    summary="List a content directory",
)
def list_directory(directory: str, request: Request) -> ListResponse:
    """List markdown files and subdirectories.

    A directory that does not exist lists as empty.
    """
    return ListResponse(entries=_content(request).list_directory(directory))
