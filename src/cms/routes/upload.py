"""File upload endpoint."""

import asyncio

from fastapi import APIRouter, File, Request, UploadFile
from fastapi.responses import JSONResponse

from cms.config import Settings
from cms.content.schemas import ErrorResponse, UploadResponse
from cms.content.upload import upload_file
from cms.storage.base import StorageProvider
from cms.validation import validate_file_size

router = APIRouter(tags=["upload"])


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Upload a file",
)
async def upload(
    request: Request,
    file: UploadFile | None = File(default=None),
) -> UploadResponse | JSONResponse:
    """Store a multipart ``file`` field in the uploads namespace.

    Args:
        request: FastAPI request (provides access to app state).
        file: The uploaded file.

    Returns:
        URL the editor can embed, and the original filename.
    """
    if file is None or not file.filename:
        return JSONResponse(status_code=400, content={"error": "No file provided"})

    settings: Settings = request.app.state.settings
    storage: StorageProvider = request.app.state.storage

    if file.size is not None:
        validate_file_size(file.size, settings.max_file_size)

    data = await file.read()
    url = await asyncio.to_thread(
        upload_file,
        storage,
        file.filename,
        data,
        settings.max_file_size,
    )

    return UploadResponse(url=url, filename=file.filename)
