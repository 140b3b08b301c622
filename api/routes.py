"""
Book store endpoints mounted under /api/bookstores.
"""

import json
from typing import Any, List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from api.database import BookDatabaseService
from api.dependencies import get_book_service, get_cover_storage
from api.errors import NotFound, ServerError, ValidationError
from api.models import BookPayload, BookResponse, DeleteResponse, ErrorResponse
from api.uploads import CoverStorage
from api.validators import require_valid_book, require_valid_id

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/bookstores",
    tags=["Books"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid id or request body"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
)

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "No book with this id"}}

_BOOK_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": BookPayload.model_json_schema(by_alias=True)}},
    }
}


async def read_json_body(request: Request) -> Any:
    """Decoded JSON body; an empty body reads as an empty object."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError.single("Request body must be valid JSON") from None


@router.get("", response_model=List[BookResponse])
@router.get("/", response_model=List[BookResponse], include_in_schema=False)
async def list_books(service: BookDatabaseService = Depends(get_book_service)):
    """Get every book. No ordering, no pagination."""
    return await service.list_books()


@router.post(
    "/add",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra=_BOOK_BODY,
)
async def create_book(request: Request, service: BookDatabaseService = Depends(get_book_service)):
    """
    Add a new book.

    - **Title**: non-empty string
    - **Author**: non-empty string
    - **Pages**: integer, at least 1 and at most 2^53 - 1

    Unknown fields are dropped.
    """
    payload = require_valid_book(await read_json_body(request))
    return await service.create_book(payload)


@router.put(
    "/update/{book_id}",
    response_model=BookResponse,
    responses=_NOT_FOUND,
    openapi_extra=_BOOK_BODY,
)
async def update_book(
    book_id: str,
    request: Request,
    service: BookDatabaseService = Depends(get_book_service)
):
    """Replace Title, Author and Pages of a book. All three are required."""
    require_valid_id(book_id)
    payload = require_valid_book(await read_json_body(request))

    book = await service.replace_book(book_id, payload)
    if book is None:
        raise NotFound()
    return book


@router.delete("/delete/{book_id}", response_model=DeleteResponse, responses=_NOT_FOUND)
async def delete_book(book_id: str, service: BookDatabaseService = Depends(get_book_service)):
    require_valid_id(book_id)

    if not await service.delete_book(book_id):
        raise NotFound()
    return DeleteResponse()


@router.get("/{book_id}", response_model=BookResponse, responses=_NOT_FOUND)
async def get_book(book_id: str, service: BookDatabaseService = Depends(get_book_service)):
    """
    Get a single book by ID.

    - **book_id**: 24 character hex MongoDB ObjectId
    """
    require_valid_id(book_id)

    book = await service.get_book_by_id(book_id)
    if book is None:
        raise NotFound()
    return book


@router.post("/{book_id}/cover", response_model=BookResponse, responses=_NOT_FOUND)
async def upload_cover(
    book_id: str,
    request: Request,
    cover: Optional[UploadFile] = File(None, description="JPEG, PNG, WebP or GIF image"),
    service: BookDatabaseService = Depends(get_book_service),
    storage: CoverStorage = Depends(get_cover_storage)
):
    """
    Upload a cover image for a book and record its public URL as coverUrl.

    The book is left untouched when the upload is rejected.
    """
    require_valid_id(book_id)

    if await service.get_book_by_id(book_id) is None:
        raise NotFound()

    filename = await storage.save(cover)
    cover_url = storage.public_url(filename, request.base_url)

    try:
        book = await service.set_cover_url(book_id, cover_url)
    except ServerError:
        await storage.delete(filename)
        raise

    if book is None:
        # removed between the existence check and the update
        await storage.delete(filename)
        raise NotFound()

    logger.info("Cover attached", book_id=book_id, cover_url=cover_url)
    return book
