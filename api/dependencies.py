"""
FastAPI dependencies resolving per-application services.
"""

from fastapi import Request

from api.database import BookDatabaseService
from api.errors import ServerError
from api.uploads import CoverStorage


def get_book_service(request: Request) -> BookDatabaseService:
    """Record store created by the application lifespan."""
    service = getattr(request.app.state, "book_service", None)
    if service is None:
        raise ServerError("Database service not available")
    return service


def get_cover_storage(request: Request) -> CoverStorage:
    return request.app.state.cover_storage
