"""
API models and schemas for the FastAPI application.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

# Largest integer a JSON client can represent exactly
MAX_PAGES = 2 ** 53 - 1


class BookPayload(BaseModel):
    """
    Writable book fields as accepted on create and update.

    Strings are trimmed and must not be empty; unknown keys are dropped.
    Only the capitalised wire names are recognised.
    """
    model_config = ConfigDict(
        extra="ignore",
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {"Title": "Dune", "Author": "Frank Herbert", "Pages": 412}
        },
    )

    title: str = Field(..., alias="Title", min_length=1, description="Book title")
    author: str = Field(..., alias="Author", min_length=1, description="Book author")
    pages: int = Field(..., alias="Pages", ge=1, le=MAX_PAGES, description="Number of pages")

    @field_validator("pages", mode="before")
    @classmethod
    def reject_booleans(cls, v):
        """Booleans are ints in Python but not page counts."""
        if isinstance(v, bool):
            raise PydanticCustomError("int_type", "Input should be a valid integer")
        return v

    def to_document(self) -> dict:
        """Mongo field layout of the payload."""
        return self.model_dump(by_alias=True)


class BookResponse(BaseModel):
    """Book response model for API."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., alias="Title", description="Book title")
    author: str = Field(..., alias="Author", description="Book author")
    pages: int = Field(..., alias="Pages", description="Number of pages")
    cover_url: Optional[str] = Field(None, alias="coverUrl", description="Public URL of the uploaded cover")
    created_at: Optional[str] = Field(None, alias="createdAt", description="Creation timestamp")
    updated_at: Optional[str] = Field(None, alias="updatedAt", description="Last update timestamp")


class DeleteResponse(BaseModel):
    """Confirmation returned after a delete."""
    message: str = Field("Book Store deleted.", description="Confirmation message")


class ErrorDetail(BaseModel):
    """One constraint violation."""
    message: str = Field(..., description="Human-readable description")
    path: List[Union[str, int]] = Field(default_factory=list, description="Location of the offending value")


class ErrorResponse(BaseModel):
    """Error response model."""
    message: str = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(None, description="Per-field validation errors")
    error: Optional[str] = Field(None, description="Underlying cause of a server error")


class HealthResponse(BaseModel):
    """Health check response model."""
    ok: bool = Field(True, description="Process is serving requests")
