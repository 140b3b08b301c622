"""
Error taxonomy for the book store API.

Every failure a request can end in is one of the exceptions below. Each
carries its HTTP status and knows how to render the JSON body returned to the
client; the application registers a single handler for the base class.
"""

import re
from typing import Any, Dict, List, Optional

from api.models import ErrorDetail, ErrorResponse

_URI_CREDENTIALS = re.compile(r"(mongodb(?:\+srv)?://)[^@/\s]+@", re.IGNORECASE)


def redact_secrets(text: str) -> str:
    """Strip user:password from any MongoDB URI found in text."""
    return _URI_CREDENTIALS.sub(r"\1***@", text)


class BookStoreError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    message: str = "ServerError"

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(message=self.message)


class ValidationError(BookStoreError):
    """Request body failed validation."""

    status_code = 400
    message = "ValidationError"

    def __init__(self, details: List[ErrorDetail]):
        super().__init__(f"{len(details)} validation error(s)")
        self.details = details

    @classmethod
    def single(cls, message: str, path: Optional[List[Any]] = None) -> "ValidationError":
        return cls([ErrorDetail(message=message, path=path or [])])

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(message=self.message, details=self.details)


class InvalidIdentifier(BookStoreError):
    """Path id is not a well-formed ObjectId."""

    status_code = 400
    message = "Invalid id"

    def __init__(self, value: str = ""):
        super().__init__(f"Invalid id: {value!r}")
        self.value = value


class NotFound(BookStoreError):
    status_code = 404
    message = "NotFound"


class ServerError(BookStoreError):
    """
    Storage or infrastructure fault.

    The underlying cause is reported for diagnostics with any connection
    credentials removed.
    """

    status_code = 500
    message = "ServerError"

    def __init__(self, cause: Any = None):
        self.cause = cause
        super().__init__(self.describe())

    def describe(self) -> Optional[str]:
        if self.cause is None:
            return None
        if isinstance(self.cause, BaseException):
            text = f"{type(self.cause).__name__}: {self.cause}"
        else:
            text = str(self.cause)
        return redact_secrets(text)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(message=self.message, error=self.describe())


def error_body(exc: BookStoreError) -> Dict[str, Any]:
    """Serialise an error into the JSON body sent to clients."""
    return exc.to_response().model_dump(exclude_none=True)
