"""
Request validation for book payloads and record identifiers.

Both validators are pure: they inspect their input and report, and never
touch the database.
"""

from typing import Any, List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from api.errors import InvalidIdentifier, ValidationError
from api.models import BookPayload, ErrorDetail


class ValidationResult(BaseModel):
    """Outcome of validating a candidate book: a clean payload or a list of errors."""
    value: Optional[BookPayload] = None
    errors: List[ErrorDetail] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def describe_error(error: dict) -> str:
    """Readable message for one pydantic error entry, naming the field."""
    loc = error.get("loc") or ()
    label = f'"{loc[-1]}"' if loc else '"value"'
    kind = error.get("type")
    ctx = error.get("ctx") or {}

    if kind == "missing":
        return f"{label} is required"
    if kind == "string_type":
        return f"{label} must be a string"
    if kind == "string_too_short":
        return f"{label} is not allowed to be empty"
    if kind in ("int_type", "int_parsing"):
        return f"{label} must be a number"
    if kind == "int_from_float":
        return f"{label} must be an integer"
    if kind == "greater_than_equal":
        return f"{label} must be greater than or equal to {ctx.get('ge')}"
    if kind == "less_than_equal":
        return f"{label} must be less than or equal to {ctx.get('le')}"
    if kind in ("model_type", "model_attributes_type", "dict_type"):
        return f"{label} must be of type object"
    return f"{label} {error.get('msg', 'is invalid')}"


def validate_book(candidate: Any) -> ValidationResult:
    """
    Validate and sanitise a candidate book.

    All violations are collected in a single pass. On success the returned
    payload holds exactly Title, Author and Pages, with strings trimmed and
    any other keys removed.
    """
    try:
        payload = BookPayload.model_validate(candidate)
    except PydanticValidationError as e:
        details = [
            ErrorDetail(message=describe_error(err), path=list(err.get("loc") or ()))
            for err in e.errors(include_url=False)
        ]
        return ValidationResult(errors=details)
    return ValidationResult(value=payload)


def is_valid_object_id(value: Any) -> bool:
    """True for a 24 character hexadecimal string. Existence is not checked."""
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def require_valid_id(value: Any) -> str:
    """Return value unchanged or raise InvalidIdentifier."""
    if not is_valid_object_id(value):
        raise InvalidIdentifier(str(value))
    return value


def require_valid_book(candidate: Any) -> BookPayload:
    """Return the sanitised payload or raise ValidationError with every detail."""
    result = validate_book(candidate)
    if not result.ok:
        raise ValidationError(result.errors)
    return result.value
