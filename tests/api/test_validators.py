"""
Tests for book payload and identifier validation.
"""

import pytest

from api.errors import InvalidIdentifier, ValidationError
from api.validators import (
    is_valid_object_id, require_valid_book, require_valid_id, validate_book
)


class TestValidateBook:
    """Test cases for validate_book."""

    def test_valid_payload_is_sanitised(self):
        result = validate_book({
            "Title": "  Dune ",
            "Author": "Frank Herbert\n",
            "Pages": 412,
            "Publisher": "Chilton",
        })

        assert result.ok
        assert result.errors == []
        assert result.value.to_document() == {
            "Title": "Dune",
            "Author": "Frank Herbert",
            "Pages": 412,
        }

    def test_numeric_string_pages_is_converted(self):
        result = validate_book({"Title": "Dune", "Author": "Herbert", "Pages": "412"})
        assert result.ok
        assert result.value.pages == 412

    def test_all_errors_reported_at_once(self):
        result = validate_book({})

        assert not result.ok
        assert result.value is None
        assert [e.path for e in result.errors] == [["Title"], ["Author"], ["Pages"]]
        assert [e.message for e in result.errors] == [
            '"Title" is required',
            '"Author" is required',
            '"Pages" is required',
        ]

    def test_lowercase_keys_are_not_recognised(self):
        result = validate_book({"title": "Dune", "author": "Herbert", "pages": 412})
        assert not result.ok
        assert len(result.errors) == 3

    def test_blank_title_is_empty(self):
        result = validate_book({"Title": "   ", "Author": "Herbert", "Pages": 1})
        assert not result.ok
        assert result.errors[0].path == ["Title"]
        assert result.errors[0].message == '"Title" is not allowed to be empty'

    def test_non_string_author(self):
        result = validate_book({"Title": "Dune", "Author": 42, "Pages": 1})
        assert [e.message for e in result.errors] == ['"Author" must be a string']

    @pytest.mark.parametrize("pages, message", [
        (0, '"Pages" must be greater than or equal to 1'),
        (-5, '"Pages" must be greater than or equal to 1'),
        (12.5, '"Pages" must be an integer'),
        ("many", '"Pages" must be a number'),
        (True, '"Pages" must be a number'),
        (None, '"Pages" must be a number'),
        (10 ** 20, '"Pages" must be less than or equal to 9007199254740991'),
    ])
    def test_invalid_pages(self, pages, message):
        result = validate_book({"Title": "Dune", "Author": "Herbert", "Pages": pages})
        assert not result.ok
        assert len(result.errors) == 1
        assert result.errors[0].path == ["Pages"]
        assert result.errors[0].message == message

    @pytest.mark.parametrize("candidate", [None, ["Dune"], "Dune", 7])
    def test_non_object_body(self, candidate):
        result = validate_book(candidate)
        assert not result.ok
        assert result.errors[0].path == []
        assert result.errors[0].message == '"value" must be of type object'

    def test_require_valid_book_raises_with_details(self):
        with pytest.raises(ValidationError) as exc_info:
            require_valid_book({"Pages": 0})

        paths = [d.path for d in exc_info.value.details]
        assert ["Pages"] in paths
        assert exc_info.value.status_code == 400


class TestObjectIdValidation:
    """Test cases for identifier validation."""

    @pytest.mark.parametrize("value", [
        "507f1f77bcf86cd799439011",
        "507F1F77BCF86CD799439011",
        "000000000000000000000000",
    ])
    def test_valid_ids(self, value):
        assert is_valid_object_id(value)
        assert require_valid_id(value) == value

    @pytest.mark.parametrize("value", [
        "not-an-id",
        "",
        "aaaaaaaaaaaa",
        "507f1f77bcf86cd79943901",
        "507f1f77bcf86cd7994390111",
        "zzzzzzzzzzzzzzzzzzzzzzzz",
        None,
        12345,
    ])
    def test_invalid_ids(self, value):
        assert not is_valid_object_id(value)
        with pytest.raises(InvalidIdentifier):
            require_valid_id(value)
