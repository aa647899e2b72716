"""
Unit tests for the error hierarchy.
"""

import pytest

from sheetdb.errors import (
    ArgumentError,
    AuthenticationError,
    IntegrityError,
    NotFoundError,
    SchemaError,
    SheetDbError,
    StoreError,
    UniqueConstraintError,
    ValidationError,
)


class TestErrors:
    """Codes, messages and details."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (ArgumentError("bad", argument="depth"), "ARGUMENT_ERROR"),
            (SchemaError("bad", entity="Users"), "SCHEMA_ERROR"),
            (ValidationError("bad", field_name="email"), "VALIDATION_ERROR"),
            (UniqueConstraintError("email", "a@x.com"), "UNIQUE_ERROR"),
            (NotFoundError("Users", "u1"), "NOT_FOUND"),
            (IntegrityError("bad", entity="Users", record_id="u1"), "INTEGRITY_ERROR"),
            (StoreError("bad", table="Users"), "STORE_ERROR"),
            (AuthenticationError("bad"), "AUTHENTICATION_ERROR"),
        ],
    )
    def test_codes(self, error, code):
        assert isinstance(error, SheetDbError)
        assert error.code == code

    def test_unique_message(self):
        error = UniqueConstraintError("email", "a@x.com")
        assert str(error) == 'Column "email" must be unique. Value "a@x.com" already exists.'
        assert error.details == {"column": "email", "value": "a@x.com"}

    def test_integrity_details(self):
        error = IntegrityError(
            "blocked", entity="Users", record_id="u1", child_entity="Orders", removed=[("Orders", "o1")]
        )
        assert error.details["child_entity"] == "Orders"
        assert error.removed == [("Orders", "o1")]

    def test_base_defaults(self):
        error = SheetDbError("boom")
        assert error.code == "SHEETDB_ERROR"
        assert error.details == {}
