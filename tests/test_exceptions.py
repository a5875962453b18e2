"""
Catdex — Error Taxonomy Tests
===============================

What:  The kind → HTTP status mapping, checked in isolation from any handler.
"""

import logging

import pytest

from catdex.exceptions import (
    ErrorKind,
    MissingUploadError,
    NotFoundError,
    PoolExhaustedError,
    UnexpectedError,
    ValidationError,
    http_status_for,
    log_level_for,
)


@pytest.mark.parametrize(
    "kind, status",
    [
        (ErrorKind.VALIDATION, 400),
        (ErrorKind.MISSING_UPLOAD, 400),
        (ErrorKind.NOT_FOUND, 404),
        (ErrorKind.POOL_EXHAUSTED, 500),
        (ErrorKind.UNEXPECTED, 500),
    ],
)
def test_http_status_for_every_kind(kind, status):
    assert http_status_for(kind) == status


def test_every_kind_has_a_status_and_log_level():
    for kind in ErrorKind:
        assert http_status_for(kind) in (400, 404, 500)
        assert log_level_for(kind) in (logging.INFO, logging.WARNING, logging.ERROR)


def test_not_found_is_not_logged_as_error():
    assert log_level_for(ErrorKind.NOT_FOUND) < logging.WARNING


def test_missing_upload_folds_into_validation_class():
    exc = MissingUploadError()
    assert isinstance(exc, ValidationError)
    assert exc.kind is ErrorKind.MISSING_UPLOAD
    assert exc.status_code == 400
    assert exc.field == "image"


def test_validation_error_records_field_in_context():
    exc = ValidationError("bad id", field="id", context={"value": 0})
    assert exc.context == {"value": 0, "field": "id"}
    assert exc.status_code == 400


def test_not_found_message_names_resource():
    exc = NotFoundError(resource="cat", resource_id=7)
    assert exc.message == "cat with ID '7' was not found"
    assert exc.status_code == 404


def test_pool_exhausted_is_server_error_with_timeout_context():
    exc = PoolExhaustedError(timeout=5.0)
    assert exc.status_code == 500
    assert exc.context["timeout_seconds"] == 5.0


def test_unexpected_error_keeps_operation():
    exc = UnexpectedError(operation="insert", context={"name": "Tom"})
    assert exc.operation == "insert"
    assert exc.context == {"name": "Tom", "operation": "insert"}
    assert exc.status_code == 500
