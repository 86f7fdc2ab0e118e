import json

import pytest

from methoddocs.core.methods import (
    DuplicateKey,
    FieldError,
    MalformedId,
    NotFound,
    Unavailable,
    ValidationFailed,
)
from methoddocs.webui.api.error_envelope import store_error_to_api_error


@pytest.mark.parametrize("exc, status_code, error_code", [
    (ValidationFailed([FieldError("name", "required", "name is required")]), 400, "VALIDATION_ERROR"),
    (DuplicateKey("map"), 400, "DUPLICATE_KEY"),
    (MalformedId("nope"), 404, "INVALID_ID"),
    (NotFound("01HZZZZZZZZZZZZZZZZZZZZZZZ"), 404, "NOT_FOUND"),
    (Unavailable("database is locked at /var/db"), 500, "INTERNAL_ERROR"),
])
def test_every_store_error_maps_to_one_response(exc, status_code, error_code) -> None:
    response = store_error_to_api_error(exc).to_response()
    body = json.loads(response.body)

    assert response.status_code == status_code
    assert body["ok"] is False
    assert body["error_code"] == error_code
    assert body["timestamp"].endswith("Z")


def test_server_errors_carry_no_detail() -> None:
    response = store_error_to_api_error(Unavailable("database is locked at /var/db")).to_response()
    body = json.loads(response.body)

    assert body["message"] == "Server error"
    assert body["details"] == {}
    assert "/var/db" not in response.body.decode("utf-8")
