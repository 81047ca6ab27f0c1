import json
from uuid import uuid4

import pytest

from inkwell.core.responses import error_response, server_error_response, success_response


def body(response):
    return json.loads(response.body)


def test_success_response_omits_unset_keys():
    response = success_response({"id": 1})
    assert response.status_code == 200
    assert body(response) == {"success": True, "data": {"id": 1}}


def test_success_response_includes_message_and_meta():
    response = success_response([1, 2], 201, message="Created", meta={"page": 1})
    assert response.status_code == 201
    assert body(response) == {"success": True, "data": [1, 2], "message": "Created", "meta": {"page": 1}}


def test_success_response_encodes_uuids():
    value = uuid4()
    assert body(success_response({"id": value}))["data"]["id"] == str(value)


@pytest.mark.parametrize("status_code", [199, 301, 400, 500])
def test_success_response_rejects_non_2xx(status_code):
    with pytest.raises(ValueError):
        success_response(None, status_code)


def test_error_response_shape():
    response = error_response("Nope", 404, {"code": "not_found"})
    assert response.status_code == 404
    assert body(response) == {"success": False, "error": {"message": "Nope", "details": {"code": "not_found"}}}


def test_error_response_without_details():
    assert body(error_response("Bad"))["error"] == {"message": "Bad"}


@pytest.mark.parametrize("status_code", [200, 204, 302, 399])
def test_error_response_rejects_non_error_status(status_code):
    with pytest.raises(ValueError):
        error_response("x", status_code)


def test_error_response_forwards_headers():
    response = error_response("Slow down", 429, headers={"Retry-After": "7"})
    assert response.headers["Retry-After"] == "7"


def test_server_error_response_is_always_500():
    response = server_error_response()
    assert response.status_code == 500
    assert body(response) == {"success": False, "error": {"message": "Internal Server Error"}}
