"""
Unit tests for utility modules
"""

import json
from decimal import Decimal

import pytest

from bookstore_backend.utils.auth import (
    AllowAllAuthorizer,
    Authorizer,
    CognitoGroupAuthorizer,
    create_authorizer,
    get_user_groups,
    get_user_id,
)
from bookstore_backend.utils.response import (
    api_response,
    convert_decimal,
    error_response,
    redirect_response,
    serialize_book,
)
from bookstore_backend.utils.validation import (
    get_path_param,
    get_query_param,
    parse_json_body,
    validate_number_field,
    validate_string_field,
)


# ============================================================================
# Response Utility Tests
# ============================================================================


def test_api_response_has_cors_headers():
    resp = api_response(200, {"a": 1})

    assert resp["statusCode"] == 200
    assert json.loads(resp["body"]) == {"a": 1}
    assert resp["headers"]["Content-Type"] == "application/json"
    assert resp["headers"]["Access-Control-Allow-Origin"] == "*"


def test_error_response_shape():
    resp = error_response(404, "Not Found", "missing")
    assert json.loads(resp["body"]) == {"error": "Not Found", "message": "missing"}


def test_redirect_response():
    resp = redirect_response("https://example.com/x")

    assert resp["statusCode"] == 302
    assert resp["headers"]["Location"] == "https://example.com/x"
    assert resp["body"] == ""


def test_convert_decimal():
    assert convert_decimal(Decimal("10")) == 10
    assert isinstance(convert_decimal(Decimal("10")), int)
    assert convert_decimal(Decimal("9.99")) == 9.99
    assert convert_decimal("x") == "x"


def test_serialize_book_drops_unknown_and_empty_fields():
    book = serialize_book({
        "id": "1",
        "title": "T",
        "author": "A",
        "price": Decimal("4.5"),
        "coverBlob": None,
        "createdAt": "2025-01-01T00:00:00.000000+00:00",
        "_id": "internal",
    })

    assert book == {
        "id": "1",
        "title": "T",
        "author": "A",
        "price": 4.5,
        "createdAt": "2025-01-01T00:00:00.000000+00:00",
    }


# ============================================================================
# Validation Utility Tests
# ============================================================================


def test_get_path_param_missing():
    value, error = get_path_param({"pathParameters": None}, "id")

    assert value is None
    assert error["statusCode"] == 400


def test_get_query_param():
    assert get_query_param({"queryStringParameters": {"blob": "a"}}, "blob") == "a"
    assert get_query_param({"queryStringParameters": {"blob": ""}}, "blob") is None
    assert get_query_param({}, "blob") is None


def test_parse_json_body_empty_body():
    body, error = parse_json_body({"body": None})

    assert body == {}
    assert error is None


def test_parse_json_body_rejects_non_object():
    _, error = parse_json_body({"body": "[1, 2]"})
    assert error["statusCode"] == 400


def test_parse_json_body_bad_base64():
    _, error = parse_json_body({"body": "%%%", "isBase64Encoded": True})
    assert error["statusCode"] == 400


def test_validate_string_field_rules():
    assert validate_string_field({}, "title") is None
    assert validate_string_field({}, "title", required=True)["statusCode"] == 400
    assert validate_string_field({"title": 3}, "title")["statusCode"] == 400
    assert validate_string_field({"title": "x" * 501}, "title")["statusCode"] == 400
    assert validate_string_field({"coverBlob": None}, "coverBlob", nullable=True) is None
    assert validate_string_field({"coverBlob": None}, "coverBlob")["statusCode"] == 400


def test_validate_number_field_rules():
    assert validate_number_field({}, "price") is None
    assert validate_number_field({"price": None}, "price") is None
    assert validate_number_field({"price": 0}, "price") is None
    assert validate_number_field({"price": 12.5}, "price") is None
    assert validate_number_field({"price": "12"}, "price")["statusCode"] == 400
    assert validate_number_field({"price": False}, "price")["statusCode"] == 400
    assert validate_number_field({"price": float("nan")}, "price")["statusCode"] == 400


def test_validate_number_field_huge_integer():
    error = validate_number_field({"price": 10**400}, "price")

    assert error["statusCode"] == 400
    assert "finite" in json.loads(error["body"])["message"]


# ============================================================================
# Auth Utility Tests
# ============================================================================


def _event(claims):
    return {"requestContext": {"authorizer": {"claims": claims}}}


def test_get_user_id_rest_and_http_api():
    assert get_user_id(_event({"sub": "u1"})) == "u1"
    assert get_user_id({"requestContext": {"authorizer": {"jwt": {"claims": {"sub": "u2"}}}}}) == "u2"
    assert get_user_id({}) is None


def test_get_user_groups_formats():
    assert get_user_groups(_event({"cognito:groups": "admins, readers"})) == ["admins", "readers"]
    assert get_user_groups(_event({"cognito:groups": "[admins readers]"})) == ["admins", "readers"]
    assert get_user_groups(_event({"cognito:groups": ["admins"]})) == ["admins"]
    assert get_user_groups(_event({})) == []


def test_cognito_authorizer_custom_group():
    authorizer = CognitoGroupAuthorizer("editors")
    event = _event({"sub": "u1", "cognito:groups": "editors"})

    assert authorizer.check(event, "books:write") is None
    assert authorizer.check(_event({"sub": "u1", "cognito:groups": "admins"}), "books:write")["statusCode"] == 403


def test_authorizer_base_is_abstract():
    with pytest.raises(TypeError):
        Authorizer()


def test_create_authorizer():
    assert isinstance(create_authorizer("none"), AllowAllAuthorizer)
    assert isinstance(create_authorizer("cognito"), CognitoGroupAuthorizer)
