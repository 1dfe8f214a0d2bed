"""
Request validation utilities for the Bookstore API

Provides functions to validate and extract data from API Gateway events.
Each returns an error response (or a value and an error response) so that
handlers can return the error directly.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import math
from typing import Any
from urllib.parse import unquote

from bookstore_backend.config import MAX_STRING_LENGTH
from bookstore_backend.utils.response import error_response

logger = logging.getLogger()


def get_path_param(event: dict, param: str) -> tuple[str | None, dict | None]:
    """
    Extract and URL-decode a path parameter from an API Gateway event.

    Returns:
        tuple: (decoded_value, error_response) - If successful, error_response is None
    """
    path_params = event.get("pathParameters") or {}
    if not path_params.get(param):
        logger.warning(f"Missing {param} in path parameters")
        return None, error_response(
            400, "Bad Request", f"{param.capitalize()} is required in path"
        )
    return unquote(path_params[param]), None


def get_query_param(event: dict, param: str) -> str | None:
    """Return a query string parameter, or None if absent or empty."""
    query = event.get("queryStringParameters") or {}
    return query.get(param) or None


def parse_json_body(event: dict) -> tuple[dict, dict | None]:
    """
    Parse a JSON object body from an API Gateway event.

    Returns:
        tuple: (parsed_body, error_response) - If successful, error_response is None.
               If error, parsed_body is an empty dict (caller should check error first)
    """
    raw = event.get("body") or "{}"
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        body = json.loads(raw)
    except (json.JSONDecodeError, binascii.Error, UnicodeDecodeError):
        logger.warning("Invalid JSON in request body")
        return {}, error_response(400, "Bad Request", "Invalid JSON in request body")

    if not isinstance(body, dict):
        return {}, error_response(400, "Bad Request", "Request body must be a JSON object")
    return body, None


def validate_string_field(
    body: dict,
    field: str,
    max_length: int = MAX_STRING_LENGTH,
    required: bool = False,
    nullable: bool = False,
) -> dict | None:
    """
    Validate a string field in a request body.

    Args:
        body: Request body dictionary
        field: Field name to validate
        max_length: Maximum allowed length
        required: Whether the field must be present and non-blank
        nullable: Whether an explicit null is accepted

    Returns:
        dict: Error response if validation fails, None if valid
    """
    if field not in body:
        if required:
            return error_response(400, "Bad Request", f'Field "{field}" is required')
        return None

    value = body[field]
    if value is None and nullable and not required:
        return None

    if not isinstance(value, str):
        return error_response(400, "Bad Request", f'Field "{field}" must be a string')

    if len(value) > max_length:
        return error_response(
            400, "Bad Request", f'Field "{field}" exceeds maximum length of {max_length}'
        )

    if required and not value.strip():
        return error_response(400, "Bad Request", f'Field "{field}" cannot be empty')

    return None


def validate_number_field(body: dict, field: str) -> dict | None:
    """
    Validate an optional numeric field. Null is accepted.

    Returns:
        dict: Error response if validation fails, None if valid
    """
    value: Any = body.get(field)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return error_response(400, "Bad Request", f'Field "{field}" must be a number')
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # int too large to convert to float
        finite = False
    if not finite:
        return error_response(400, "Bad Request", f'Field "{field}" must be a finite number')
    return None
