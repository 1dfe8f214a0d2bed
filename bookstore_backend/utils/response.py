"""
Response building utilities for the Bookstore API

Provides functions to create API Gateway proxy responses.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}

BOOK_FIELDS = ("id", "title", "author", "price", "coverBlob", "createdAt", "updatedAt")


def api_response(status_code: int, body: Any) -> dict:
    """
    Format an API Gateway response with a JSON body and CORS headers.

    Args:
        status_code: HTTP status code
        body: Response body (will be JSON serialized)
    """
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": {"Content-Type": "application/json", **CORS_HEADERS},
    }


def error_response(status_code: int, error: str, message: str) -> dict:
    """
    Create an error response.

    Args:
        status_code: HTTP status code
        error: Error category (e.g. "Not Found")
        message: Human-readable description
    """
    return api_response(status_code, {"error": error, "message": message})


def redirect_response(location: str, status_code: int = 302) -> dict:
    return {
        "statusCode": status_code,
        "body": "",
        "headers": {"Location": location, **CORS_HEADERS},
    }


def preflight_response() -> dict:
    return {"statusCode": 204, "body": "", "headers": dict(CORS_HEADERS)}


def convert_decimal(value: Any) -> Any:
    """
    Convert Decimal values (from DynamoDB) to int or float for JSON serialization.

    Returns:
        int if the value is a whole number, float otherwise; non-Decimals unchanged
    """
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    return value


def serialize_book(record: dict) -> dict:
    """
    Convert a stored book record to API response format.

    Unknown attributes are dropped and optional fields only appear when set.
    """
    return {
        field: convert_decimal(record[field])
        for field in BOOK_FIELDS
        if record.get(field) is not None
    }
