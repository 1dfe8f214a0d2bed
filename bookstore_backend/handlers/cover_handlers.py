"""
Handlers for cover images (presigned upload and display URLs)

Cover bytes never pass through the API: clients PUT to the presigned
upload URL and follow the redirect from /cover-url to read.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bookstore_backend.utils.response import api_response, error_response, redirect_response
from bookstore_backend.utils.validation import get_query_param, parse_json_body

if TYPE_CHECKING:
    from bookstore_backend.app import BookstoreApi

logger = logging.getLogger()


def generate_upload_url_handler(event: dict, api: "BookstoreApi") -> dict:
    """
    Issue a presigned PUT URL for a new cover.

    Expects JSON body with ``filename``. Returns the URL, the final blob
    name to store on the book as ``coverBlob``, and the URL lifetime.
    """
    logger.info("generate_upload_url_handler invoked")

    body, error = parse_json_body(event)
    if error:
        return error

    filename = body.get("filename")
    if not filename or not isinstance(filename, str):
        logger.warning("Missing filename in request")
        return error_response(400, "Bad Request", "filename is required")

    try:
        signed = api.covers.issue_upload_url(filename)
    except ValueError as e:
        logger.warning(str(e))
        return error_response(400, "Bad Request", str(e))
    except Exception as e:
        logger.error(f"Error generating upload URL: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))

    return api_response(
        200,
        {
            "url": signed.url,
            "blobName": signed.blob_name,
            "method": signed.method,
            "expiresIn": signed.expires_in,
        },
    )


def cover_url_handler(event: dict, api: "BookstoreApi") -> dict:
    """Redirect to a short-lived read URL for the cover named by ``?blob=``."""
    blob_name = get_query_param(event, "blob")
    if not blob_name:
        return error_response(400, "Bad Request", "blob param required")

    try:
        signed = api.covers.issue_read_url(blob_name)
        return redirect_response(signed.url)

    except Exception as e:
        logger.error(f"Error generating cover URL: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
