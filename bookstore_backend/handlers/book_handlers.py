"""
Handlers for the book catalog (list, get, create, update, delete)

Each handler receives the API Gateway event and the BookstoreApi holding
the document store.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from bookstore_backend.stores.book_store import MUTABLE_FIELDS, BookNotFoundError
from bookstore_backend.utils.response import api_response, error_response, serialize_book
from bookstore_backend.utils.validation import (
    get_path_param,
    parse_json_body,
    validate_number_field,
    validate_string_field,
)

if TYPE_CHECKING:
    from bookstore_backend.app import BookstoreApi

logger = logging.getLogger()


def _validate_book_fields(body: dict, creating: bool) -> dict | None:
    """
    Validate the mutable book fields of a request body.

    On create, title and author are required. On update they are optional
    but may not be blanked or nulled.
    """
    for field in ("title", "author"):
        if creating or field in body:
            error = validate_string_field(body, field, required=True)
            if error:
                return error

    error = validate_number_field(body, "price")
    if error:
        return error

    return validate_string_field(body, "coverBlob", nullable=True)


def health_handler(event: dict, api: "BookstoreApi") -> dict:
    return api_response(200, {"ok": True, "message": "Backend is working!"})


def list_books_handler(event: dict, api: "BookstoreApi") -> dict:
    """Return every book, most recently created first."""
    logger.info("list_books_handler invoked")

    try:
        items = api.books.list_all()
        return api_response(200, [serialize_book(item) for item in items])

    except Exception as e:
        logger.error(f"Error listing books: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def get_book_handler(event: dict, api: "BookstoreApi") -> dict:
    """Return one book by id, or 404."""
    book_id, error = get_path_param(event, "id")
    if error:
        return error

    logger.info(f"Fetching book: {book_id}")

    try:
        book = api.books.get(book_id)
        if book is None:
            logger.warning(f"Book not found: {book_id}")
            return error_response(404, "Not Found", f'Book "{book_id}" not found')

        return api_response(200, serialize_book(book))

    except Exception as e:
        logger.error(f"Error fetching book {book_id}: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def create_book_handler(event: dict, api: "BookstoreApi") -> dict:
    """
    Create a book from a JSON body with title, author, and optionally
    price and coverBlob. The id and createdAt are assigned here.
    """
    logger.info("create_book_handler invoked")

    body, error = parse_json_body(event)
    if error:
        return error

    error = _validate_book_fields(body, creating=True)
    if error:
        return error

    fields = {field: body[field] for field in MUTABLE_FIELDS if field in body}
    fields["title"] = fields["title"].strip()
    fields["author"] = fields["author"].strip()

    try:
        book = api.books.create(fields)
        return api_response(201, serialize_book(book))

    except Exception as e:
        logger.error(f"Error creating book: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def update_book_handler(event: dict, api: "BookstoreApi") -> dict:
    """
    Update a book. Only fields present in the body change; null clears
    price or coverBlob. Fields left out of the body keep their values.
    """
    book_id, error = get_path_param(event, "id")
    if error:
        return error

    body, error = parse_json_body(event)
    if error:
        return error

    error = _validate_book_fields(body, creating=False)
    if error:
        return error

    fields: dict[str, Any] = {field: body[field] for field in MUTABLE_FIELDS if field in body}
    if not fields:
        return error_response(400, "Bad Request", "No valid fields to update")

    for field in ("title", "author"):
        if field in fields:
            fields[field] = fields[field].strip()

    logger.info(f"Updating book: {book_id}")

    try:
        book = api.books.update(book_id, fields)
        return api_response(200, serialize_book(book))

    except BookNotFoundError:
        logger.warning(f"Book not found: {book_id}")
        return error_response(404, "Not Found", f'Book "{book_id}" not found')

    except Exception as e:
        logger.error(f"Error updating book {book_id}: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def delete_book_handler(event: dict, api: "BookstoreApi") -> dict:
    """Delete a book. Succeeds whether or not the book existed."""
    book_id, error = get_path_param(event, "id")
    if error:
        return error

    logger.info(f"Deleting book: {book_id}")

    try:
        api.books.delete(book_id)
        return api_response(
            200, {"ok": True, "message": "Book deleted", "bookId": book_id}
        )

    except Exception as e:
        logger.error(f"Error deleting book {book_id}: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
