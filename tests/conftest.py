"""
Shared fixtures: an in-memory book store and a BookstoreApi wired to it.
"""

from unittest.mock import Mock

import pytest

from bookstore_backend.app import BookstoreApi
from bookstore_backend.stores.book_store import (
    MUTABLE_FIELDS,
    BookNotFoundError,
    BookStore,
    new_book_record,
    utc_timestamp,
)
from bookstore_backend.stores.cover_storage import CoverStorage


class InMemoryBookStore(BookStore):
    """Keeps records in insertion order; newest is listed first."""

    def __init__(self):
        self.records = []
        self.connected = False

    def connect(self):
        self.connected = True

    def list_all(self):
        return [dict(r) for r in reversed(self.records)]

    def _find(self, book_id):
        return next((r for r in self.records if r["id"] == book_id), None)

    def get(self, book_id):
        record = self._find(book_id)
        return dict(record) if record else None

    def create(self, fields):
        record = new_book_record(fields)
        self.records.append(record)
        return dict(record)

    def update(self, book_id, fields):
        record = self._find(book_id)
        if record is None:
            raise BookNotFoundError(book_id)
        for field, value in fields.items():
            if field not in MUTABLE_FIELDS:
                continue
            if value is None:
                record.pop(field, None)
            else:
                record[field] = value
        record["updatedAt"] = utc_timestamp()
        return dict(record)

    def delete(self, book_id):
        self.records = [r for r in self.records if r["id"] != book_id]


@pytest.fixture
def book_store():
    return InMemoryBookStore()


@pytest.fixture
def cover_storage():
    return Mock(spec=CoverStorage)


@pytest.fixture
def api(book_store, cover_storage):
    return BookstoreApi(book_store, cover_storage)
