"""
Document store access for book records

Provides the BookStore contract and its DynamoDB implementation.
Records are keyed by an application-generated ``id``; the database's own
identifiers never leave the store.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import Table

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("title", "author", "price", "coverBlob")


class BookNotFoundError(LookupError):
    """Raised when an update targets a book id that does not exist."""

    def __init__(self, book_id: str):
        super().__init__(f'Book "{book_id}" not found')
        self.book_id = book_id


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds")


def new_book_record(fields: dict[str, Any]) -> dict[str, Any]:
    """
    Build a new book record with server-assigned fields.

    Args:
        fields: Client-supplied values; only mutable fields are kept and
            None values are dropped

    Returns:
        dict: Record with a fresh ``id`` and ``createdAt``
    """
    record: dict[str, Any] = {"id": str(uuid.uuid4())}
    for field in MUTABLE_FIELDS:
        if fields.get(field) is not None:
            record[field] = fields[field]
    record["createdAt"] = utc_timestamp()
    return record


class BookStore(ABC):
    """Operations on the single collection of book records."""

    @abstractmethod
    def connect(self) -> None:
        """Verify the store is reachable. Raises on failure."""

    @abstractmethod
    def list_all(self) -> list[dict[str, Any]]:
        """Return every book, most recently created first."""

    @abstractmethod
    def get(self, book_id: str) -> dict[str, Any] | None:
        """Return the book with this id, or None."""

    @abstractmethod
    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Persist a new book and return the stored record."""

    @abstractmethod
    def update(self, book_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """
        Apply the given fields to an existing book.

        Only keys present in ``fields`` are touched; a None value removes
        the attribute. ``updatedAt`` is always stamped.

        Raises:
            BookNotFoundError: If no book has this id
        """

    @abstractmethod
    def delete(self, book_id: str) -> None:
        """Remove the book if present. Deleting a missing id is not an error."""


def _to_dynamodb(value: Any) -> Any:
    # DynamoDB rejects floats
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def book_update_params(book_id: str, changes: dict[str, Any], updated_at: str) -> dict[str, Any]:
    """
    Build ``Table.update_item`` arguments for a partial book update.

    Fields whose value is None or "" are removed; the rest are set along
    with ``updatedAt``. The update only applies to an existing book and
    returns the whole item afterwards.
    """
    to_set = {field: value for field, value in changes.items() if value not in (None, "")}
    to_set["updatedAt"] = updated_at
    to_remove = [field for field in changes if field not in to_set]

    # Name placeholders keep attribute names clear of DynamoDB reserved words
    expression = "SET " + ", ".join(f"#{field} = :{field}" for field in to_set)
    if to_remove:
        expression += " REMOVE " + ", ".join(f"#{field}" for field in to_remove)

    return {
        "Key": {"id": book_id},
        "UpdateExpression": expression,
        "ConditionExpression": "attribute_exists(id)",
        "ExpressionAttributeNames": {f"#{field}": field for field in [*to_set, *to_remove]},
        "ExpressionAttributeValues": {f":{field}": value for field, value in to_set.items()},
        "ReturnValues": "ALL_NEW",
    }


class DynamoBookStore(BookStore):
    def __init__(self, table: "Table"):
        self.table = table

    def connect(self) -> None:
        # DescribeTable; raises ClientError if the table is missing or unreachable
        self.table.load()
        logger.info(f"Connected to DynamoDB table: {self.table.name}")

    def list_all(self) -> list[dict[str, Any]]:
        response = self.table.scan()
        items = response.get("Items", [])

        # Handle pagination
        while "LastEvaluatedKey" in response:
            response = self.table.scan(ExclusiveStartKey=response["LastEvaluatedKey"])
            items.extend(response.get("Items", []))

        logger.info(f"Retrieved {len(items)} books from DynamoDB")

        # Sort by created date (most recent first)
        items.sort(key=lambda item: item.get("createdAt", ""), reverse=True)
        return items

    def get(self, book_id: str) -> dict[str, Any] | None:
        response = self.table.get_item(Key={"id": book_id})
        return response.get("Item")

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        record = new_book_record(fields)
        self.table.put_item(Item={k: _to_dynamodb(v) for k, v in record.items()})
        logger.info(f"Created book: {record['id']}")
        return record

    def update(self, book_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        changes = {k: _to_dynamodb(v) for k, v in fields.items() if k in MUTABLE_FIELDS}

        logger.info(f"Updating book {book_id} with fields: {list(changes.keys())}")

        try:
            response = self.table.update_item(
                **book_update_params(book_id, changes, utc_timestamp())
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":  # type: ignore[typeddict-item]
                raise BookNotFoundError(book_id) from e
            raise

        return response["Attributes"]

    def delete(self, book_id: str) -> None:
        self.table.delete_item(Key={"id": book_id})
        logger.info(f"Deleted book (if present): {book_id}")
