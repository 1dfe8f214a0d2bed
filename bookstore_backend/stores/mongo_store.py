"""
MongoDB-protocol book store (MongoDB, Cosmos DB Mongo API)
"""

from __future__ import annotations

import logging
from typing import Any

from pymongo import DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection

from bookstore_backend.stores.book_store import (
    MUTABLE_FIELDS,
    BookNotFoundError,
    BookStore,
    new_book_record,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

# Never expose the database-internal identifier
_PROJECTION = {"_id": 0}


def create_mongo_client(connection_string: str) -> MongoClient:
    # Cosmos DB's Mongo API does not support retryable writes
    return MongoClient(
        connection_string,
        retryWrites=False,
        serverSelectionTimeoutMS=10000,
    )


class MongoBookStore(BookStore):
    def __init__(self, client: MongoClient, database_name: str, collection_name: str):
        self.client = client
        self.collection: Collection = client[database_name][collection_name]

    def connect(self) -> None:
        logger.info("Connecting to MongoDB...")
        self.client.admin.command("ping")
        logger.info(f"Connected to MongoDB collection: {self.collection.full_name}")

    def list_all(self) -> list[dict[str, Any]]:
        # ObjectIds increase with insertion order
        cursor = self.collection.find({}, _PROJECTION).sort("_id", DESCENDING)
        return list(cursor)

    def get(self, book_id: str) -> dict[str, Any] | None:
        return self.collection.find_one({"id": book_id}, _PROJECTION)

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        record = new_book_record(fields)
        # insert_one adds _id to the document it is given
        result = self.collection.insert_one(dict(record))
        if not result.acknowledged:
            raise RuntimeError("Insert failed")
        logger.info(f"Created book: {record['id']}")
        return record

    def update(self, book_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        to_set: dict[str, Any] = {}
        to_unset: dict[str, str] = {}
        for field, value in fields.items():
            if field not in MUTABLE_FIELDS:
                continue
            if value is None or value == "":
                to_unset[field] = ""
            else:
                to_set[field] = value
        to_set["updatedAt"] = utc_timestamp()

        update: dict[str, Any] = {"$set": to_set}
        if to_unset:
            update["$unset"] = to_unset

        logger.info(f"Updating book {book_id} with fields: {list(to_set) + list(to_unset)}")

        updated = self.collection.find_one_and_update(
            {"id": book_id},
            update,
            projection=_PROJECTION,
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise BookNotFoundError(book_id)
        return updated

    def delete(self, book_id: str) -> None:
        result = self.collection.delete_one({"id": book_id})
        logger.info(f"Deleted {result.deleted_count} book(s) with id: {book_id}")
