"""
Request routing for the Bookstore API

BookstoreApi owns the long-lived document store and cover storage clients
and dispatches API Gateway proxy events to handlers.

Architecture:
- API Gateway -> Lambda -> BookstoreApi -> BookStore (DynamoDB or MongoDB)
- API Gateway -> Lambda -> BookstoreApi -> CoverStorage (S3 presigned URLs)
- Frontend -> presigned PUT/GET -> S3 directly

Routes:
1. GET    /health         : liveness check
2. GET    /books          : list all books, newest first
3. GET    /books/{id}     : one book
4. POST   /books          : create a book
5. PUT    /books/{id}     : update provided fields of a book
6. DELETE /books/{id}     : delete a book (idempotent)
7. POST   /generate-sas   : presigned cover upload URL
8. GET    /cover-url      : redirect to a presigned cover read URL
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import NamedTuple

from bookstore_backend.config import (
    BACKEND_MONGODB,
    Settings,
    create_dynamodb_resource,
    create_s3_client,
)
from bookstore_backend.handlers.book_handlers import (
    create_book_handler,
    delete_book_handler,
    get_book_handler,
    health_handler,
    list_books_handler,
    update_book_handler,
)
from bookstore_backend.handlers.cover_handlers import (
    cover_url_handler,
    generate_upload_url_handler,
)
from bookstore_backend.stores.book_store import BookStore, DynamoBookStore
from bookstore_backend.stores.cover_storage import CoverStorage
from bookstore_backend.utils import auth
from bookstore_backend.utils.response import error_response, preflight_response

logger = logging.getLogger()

Handler = Callable[[dict, "BookstoreApi"], dict]


class Route(NamedTuple):
    method: str
    pattern: re.Pattern
    handler: Handler
    capability: str | None


def _route(method: str, path: str, handler: Handler, capability: str | None) -> Route:
    # "/books/{id}" -> r"^/books/(?P<id>[^/]+)$"
    regex = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", path)
    return Route(method, re.compile(f"^{regex}$"), handler, capability)


ROUTES = (
    _route("GET", "/health", health_handler, None),
    _route("GET", "/books", list_books_handler, auth.BOOKS_READ),
    _route("POST", "/books", create_book_handler, auth.BOOKS_WRITE),
    _route("GET", "/books/{id}", get_book_handler, auth.BOOKS_READ),
    _route("PUT", "/books/{id}", update_book_handler, auth.BOOKS_WRITE),
    _route("DELETE", "/books/{id}", delete_book_handler, auth.BOOKS_WRITE),
    _route("POST", "/generate-sas", generate_upload_url_handler, auth.COVERS_WRITE),
    _route("GET", "/cover-url", cover_url_handler, auth.COVERS_READ),
)


def parse_request(event: dict) -> tuple[str, str]:
    """
    Extract (method, path) from a REST (v1) or HTTP API (v2) proxy event.
    """
    http = (event.get("requestContext") or {}).get("http") or {}
    method = (event.get("httpMethod") or http.get("method") or "GET").upper()
    path = event.get("rawPath") or event.get("path") or "/"
    return method, path


class BookstoreApi:
    def __init__(
        self,
        books: BookStore,
        covers: CoverStorage,
        authorizer: auth.Authorizer | None = None,
        base_path: str = "",
        routes: tuple[Route, ...] = ROUTES,
    ):
        self.books = books
        self.covers = covers
        self.authorizer = authorizer or auth.AllowAllAuthorizer()
        self.base_path = base_path.rstrip("/")
        self.routes = routes

    def _strip_base_path(self, path: str) -> str | None:
        if not self.base_path:
            return path
        if path == self.base_path:
            return "/"
        if path.startswith(self.base_path + "/"):
            return path[len(self.base_path):]
        return None

    def handle(self, event: dict) -> dict:
        """Dispatch one API Gateway proxy event and return the proxy response."""
        method, raw_path = parse_request(event)
        logger.info(f"{method} {raw_path}")

        if method == "OPTIONS":
            return preflight_response()

        path = self._strip_base_path(raw_path.rstrip("/") or "/")
        if path is None:
            return error_response(404, "Not Found", f"No route for {raw_path}")

        path_matched = False
        for route in self.routes:
            match = route.pattern.match(path)
            if not match:
                continue
            path_matched = True
            if route.method != method:
                continue

            if route.capability:
                denied = self.authorizer.check(event, route.capability)
                if denied:
                    logger.warning(f"Denied {route.capability} for {method} {raw_path}")
                    return denied

            params = match.groupdict()
            if params:
                event = {
                    **event,
                    "pathParameters": {**(event.get("pathParameters") or {}), **params},
                }
            return route.handler(event, self)

        if path_matched:
            return error_response(405, "Method Not Allowed", f"Method {method} not allowed")
        return error_response(404, "Not Found", f"No route for {raw_path}")


def create_book_store(settings: Settings) -> BookStore:
    if settings.books_backend == BACKEND_MONGODB:
        # Imported here so DynamoDB deployments need not ship pymongo
        from bookstore_backend.stores.mongo_store import MongoBookStore, create_mongo_client

        client = create_mongo_client(settings.mongodb_connection_string)
        return MongoBookStore(client, settings.database_name, settings.books_table)

    table = create_dynamodb_resource(settings).Table(settings.books_table)
    return DynamoBookStore(table)


def create_api(
    settings: Settings,
    book_store_factory: Callable[[Settings], BookStore] = create_book_store,
    s3_client_factory: Callable[[Settings], object] = create_s3_client,
) -> BookstoreApi:
    """
    Run the startup sequence and return a ready BookstoreApi.

    1. Connect to the document store. Failure is fatal and propagates.
    2. Ensure the covers bucket exists. Failure is logged; catalog routes
       do not need it and cover routes will fail when signing.
    """
    books = book_store_factory(settings)
    books.connect()

    covers = CoverStorage(
        s3_client_factory(settings), settings.covers_bucket, region=settings.aws_region
    )
    try:
        covers.ensure_container_exists()
    except Exception as e:
        logger.error(f"Error ensuring cover bucket {settings.covers_bucket}: {str(e)}", exc_info=True)

    authorizer = auth.create_authorizer(settings.auth_mode, settings.admin_group)
    logger.info(
        f"Bookstore API ready (backend={settings.books_backend}, auth={settings.auth_mode})"
    )
    return BookstoreApi(books, covers, authorizer, base_path=settings.api_base_path)
