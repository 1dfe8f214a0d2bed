"""
Lambda entry point for the Bookstore API

Configure the function handler as ``bookstore_backend.handler.lambda_handler``
behind an API Gateway proxy integration. The BookstoreApi is built once per
container on the first invocation; a store connection failure there fails
the invocation and the container is never marked ready.
"""

from __future__ import annotations

import logging

from bookstore_backend.app import BookstoreApi, create_api
from bookstore_backend.config import load_settings

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_api: BookstoreApi | None = None


def get_api() -> BookstoreApi:
    global _api
    if _api is None:
        settings = load_settings()
        logger.setLevel(settings.log_level)
        _api = create_api(settings)
    return _api


def lambda_handler(event, context):
    return get_api().handle(event)


__all__ = ["lambda_handler", "get_api"]
