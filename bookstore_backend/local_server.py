"""
Local development server for the Bookstore API

Serves the same BookstoreApi the Lambda uses, by translating each HTTP
request into an API Gateway proxy event. Run with ``bookstore-server`` or
``python -m bookstore_backend.local_server``.
"""

from __future__ import annotations

import base64
import logging

import uvicorn
from fastapi import FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool

from bookstore_backend.app import BookstoreApi, create_api
from bookstore_backend.config import load_settings

logger = logging.getLogger(__name__)

METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"]


async def request_to_event(request: Request) -> dict:
    body = await request.body()
    is_base64 = False
    try:
        text = body.decode("utf-8") if body else None
    except UnicodeDecodeError:
        # Binary bodies travel base64 encoded, as API Gateway sends them
        text = base64.b64encode(body).decode("ascii")
        is_base64 = True

    return {
        "httpMethod": request.method,
        "path": request.url.path,
        "headers": dict(request.headers),
        "queryStringParameters": dict(request.query_params) or None,
        "pathParameters": None,
        "body": text,
        "isBase64Encoded": is_base64,
        "requestContext": {},
    }


def create_app(api: BookstoreApi) -> FastAPI:
    app = FastAPI(title="Bookstore API", docs_url=None, redoc_url=None, openapi_url=None)

    @app.api_route("/{path:path}", methods=METHODS)
    async def proxy(request: Request) -> Response:
        event = await request_to_event(request)
        # Store clients block; keep them off the event loop
        result = await run_in_threadpool(api.handle, event)
        return Response(
            content=result.get("body") or b"",
            status_code=result["statusCode"],
            headers=result.get("headers") or {},
        )

    return app


def main() -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Startup completes (or aborts) before the port is bound
    api = create_api(settings)

    logger.info(f"Bookstore server running on port {settings.port}")
    uvicorn.run(create_app(api), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
