"""
Tests for the local development server's HTTP <-> proxy event translation
"""

import base64
import json
from unittest.mock import Mock, patch

import pytest
from fastapi.testclient import TestClient

from bookstore_backend import local_server
from bookstore_backend.app import BookstoreApi
from bookstore_backend.config import Settings
from bookstore_backend.utils.response import api_response, redirect_response


@pytest.fixture
def api():
    return Mock(spec=BookstoreApi)


@pytest.fixture
def client(api):
    return TestClient(local_server.create_app(api))


def test_forwards_request_as_proxy_event(api, client):
    api.handle.return_value = api_response(201, {"id": "abc"})

    resp = client.post("/books?x=1", json={"title": "A", "author": "B"})

    assert resp.status_code == 201
    assert resp.json() == {"id": "abc"}
    event = api.handle.call_args.args[0]
    assert event["httpMethod"] == "POST"
    assert event["path"] == "/books"
    assert event["queryStringParameters"] == {"x": "1"}
    assert json.loads(event["body"]) == {"title": "A", "author": "B"}


def test_empty_body_and_query(api, client):
    api.handle.return_value = api_response(200, [])

    client.get("/books")

    event = api.handle.call_args.args[0]
    assert event["body"] is None
    assert event["queryStringParameters"] is None


def test_redirect_passes_through(api, client):
    api.handle.return_value = redirect_response("https://covers.s3.amazonaws.com/covers/1-a.png?sig")

    resp = client.get("/cover-url", params={"blob": "covers/1-a.png"}, follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "https://covers.s3.amazonaws.com/covers/1-a.png?sig"
    assert api.handle.call_args.args[0]["queryStringParameters"] == {"blob": "covers/1-a.png"}


def test_cors_headers_preserved(api, client):
    api.handle.return_value = api_response(404, {"error": "Not Found", "message": "x"})

    resp = client.get("/books/missing")

    assert resp.status_code == 404
    assert resp.headers["access-control-allow-origin"] == "*"


def test_non_utf8_body_forwarded_as_base64(api, client):
    api.handle.return_value = api_response(400, {"error": "Bad Request", "message": "x"})

    client.post("/books", content=b"\xff\xfe{")

    event = api.handle.call_args.args[0]
    assert event["isBase64Encoded"] is True
    assert base64.b64decode(event["body"]) == b"\xff\xfe{"


def test_non_utf8_body_gets_json_400(book_store, cover_storage):
    client = TestClient(local_server.create_app(BookstoreApi(book_store, cover_storage)))

    resp = client.post("/books", content=b"\xff\xfe{", headers={"Content-Type": "application/json"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Bad Request", "message": "Invalid JSON in request body"}
    assert book_store.records == []


def test_main_runs_startup_before_serving():
    settings = Settings(port=4000, host="127.0.0.1")
    calls = []

    with patch.object(local_server, "load_settings", return_value=settings), \
         patch.object(local_server, "create_api", side_effect=lambda s: calls.append("startup") or Mock()), \
         patch.object(local_server.uvicorn, "run", side_effect=lambda *a, **kw: calls.append(("run", kw))):
        local_server.main()

    assert calls[0] == "startup"
    assert calls[1] == ("run", {"host": "127.0.0.1", "port": 4000})


def test_main_aborts_when_store_unreachable():
    with patch.object(local_server, "load_settings", return_value=Settings()), \
         patch.object(local_server, "create_api", side_effect=ConnectionError("down")), \
         patch.object(local_server.uvicorn, "run") as run:
        with pytest.raises(ConnectionError):
            local_server.main()

    run.assert_not_called()
