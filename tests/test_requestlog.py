import io
import json

import pytest
from aiohttp import test_utils, web
from aiohttp.test_utils import make_mocked_request

from cloudshell.logs import Format, Level, init_logging
from cloudshell.requestlog import (
    create_memory_log,
    create_request_log,
    request_fields,
    request_logging_middleware,
)


@pytest.fixture
def log_stream():
    stream = io.StringIO()
    init_logging(Format.JSON, Level.TRACE, stream)
    return stream


def _entries(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


def _mocked_request():
    return make_mocked_request(
        "GET",
        "/path?x=1",
        headers={"Host": "example.com", "User-Agent": "probe", "Cookie": "session=token"},
    )


def test_request_fields_describe_request():
    fields = request_fields(_mocked_request())
    assert fields["host"] == "example.com"
    assert fields["method"] == "GET"
    assert fields["path"] == "/path"
    assert fields["protocol"] == "HTTP/1.1"
    assert fields["request_url"] == "http://example.com/path?x=1"
    assert fields["user_agent"] == "probe"
    assert fields["cookies"] == {"session": "token"}


def test_create_request_log_merges_without_mutating():
    extra = {"connection": "abc"}
    logger = create_request_log(_mocked_request(), extra)
    assert logger.fields["connection"] == "abc"
    assert logger.fields["path"] == "/path"
    assert extra == {"connection": "abc"}


def test_create_request_log_without_request():
    logger = create_request_log(None, {"a": 1})
    assert logger.fields == {"a": 1}


def test_memory_log_fields():
    logger = create_memory_log()
    assert set(logger.fields) == {"alloc", "heap_alloc", "total_alloc", "sys_alloc", "gc_count"}
    assert all(value >= 0 for value in logger.fields.values())


async def _ok(request):
    return web.Response(text="fine")


async def _boom(request):
    raise RuntimeError("boom")


def _app():
    app = web.Application(middlewares=[request_logging_middleware])
    app.router.add_get("/ok", _ok)
    app.router.add_get("/boom", _boom)
    return app


@pytest.mark.asyncio
async def test_middleware_logs_completed_request(log_stream):
    async with test_utils.TestClient(test_utils.TestServer(_app())) as client:
        response = await client.get("/ok")
        assert response.status == 200
        assert await response.text() == "fine"
    messages = [entry for entry in _entries(log_stream)
                if entry["@message"].startswith("request completed in ")]
    assert len(messages) == 1
    entry = messages[0]
    assert entry["@message"].endswith("ms")
    assert entry["@data"]["path"] == "/ok"
    assert entry["@data"]["method"] == "GET"


@pytest.mark.asyncio
async def test_middleware_logs_failed_request(log_stream):
    async with test_utils.TestClient(test_utils.TestServer(_app())) as client:
        response = await client.get("/boom")
        assert response.status == 500
    entries = _entries(log_stream)
    failed = [entry for entry in entries if entry["@message"] == "request errored out"]
    assert len(failed) == 1
    assert failed[0]["@data"]["path"] == "/boom"
    assert not any(entry["@message"].startswith("request completed") for entry in entries)


@pytest.mark.asyncio
async def test_middleware_logs_http_exceptions_as_completed(log_stream):
    async with test_utils.TestClient(test_utils.TestServer(_app())) as client:
        response = await client.get("/missing")
        assert response.status == 404
    entries = _entries(log_stream)
    completed = [entry for entry in entries if entry["@message"].startswith("request completed")]
    assert [entry["@data"]["path"] for entry in completed] == ["/missing"]