from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable

import httpx
import pytest

from zedit.core.errors import (
    NodeNotFoundError,
    PermissionDeniedError,
    TransportError,
    VersionConflictError,
)
from zedit.core.http_store import HttpTreeStore
from zedit.core.session import EditSession

BASE = "http://zk.test/api"

NODE_PAYLOAD = {
    "data": '{"a": 1}',
    "acl": [{"scheme": "world", "id": "anyone", "permissions": ["read", "write"]}],
    "meta": {
        "dataVersion": 5,
        "aclVersion": 0,
        "childrenVersion": 2,
        "creationTime": 1700000000000,
        "modifiedTime": 1700000100000,
        "dataLength": 8,
        "numChildren": 1,
        "ephemeralOwner": 0,
    },
    "children": ["db"],
}


def _store(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> HttpTreeStore:
    return HttpTreeStore(BASE, transport=httpx.MockTransport(handler), **kwargs)


def test_get_parses_node_payload():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=NODE_PAYLOAD)

    async def _run() -> None:
        async with _store(handler, headers={"Authorization": "Bearer t"}) as store:
            node = await store.get("/config")
        assert node.path == "/config"
        assert node.data == '{"a": 1}'
        assert node.meta.data_version == 5
        assert node.meta.num_children == 1
        assert node.acl[0].permissions == ("read", "write")
        assert node.children == ("db",)

    asyncio.run(_run())

    req = seen[0]
    assert req.method == "GET"
    assert req.url.path == "/api/znode"
    assert req.url.params["path"] == "/config"
    assert req.headers["Authorization"] == "Bearer t"


def test_set_data_sends_versioned_text_body():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={**NODE_PAYLOAD["meta"], "dataVersion": 6})

    async def _run() -> None:
        async with _store(handler) as store:
            meta = await store.set_data("/config", 5, "žluť")
        assert meta.data_version == 6

    asyncio.run(_run())

    req = seen[0]
    assert req.method == "PUT"
    assert req.url.path == "/api/znode/data"
    assert req.url.params["version"] == "5"
    assert req.url.params["path"] == "/config"
    assert req.content.decode("utf-8") == "žluť"
    assert req.headers["Content-Type"].startswith("text/plain")


def test_session_save_is_logged_once(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=NODE_PAYLOAD)
        return httpx.Response(200, json={**NODE_PAYLOAD["meta"], "dataVersion": 6})

    async def _run() -> None:
        async with _store(handler) as store:
            session = EditSession(store)
            await session.load("/config")
            session.set_buffer('{"a": 2}')
            await session.save()
            await session.settle()

    caplog.set_level(logging.INFO, logger="zedit")
    asyncio.run(_run())

    saved = [r for r in caplog.records if r.getMessage().startswith("Saved")]
    assert [r.name for r in saved] == ["zedit.core.session"]


def test_set_data_accepts_wrapped_meta():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"meta": {"dataVersion": 9}})

    async def _run() -> None:
        async with _store(handler) as store:
            meta = await store.set_data("/n", 8, "x")
        assert meta.data_version == 9

    asyncio.run(_run())


@pytest.mark.parametrize(
    "status,body,exc_type",
    [
        (404, {"message": "NoNode"}, NodeNotFoundError),
        (409, {"message": "version mismatch"}, VersionConflictError),
        (412, None, VersionConflictError),
        (400, {"message": "KeeperErrorCode = BadVersion for /n"}, VersionConflictError),
        (403, {"message": "NoAuth"}, PermissionDeniedError),
        (401, None, PermissionDeniedError),
        (500, {"error": "boom"}, TransportError),
    ],
)
def test_status_mapping_on_write(status, body, exc_type):
    def handler(request: httpx.Request) -> httpx.Response:
        if body is None:
            return httpx.Response(status, text="")
        return httpx.Response(status, json=body)

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(exc_type) as exc:
                await store.set_data("/n", 2, "x")
        assert exc.value.path == "/n"

    asyncio.run(_run())


def test_conflict_carries_expected_version():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "BadVersion"})

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(VersionConflictError) as exc:
                await store.set_data("/n", 2, "x")
        assert exc.value.expected_version == 2

    asyncio.run(_run())


def test_invalid_json_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(TransportError) as exc:
                await store.get("/n")
        assert "Invalid response format" in str(exc.value)

    asyncio.run(_run())


def test_payload_without_meta_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": "x"})

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(TransportError):
                await store.get("/n")

    asyncio.run(_run())


def test_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(TransportError) as exc:
                await store.get("/n")
        assert BASE in str(exc.value)
        assert isinstance(exc.value.__cause__, httpx.ConnectError)

    asyncio.run(_run())


def test_timeout_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(TransportError) as exc:
                await store.set_data("/n", 1, "x")
        assert "Timed out" in str(exc.value)

    asyncio.run(_run())


def test_close_resets_client():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=NODE_PAYLOAD)

    async def _run() -> None:
        store = _store(handler)
        first = store.client
        await store.close()
        assert store._client is None
        assert store.client is not first
        await store.close()

    asyncio.run(_run())


def test_error_body_message_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, content=json.dumps({"message": "gateway down"}).encode())

    async def _run() -> None:
        async with _store(handler) as store:
            with pytest.raises(TransportError) as exc:
                await store.get("/n")
        assert "gateway down" in str(exc.value)
        assert "502" in str(exc.value)

    asyncio.run(_run())
