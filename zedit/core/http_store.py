"""
TreeStore backed by a ZooNavigator-style REST gateway.

Endpoints (relative to the configured api_url):
  GET  /znode?path=<path>                    -> {"data", "acl", "meta", "children"?}
  PUT  /znode/data?path=<path>&version=<v>   (text body) -> meta

No retries happen here: a failed write must reach the user, who decides
whether to reload and try again.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from zedit.core.errors import (
    NodeNotFoundError,
    PermissionDeniedError,
    StoreError,
    TransportError,
    VersionConflictError,
)
from zedit.model import ZNode, ZNodeMeta

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        text = (response.text or "").strip()
        return text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        msg = body.get("message") or body.get("error")
        if msg:
            return str(msg)
    return f"HTTP {response.status_code}"


class HttpTreeStore:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers: Dict[str, str] = dict(headers or {})
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {"Accept": "application/json", **self.headers}
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTreeStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _raise_for_status(self, response: httpx.Response, *, path: str, version: Optional[int] = None) -> None:
        code = response.status_code
        if code < 400:
            return
        message = _error_message(response)
        if code == 404:
            raise NodeNotFoundError(path)
        if code in (409, 412) or "badversion" in message.lower().replace(" ", ""):
            raise VersionConflictError(path, expected_version=version)
        if code in (401, 403):
            raise PermissionDeniedError(path, message)
        raise TransportError(f"Store request failed ({code}): {message}", path=path)

    async def _request(self, method: str, url: str, *, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as err:
            raise TransportError(f"Timed out talking to {self.base_url}", path=path) from err
        except httpx.TransportError as err:
            raise TransportError(f"Could not reach {self.base_url}: {err}", path=path) from err

    @staticmethod
    def _json(response: httpx.Response, *, path: str) -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as err:
            raise TransportError("Invalid response format from store", path=path) from err

    async def get(self, path: str) -> ZNode:
        response = await self._request("GET", "/znode", path=path, params={"path": path})
        self._raise_for_status(response, path=path)
        body = self._json(response, path=path)
        if not isinstance(body, dict):
            raise TransportError("Invalid response format from store", path=path)
        try:
            return ZNode.from_dict(body, path=path)
        except (ValueError, TypeError) as err:
            raise TransportError(f"Invalid node payload: {err}", path=path) from err

    async def set_data(self, path: str, version: int, data: str) -> ZNodeMeta:
        response = await self._request(
            "PUT",
            "/znode/data",
            path=path,
            params={"path": path, "version": str(version)},
            content=data.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )
        self._raise_for_status(response, path=path, version=version)
        body = self._json(response, path=path)
        if isinstance(body, dict) and isinstance(body.get("meta"), dict):
            body = body["meta"]
        if not isinstance(body, dict):
            raise TransportError("Invalid response format from store", path=path)
        try:
            meta = ZNodeMeta.from_dict(body)
        except (ValueError, TypeError) as err:
            raise TransportError(f"Invalid metadata payload: {err}", path=path) from err
        logger.debug("Saved %s (version %d -> %d)", path, version, meta.data_version)
        return meta


__all__ = ["HttpTreeStore", "StoreError"]
