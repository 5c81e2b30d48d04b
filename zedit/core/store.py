"""
Tree store interface and an in-memory implementation.

A TreeStore reads a node by path and performs a compare-and-swap write of its
data: `set_data(path, version, data)` succeeds only while the node's current
data version equals `version`.

InMemoryTreeStore backs the tests and `zedit edit --demo`.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Protocol, Set, Tuple

import yaml

from zedit.core.errors import (
    NodeNotFoundError,
    PermissionDeniedError,
    VersionConflictError,
)
from zedit.core.zpath import ROOT_PATH, parse
from zedit.model import ZNode, ZNodeAcl, ZNodeMeta

logger = logging.getLogger(__name__)


class TreeStore(Protocol):
    async def get(self, path: str) -> ZNode:
        """Fetch a node; raises NodeNotFoundError / PermissionDeniedError / TransportError."""
        ...

    async def set_data(self, path: str, version: int, data: str) -> ZNodeMeta:
        """Versioned write; raises VersionConflictError when `version` is stale."""
        ...


OPEN_ACL: Tuple[ZNodeAcl, ...] = (
    ZNodeAcl(scheme="world", id="anyone", permissions=("read", "write", "create", "delete", "admin")),
)


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryTreeStore:
    """
    Dict-backed TreeStore with real CAS semantics.

    Parents are created implicitly when a node is added. `latency` (seconds) is
    awaited before every operation so tests can interleave concurrent calls.
    """

    def __init__(
        self,
        nodes: Optional[Mapping[str, str]] = None,
        *,
        read_only: Iterable[str] = (),
        latency: float = 0.0,
    ) -> None:
        self._data: Dict[str, str] = {}
        self._meta: Dict[str, ZNodeMeta] = {}
        self._read_only: Set[str] = {self._canon(p) for p in read_only}
        self.latency = latency
        self.writes = 0
        self.add(ROOT_PATH, "")
        for path, data in (nodes or {}).items():
            self.add(path, data)

    @staticmethod
    def _canon(path: str) -> str:
        zp = parse(path)
        if zp.path is None:
            raise ValueError(f"Invalid node path {path!r}: {zp.error}")
        return zp.path

    def add(self, path: str, data: str = "", *, version: int = 0) -> None:
        p = self._canon(path)
        zp = parse(p)
        parent = zp.parent
        if parent is not None and parent.path not in self._data:
            self.add(parent.path or ROOT_PATH)
        now = _now_ms()
        self._data[p] = data
        self._meta[p] = ZNodeMeta(
            data_version=version,
            creation_time=now,
            modified_time=now,
            data_length=len(data.encode("utf-8")),
        )

    def mark_read_only(self, path: str) -> None:
        self._read_only.add(self._canon(path))

    def children(self, path: str) -> Tuple[str, ...]:
        p = self._canon(path)
        prefix = p.rstrip("/") + "/"
        names = {
            k[len(prefix):]
            for k in self._data
            if k != p and k.startswith(prefix) and "/" not in k[len(prefix):]
        }
        return tuple(sorted(names))

    def current_version(self, path: str) -> int:
        return self._meta[self._canon(path)].data_version

    async def _pause(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)

    async def get(self, path: str) -> ZNode:
        await self._pause()
        p = self._canon(path)
        if p not in self._data:
            raise NodeNotFoundError(p)
        children = self.children(p)
        meta = self._meta[p]
        if meta.num_children != len(children):
            meta = replace(meta, num_children=len(children))
        return ZNode(path=p, data=self._data[p], meta=meta, acl=OPEN_ACL, children=children)

    async def set_data(self, path: str, version: int, data: str) -> ZNodeMeta:
        await self._pause()
        p = self._canon(path)
        if p not in self._data:
            raise NodeNotFoundError(p)
        if p in self._read_only:
            raise PermissionDeniedError(p)
        current = self._meta[p]
        if current.data_version != version:
            raise VersionConflictError(p, expected_version=version, actual_version=current.data_version)

        new_meta = ZNodeMeta(
            data_version=current.data_version + 1,
            acl_version=current.acl_version,
            children_version=current.children_version,
            creation_time=current.creation_time,
            modified_time=_now_ms(),
            data_length=len(data.encode("utf-8")),
            num_children=len(self.children(p)),
            ephemeral_owner=current.ephemeral_owner,
        )
        self._data[p] = data
        self._meta[p] = new_meta
        self.writes += 1
        logger.debug("set_data %s -> version %d", p, new_meta.data_version)
        return new_meta


def load_seed(path: Path) -> Dict[str, str]:
    """
    Read a `{path: data}` seed mapping from a YAML or JSON file.

    Non-string values are serialized as JSON so structured seeds stay editable.
    """
    p = Path(path)
    raw = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        data = yaml.safe_load(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Seed file must contain a mapping of path -> data: {p}")

    out: Dict[str, str] = {}
    for k, v in data.items():
        if v is None:
            out[str(k)] = ""
        elif isinstance(v, str):
            out[str(k)] = v
        else:
            out[str(k)] = json.dumps(v, indent=2, ensure_ascii=False)
    return out


DEMO_NODES: Dict[str, str] = {
    "/config": "{}",
    "/config/app.json": '{"name": "demo", "replicas": 3, "features": ["a", "b"]}',
    "/config/app.yaml": "name: demo\nreplicas: 3\nfeatures:\n- a\n- b\n",
    "/config/app.xml": "<app><name>demo</name><replicas>3</replicas></app>",
    "/notes": "Plain text node.\nEdit me and press ctrl+s to save.",
}
