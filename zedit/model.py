"""
Canonical in-memory data model for zedit.

A ZNode is what the tree store hands back for a path: the opaque data payload,
the ACL entries (passed through untouched) and the store-assigned metadata.

Nodes are frozen. After a successful write the editing session builds a new
ZNode instead of patching the old one, so anything still holding the previous
baseline keeps a consistent view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ZNodeAcl:
    scheme: str
    id: str
    permissions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"scheme": self.scheme, "id": self.id, "permissions": list(self.permissions)}

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ZNodeAcl":
        perms = d.get("permissions") or ()
        return ZNodeAcl(
            scheme=str(d.get("scheme") or ""),
            id=str(d.get("id") or ""),
            permissions=tuple(str(p) for p in perms),
        )


@dataclass(frozen=True)
class ZNodeMeta:
    """
    Store-assigned node metadata.

    Only `data_version` matters to the editor; the rest is carried for display.
    Wire keys are camelCase (creationTime, dataVersion, ...).
    """

    data_version: int
    acl_version: int = 0
    children_version: int = 0
    creation_time: Optional[int] = None  # epoch ms
    modified_time: Optional[int] = None  # epoch ms
    data_length: int = 0
    num_children: int = 0
    ephemeral_owner: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataVersion": self.data_version,
            "aclVersion": self.acl_version,
            "childrenVersion": self.children_version,
            "creationTime": self.creation_time,
            "modifiedTime": self.modified_time,
            "dataLength": self.data_length,
            "numChildren": self.num_children,
            "ephemeralOwner": self.ephemeral_owner,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ZNodeMeta":
        if "dataVersion" not in d:
            raise ValueError("metadata is missing 'dataVersion'")

        def _int(key: str, default: int = 0) -> int:
            v = d.get(key)
            return int(v) if v is not None else default

        def _opt_int(key: str) -> Optional[int]:
            v = d.get(key)
            return int(v) if v is not None else None

        return ZNodeMeta(
            data_version=int(d["dataVersion"]),
            acl_version=_int("aclVersion"),
            children_version=_int("childrenVersion"),
            creation_time=_opt_int("creationTime"),
            modified_time=_opt_int("modifiedTime"),
            data_length=_int("dataLength"),
            num_children=_int("numChildren"),
            ephemeral_owner=_int("ephemeralOwner"),
        )


@dataclass(frozen=True)
class ZNode:
    path: str
    data: str
    meta: ZNodeMeta
    acl: Tuple[ZNodeAcl, ...] = ()
    # Child names (not paths). Informational; may be empty if the store doesn't report them.
    children: Tuple[str, ...] = field(default=(), compare=False)

    @property
    def data_version(self) -> int:
        return self.meta.data_version

    def child_path(self, name: str) -> str:
        base = self.path.rstrip("/")
        return f"{base}/{name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "data": self.data,
            "acl": [a.to_dict() for a in self.acl],
            "meta": self.meta.to_dict(),
            "children": list(self.children),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any], *, path: Optional[str] = None) -> "ZNode":
        meta = d.get("meta")
        if not isinstance(meta, Mapping):
            raise ValueError("node is missing 'meta'")
        data = d.get("data")
        return ZNode(
            path=str(path if path is not None else d.get("path") or ""),
            data="" if data is None else str(data),
            meta=ZNodeMeta.from_dict(meta),
            acl=tuple(ZNodeAcl.from_dict(a) for a in (d.get("acl") or []) if isinstance(a, Mapping)),
            children=tuple(str(c) for c in (d.get("children") or [])),
        )
