import dataclasses

import pytest

from zedit.model import ZNode, ZNodeAcl, ZNodeMeta


def test_meta_from_dict_camel_case_and_defaults():
    meta = ZNodeMeta.from_dict({"dataVersion": "3", "numChildren": 2, "creationTime": None})
    assert meta.data_version == 3
    assert meta.num_children == 2
    assert meta.creation_time is None
    assert meta.acl_version == 0
    assert ZNodeMeta.from_dict(meta.to_dict()) == meta


def test_meta_requires_data_version():
    with pytest.raises(ValueError):
        ZNodeMeta.from_dict({"aclVersion": 1})


def test_node_from_dict_prefers_explicit_path():
    node = ZNode.from_dict(
        {"path": "/ignored", "data": None, "meta": {"dataVersion": 1}, "acl": [{"scheme": "digest", "id": "u:x"}]},
        path="/real",
    )
    assert node.path == "/real"
    assert node.data == ""
    assert node.acl == (ZNodeAcl(scheme="digest", id="u:x"),)
    assert node.data_version == 1


def test_node_requires_meta():
    with pytest.raises(ValueError):
        ZNode.from_dict({"data": "x"})


def test_node_is_frozen_and_children_do_not_affect_equality():
    a = ZNode(path="/a", data="x", meta=ZNodeMeta(data_version=1), children=("b",))
    b = dataclasses.replace(a, children=())
    assert a == b
    with pytest.raises(dataclasses.FrozenInstanceError):
        a.data = "y"  # type: ignore[misc]


def test_child_path():
    assert ZNode(path="/", data="", meta=ZNodeMeta(0)).child_path("x") == "/x"
    assert ZNode(path="/a", data="", meta=ZNodeMeta(0)).child_path("x") == "/a/x"
