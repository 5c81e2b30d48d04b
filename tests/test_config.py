import sys

import pytest
import yaml
from pathlib import Path

from zedit.core.config import (
    DEFAULT_API_URL,
    ZeditConfig,
    find_config_file,
    load_config,
    save_setting,
    user_config_path,
)
from zedit.core.mode import Mode


def test_defaults_without_file():
    cfg = ZeditConfig()
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.timeout == 10.0
    assert cfg.default_mode is Mode.TEXT
    assert cfg.wrap is True
    assert cfg.source is None


def test_missing_file_is_ignored(tmp_path: Path):
    cfg = ZeditConfig(tmp_path / "absent.yaml")
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.source is None


def test_load_full_file(tmp_path: Path):
    cfg_path = tmp_path / "zedit_config.yaml"
    cfg_path.write_text(
        "api_url: https://zk.example.com/api/\n"
        "timeout: 2.5\n"
        "headers:\n  Authorization: Bearer abc\n"
        "default_mode: yml\n"
        "wrap: false\n"
        "preferences_path: ~/zedit-state.json\n"
        "unknown_key: ignored\n",
        encoding="utf-8",
    )
    cfg = ZeditConfig(cfg_path)
    assert cfg.api_url == "https://zk.example.com/api"
    assert cfg.timeout == 2.5
    assert cfg.headers == {"Authorization": "Bearer abc"}
    assert cfg.default_mode is Mode.YAML
    assert cfg.wrap is False
    assert cfg.preferences_path == Path("~/zedit-state.json").expanduser()
    assert cfg.source == cfg_path


@pytest.mark.parametrize("content", ["", "null\n"])
def test_empty_yaml_uses_defaults(tmp_path: Path, content: str):
    cfg_path = tmp_path / "zedit_config.yaml"
    cfg_path.write_text(content, encoding="utf-8")
    assert ZeditConfig(cfg_path).api_url == DEFAULT_API_URL


@pytest.mark.parametrize(
    "content,needle",
    [
        (":\n- [\n", "Invalid YAML"),
        ("- a\n- b\n", "mapping"),
        ("timeout: soon\n", "timeout"),
        ("timeout: 0\n", "positive"),
        ("headers: [a, b]\n", "headers"),
        ("default_mode: toml\n", "default_mode"),
    ],
)
def test_invalid_config_raises(tmp_path: Path, content: str, needle: str):
    cfg_path = tmp_path / "zedit_config.yaml"
    cfg_path.write_text(content, encoding="utf-8")
    with pytest.raises(ValueError) as exc:
        ZeditConfig(cfg_path)
    assert needle in str(exc.value)


def test_env_overrides():
    cfg = ZeditConfig().apply_env({"ZEDIT_API_URL": "http://other:8080/", "ZEDIT_DEFAULT_MODE": "xml"})
    assert cfg.api_url == "http://other:8080"
    assert cfg.default_mode is Mode.XML


def test_env_ignores_blank_and_unknown_values():
    cfg = ZeditConfig().apply_env({"ZEDIT_API_URL": "  ", "ZEDIT_DEFAULT_MODE": "nope"})
    assert cfg.api_url == DEFAULT_API_URL
    assert cfg.default_mode is Mode.TEXT


def test_find_config_file_prefers_working_directory(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    assert find_config_file() is None

    user_cfg = user_config_path()
    user_cfg.parent.mkdir(parents=True)
    user_cfg.write_text("default_mode: json\n", encoding="utf-8")
    assert find_config_file() == user_cfg

    (tmp_path / "zedit_config.yml").write_text("default_mode: xml\n", encoding="utf-8")
    assert find_config_file() == Path("zedit_config.yml")
    assert load_config(apply_env=False).default_mode is Mode.XML


def test_load_config_applies_env(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ZEDIT_DEFAULT_MODE", "yaml")
    cfg_path = tmp_path / "c.yaml"
    cfg_path.write_text("default_mode: json\n", encoding="utf-8")
    assert load_config(cfg_path).default_mode is Mode.YAML
    assert load_config(cfg_path, apply_env=False).default_mode is Mode.JSON


def test_export_template_roundtrips(tmp_path: Path):
    out = tmp_path / "template.yaml"
    ZeditConfig().export_template(out)
    data = yaml.safe_load(out.read_text(encoding="utf-8"))
    assert data["api_url"] == DEFAULT_API_URL
    assert data["default_mode"] == "text"
    assert data["wrap"] is True
    assert ZeditConfig(out).timeout == 10.0


def test_save_setting_keeps_other_keys(tmp_path: Path):
    cfg_path = tmp_path / "zedit_config.yaml"
    cfg_path.write_text("timeout: 3\n", encoding="utf-8")
    save_setting("default_mode", "json", cfg_path)
    data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    assert data == {"timeout": 3, "default_mode": "json"}


def test_summary():
    summary = ZeditConfig().get_config_summary()
    assert summary["headers_count"] == 0
    assert summary["source"] is None
    assert summary["default_mode"] == "text"


@pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX config dir layout")
def test_user_config_path_under_state_dir(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    p = user_config_path()
    assert p.name == "config.yaml"
    assert p.parent.name == "zedit"
    assert str(p).startswith(str(tmp_path))
