"""
Configuration for zedit.

Settings come from a YAML file (zedit_config.yaml in the working directory,
else config.yaml in the per-user config dir), then environment overrides.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from zedit.core.mode import DEFAULT_MODE, Mode, parse_mode
from zedit.ui.state import user_state_dir


DEFAULT_API_URL = "http://localhost:9000/api"
DEFAULT_TIMEOUT = 10.0

ENV_API_URL = "ZEDIT_API_URL"
ENV_DEFAULT_MODE = "ZEDIT_DEFAULT_MODE"

_LOCAL_CONFIG_NAMES = ("zedit_config.yaml", "zedit_config.yml")


def user_config_path() -> Path:
    return user_state_dir("zedit") / "config.yaml"


class ZeditConfig:
    """Editor + store connection settings."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to a YAML config file
        """
        self.api_url = DEFAULT_API_URL
        self.timeout = DEFAULT_TIMEOUT
        self.headers: Dict[str, str] = {}
        self.default_mode: Mode = DEFAULT_MODE
        self.wrap = True
        self.preferences_path: Optional[Path] = None
        self.source: Optional[Path] = None

        if config_file and config_file.exists():
            self.load_user_config(config_file)
            self.source = config_file

    def load_user_config(self, config_file: Path) -> None:
        """
        Load settings from a YAML file. Unknown keys are ignored.

        Format:
          api_url: http://localhost:9000/api
          timeout: 10
          headers: {Authorization: "Bearer ..."}
          default_mode: json
          wrap: true
          preferences_path: ~/.config/zedit/state.json

        Raises:
            ValueError: on invalid YAML or invalid values
        """
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file: {e}")
        except OSError as e:
            raise ValueError(f"Error loading config file: {e}")

        # Handle empty config file
        if user_config is None:
            user_config = {}
        if not isinstance(user_config, dict):
            raise ValueError("Config file must contain a mapping")

        if user_config.get("api_url"):
            self.api_url = str(user_config["api_url"]).rstrip("/")

        if user_config.get("timeout") is not None:
            try:
                self.timeout = float(user_config["timeout"])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid timeout '{user_config['timeout']}' (expected seconds)")
            if self.timeout <= 0:
                raise ValueError("timeout must be positive")

        headers = user_config.get("headers")
        if headers is not None:
            if not isinstance(headers, dict):
                raise ValueError("headers must be a mapping of header name -> value")
            self.headers = {str(k): str(v) for k, v in headers.items()}

        if user_config.get("default_mode"):
            raw = str(user_config["default_mode"])
            mode = parse_mode(raw)
            if mode is None:
                raise ValueError(
                    f"Invalid default_mode '{raw}' (expected one of: {', '.join(m.value for m in Mode)})"
                )
            self.default_mode = mode

        if "wrap" in user_config:
            self.wrap = bool(user_config["wrap"])

        if user_config.get("preferences_path"):
            self.preferences_path = Path(str(user_config["preferences_path"])).expanduser()

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "ZeditConfig":
        env = os.environ if environ is None else environ
        api_url = (env.get(ENV_API_URL) or "").strip()
        if api_url:
            self.api_url = api_url.rstrip("/")
        mode = parse_mode(env.get(ENV_DEFAULT_MODE))
        if mode is not None:
            self.default_mode = mode
        return self

    def export_template(self, output_path: Path) -> None:
        """Write a commented configuration template."""
        yaml_content = f"""# =============================================================================
# zedit configuration
# =============================================================================

# Base URL of the tree store REST gateway.
api_url: {self.api_url}

# Request timeout in seconds.
timeout: {self.timeout:g}

# Extra HTTP headers sent with every request (e.g. an auth token).
headers: {{}}

# Mode used for nodes without a remembered mode: text | json | yaml | xml
default_mode: {self.default_mode.value}

# Soft-wrap long lines in the editor.
wrap: {str(self.wrap).lower()}

# Where remembered per-node modes are stored (defaults to the user state dir).
# preferences_path: ~/.config/zedit/state.json
"""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(yaml_content)

    def get_config_summary(self) -> Dict[str, Any]:
        return {
            "api_url": self.api_url,
            "timeout": self.timeout,
            "headers_count": len(self.headers),
            "default_mode": self.default_mode.value,
            "wrap": self.wrap,
            "preferences_path": str(self.preferences_path) if self.preferences_path else None,
            "source": str(self.source) if self.source else None,
        }


def find_config_file() -> Optional[Path]:
    for name in _LOCAL_CONFIG_NAMES:
        p = Path(name)
        if p.exists():
            return p
    p = user_config_path()
    if p.exists():
        return p
    return None


def load_config(config_file: Optional[Path] = None, *, apply_env: bool = True) -> ZeditConfig:
    """
    Load configuration.

    Args:
        config_file: Optional path to a config file (.yaml or .yml).
                    If None, looks for zedit_config.yaml in the current
                    directory, then the user config dir.
        apply_env: Apply ZEDIT_* environment overrides on top.
    """
    if config_file is None:
        config_file = find_config_file()
    cfg = ZeditConfig(config_file)
    if apply_env:
        cfg.apply_env()
    return cfg


def save_setting(key: str, value: Any, config_path: Path = Path("zedit_config.yaml")) -> None:
    """Set one top-level key in a YAML config file, keeping the others."""
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
    else:
        config = {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    config[key] = value
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
