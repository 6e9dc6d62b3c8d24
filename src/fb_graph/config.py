"""
Configuration: transport defaults and app credentials.

Loaded from ~/.fbgraph/config.json, then overridden by FBGRAPH_* environment
variables. Values are immutable once loaded; hand them to the dispatcher and
OAuth manager at construction instead of mutating shared state.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILE = Path.home() / ".fbgraph" / "config.json"

_ENV_KEYS = {
    "FBGRAPH_APP_ID": ("app_id",),
    "FBGRAPH_APP_SECRET": ("app_secret",),
    "FBGRAPH_CALLBACK_URL": ("callback_url",),
    "FBGRAPH_PROXY": ("http", "proxy"),
    "FBGRAPH_TIMEOUT": ("http", "timeout"),
    "FBGRAPH_ALWAYS_USE_SSL": ("http", "always_use_ssl"),
    "FBGRAPH_CA_FILE": ("http", "ca_file"),
    "FBGRAPH_CA_PATH": ("http", "ca_path"),
}


class HttpDefaults(BaseModel):
    """Process-wide transport defaults; per-call options take precedence."""
    model_config = ConfigDict(frozen=True)

    always_use_ssl: bool = False
    proxy: Optional[str] = None
    timeout: Optional[float] = None
    ca_file: Optional[str] = None
    ca_path: Optional[str] = None


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_id: Optional[str] = None
    app_secret: Optional[str] = None
    callback_url: Optional[str] = None
    http: HttpDefaults = Field(default_factory=HttpDefaults)


def _read_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _apply_env(raw: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    merged = dict(raw)
    merged["http"] = dict(raw.get("http") or {})
    for env_key, dest in _ENV_KEYS.items():
        value = environ.get(env_key)
        if value is None or value == "":
            continue
        if len(dest) == 1:
            merged[dest[0]] = value
        else:
            merged[dest[0]][dest[1]] = value
    return merged


def load_config(path: Optional[Path] = None, environ: Optional[dict[str, str]] = None) -> AppConfig:
    """Load config from *path* (default ~/.fbgraph/config.json) plus env overrides."""
    raw = _read_file(path or CONFIG_FILE)
    env = dict(os.environ) if environ is None else environ
    return AppConfig.model_validate(_apply_env(raw, env))


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    target = path or CONFIG_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(config.model_dump(exclude_none=True), indent=2))
