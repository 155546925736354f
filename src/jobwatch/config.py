from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from .errors import ConfigError

_TRUE = {"1", "true", "yes", "on"}


def _env(name: str) -> str | None:
    val = os.environ.get(name)
    if val:
        return val
    return None


def env_bool(name: str, default: bool = False) -> bool:
    raw = _env(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


@dataclass(frozen=True)
class Theme:
    """Display styling, passed explicitly to the renderer."""

    spinner: str = "point"
    accent: str = "color(205)"
    value_style: str = "white"
    color: bool = True

    def style(self, name: str) -> str:
        return name if self.color else ""


@dataclass(frozen=True)
class StatusConfig:
    target: str
    job_id: str
    json_output: bool = False
    quiet: bool = False
    insecure: bool = False
    theme: Theme = field(default_factory=Theme)


def _strip_credentials(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigError(f"invalid endpoint URL: {url!r}")
    netloc = parts.hostname
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if parts.port:
        netloc += f":{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path.rstrip("/"), "", ""))


def config_dir() -> Path:
    override = _env("MC_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".mc"


def _alias_from_file(alias: str, path: Path) -> str | None:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"unable to read alias file {path}: {exc}") from exc
    aliases = data.get("aliases") if isinstance(data, dict) else None
    if not isinstance(aliases, dict):
        return None
    entry = aliases.get(alias)
    if isinstance(entry, dict) and isinstance(entry.get("url"), str):
        return entry["url"]
    return None


def resolve_target(target: str, *, alias_file: Path | None = None) -> str:
    """Resolve `alias/` or an explicit URL to the admin endpoint base URL."""
    target = target.strip()
    if not target:
        raise ConfigError("empty target")
    if target.startswith(("http://", "https://")):
        return _strip_credentials(target)

    alias = target.split("/", 1)[0]
    from_env = _env(f"MC_HOST_{alias}")
    if from_env:
        return _strip_credentials(from_env)

    path = alias_file if alias_file is not None else config_dir() / "config.json"
    from_file = _alias_from_file(alias, path)
    if from_file:
        return _strip_credentials(from_file)
    raise ConfigError(f"no such alias {alias!r} (set MC_HOST_{alias} or add it to {path})")
