"""Layered settings for EventStatus.

Each option resolves from its ``EVENTSTATUS_*`` environment variable, then
``eventstatus.toml``, then the built-in default.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, fields
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable

ENV_PREFIX = "EVENTSTATUS_"
CONFIG_FILENAME = "eventstatus.toml"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUTHY:
            return True
        if token in _FALSY:
            return False
    elif isinstance(value, (bool, int, float)):
        return bool(value)
    raise ValueError(f"Cannot parse boolean value from {value!r}")


# option name -> (default, parser)
OPTIONS: dict[str, tuple[Any, Callable[[Any], Any]]] = {
    "timezone": ("UTC", str),
    "enable_scheduler": (True, parse_bool),
    "sweep_interval_minutes": (5, int),
    "events_per_page": (25, int),
    "seed_event_count": (20, int),
    "seed_organizers": (3, int),
    "seed_open_ended_percent": (30, int),
    "app_host": ("0.0.0.0", str),
    "app_port": (8000, int),
}
# The feed location predates the generic naming scheme.
ENV_NAMES = {"feed_path": f"{ENV_PREFIX}FEED"}
WRITABLE_KEYS = frozenset(OPTIONS) | {"feed_path"}


@dataclass(frozen=True)
class Settings:
    base_dir: Path
    data_dir: Path
    feed_path: Path
    config_path: Path
    timezone: str
    enable_scheduler: bool
    sweep_interval_minutes: int
    events_per_page: int
    seed_event_count: int
    seed_organizers: int
    seed_open_ended_percent: int
    app_host: str
    app_port: int

    @property
    def sweep_interval(self) -> timedelta:
        return timedelta(minutes=self.sweep_interval_minutes)


def _coerce(key: str, value: Any) -> Any:
    option = OPTIONS.get(key)
    return option[1](value) if option else value


def _raw(key: str, file_values: dict[str, Any]) -> Any:
    env_name = ENV_NAMES.get(key, f"{ENV_PREFIX}{key.upper()}")
    if env_name in os.environ:
        return os.environ[env_name]
    return file_values.get(key)


def _anchored(base_dir: Path, value: Any, fallback: Path) -> Path:
    path = Path(value) if value else fallback
    return path if path.is_absolute() else base_dir / path


def read_config_file(path: Path) -> dict[str, Any]:
    try:
        with Path(path).open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}


def load_settings(config_override: Path | None = None) -> Settings:
    base_dir = Path(os.getenv(f"{ENV_PREFIX}BASE_DIR", Path.cwd()))
    config_path = Path(
        config_override or os.getenv(f"{ENV_PREFIX}CONFIG") or base_dir / CONFIG_FILENAME
    )
    file_values = read_config_file(config_path)

    options = {}
    for key, (default, _parser) in OPTIONS.items():
        value = _raw(key, file_values)
        options[key] = default if value is None else _coerce(key, value)

    data_dir = _anchored(base_dir, _raw("data_dir", file_values), base_dir / "data")
    return Settings(
        base_dir=base_dir,
        data_dir=data_dir,
        feed_path=_anchored(
            base_dir, _raw("feed_path", file_values), data_dir / "events.json"
        ),
        config_path=config_path,
        **options,
    )


def settings_as_dict(current: Settings) -> dict[str, Any]:
    """Plain JSON-friendly view of the effective settings."""
    snapshot: dict[str, Any] = {}
    for field in fields(current):
        if field.name == "config_path":
            continue
        value = getattr(current, field.name)
        snapshot[field.name] = str(value) if isinstance(value, Path) else value
    return snapshot


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return repr(value)
    # JSON string escapes are valid TOML basic-string escapes.
    return json.dumps(str(value))


def write_config_file(values: dict[str, Any], *, path: Path) -> None:
    body = "".join(f"{key} = {_toml_value(values[key])}\n" for key in sorted(values))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"# EventStatus configuration\n{body}", encoding="utf-8")


def update_config_file(updates: dict[str, Any], *, path: Path | None = None) -> Settings:
    """Merge known keys into the config file and reload ``settings`` from it."""
    global settings
    target = Path(path) if path else settings.config_path
    merged = read_config_file(target)
    merged.update(
        {key: _coerce(key, value) for key, value in updates.items() if key in WRITABLE_KEYS}
    )
    write_config_file(merged, path=target)
    settings = load_settings(target)
    return settings


settings = load_settings()
