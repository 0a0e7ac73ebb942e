"""TsdConfig: user config for the link store.

Lookup order for the config file:

    --config PATH                         # explicit, from the CLI
    $TSD_CONFIG
    ~/.config/tsundoku/tsundoku.toml      # default

A missing file means defaults. $TSD_HOME overrides [store] path.

tsundoku.toml example:

    [store]
    path = "~/.local/share/tsundoku"   # relative paths resolve against this file
    lock_timeout = 5.0                 # seconds to wait for another tsd process

    [log]
    level = "WARNING"                  # DEBUG | INFO | WARNING | ERROR
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "tsundoku.toml"
_DEFAULT_CONFIG_DIR = "~/.config/tsundoku"
_DEFAULT_STORE_DIR = "~/.local/share/tsundoku"
_DEFAULT_LOCK_TIMEOUT = 5.0
_DEFAULT_LOG_LEVEL = "WARNING"

ENV_CONFIG = "TSD_CONFIG"
ENV_HOME = "TSD_HOME"


@dataclass
class StoreConfig:
    path: Path = field(default_factory=lambda: Path(_DEFAULT_STORE_DIR).expanduser())
    lock_timeout: float = _DEFAULT_LOCK_TIMEOUT


@dataclass
class LogConfig:
    level: str = _DEFAULT_LOG_LEVEL

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)  # type: ignore[no-any-return]


@dataclass
class TsdConfig:
    """Resolved configuration."""

    config_path: Path                 # may not exist
    store: StoreConfig = field(default_factory=StoreConfig)
    log: LogConfig = field(default_factory=LogConfig)

    def ensure_dirs(self) -> None:
        self.store.path.mkdir(parents=True, exist_ok=True)


def default_config_path() -> Path:
    env = os.environ.get(ENV_CONFIG)
    if env:
        return Path(env).expanduser()
    return Path(_DEFAULT_CONFIG_DIR).expanduser() / _CONFIG_FILENAME


def _section(raw: dict[str, Any], name: str, config_path: Path) -> dict[str, Any]:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        msg = f"{config_path}: [{name}] must be a table"
        raise ValueError(msg)
    return section


def load_config(path: Path | str | None = None) -> TsdConfig:
    """Load tsundoku.toml (see module docstring for lookup order)."""
    config_path = Path(path).expanduser() if path else default_config_path()

    raw: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("rb") as f:
                raw = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            msg = f"Cannot read {config_path}: {exc}"
            raise ValueError(msg) from exc

    store_section = _section(raw, "store", config_path)
    log_section = _section(raw, "log", config_path)

    store_raw = os.environ.get(ENV_HOME) or str(store_section.get("path", _DEFAULT_STORE_DIR))
    store_path = Path(store_raw).expanduser()
    if not store_path.is_absolute():
        store_path = config_path.parent / store_path

    try:
        lock_timeout = float(store_section.get("lock_timeout", _DEFAULT_LOCK_TIMEOUT))
    except (TypeError, ValueError) as exc:
        msg = f"{config_path}: [store] lock_timeout must be a number"
        raise ValueError(msg) from exc
    if lock_timeout < 0:
        msg = f"{config_path}: [store] lock_timeout must be >= 0"
        raise ValueError(msg)

    level = str(log_section.get("level", _DEFAULT_LOG_LEVEL)).upper()
    if not isinstance(logging.getLevelName(level), int):
        msg = f"{config_path}: unknown [log] level {level!r}"
        raise ValueError(msg)

    return TsdConfig(
        config_path=config_path,
        store=StoreConfig(path=store_path, lock_timeout=lock_timeout),
        log=LogConfig(level=level),
    )


def init_config(path: Path | None = None, store_dir: Path | None = None) -> Path:
    """Write a default tsundoku.toml. Raises if it already exists."""
    config_path = path or default_config_path()
    if config_path.exists():
        msg = f"tsundoku.toml already exists at {config_path}"
        raise FileExistsError(msg)

    store = store_dir or Path(_DEFAULT_STORE_DIR)
    content = f"""\
[store]
path = "{store}"
# lock_timeout = 5.0   # seconds to wait for another tsd process

# [log]
# level = "WARNING"    # DEBUG | INFO | WARNING | ERROR
"""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(content)
    return config_path
