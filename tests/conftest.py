"""Shared fixtures: an isolated store directory and config per test."""

from __future__ import annotations

from pathlib import Path

import pytest

from tsundoku.store import LinkStore


@pytest.fixture()
def store_dir(tmp_path: Path) -> Path:
    return tmp_path / "store"


@pytest.fixture()
def store(store_dir: Path) -> LinkStore:
    return LinkStore(store_dir, lock_timeout=0.5)


@pytest.fixture()
def config_file(tmp_path: Path, store_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A tsundoku.toml pointing at store_dir; env overrides cleared."""
    monkeypatch.delenv("TSD_HOME", raising=False)
    monkeypatch.delenv("TSD_CONFIG", raising=False)
    path = tmp_path / "tsundoku.toml"
    path.write_text(f'[store]\npath = "{store_dir}"\nlock_timeout = 0.5\n')
    return path
