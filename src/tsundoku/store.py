"""Read and write the link store.

LinkStore is the public API:
    store = LinkStore("~/.local/share/tsundoku")
    record = store.add("https://example.com", comment="later", tags=["py"])
    store.list_records("dump")
    store.move_to_archive(record.id)

On-disk layout (one directory):
    links.json        # {"v": 1, "dump": [...], "archive": [...]}
    links.lock        # flock target; never holds data

Both collections live in one file so a dump -> archive move is a single
atomic replace. Mutations read-modify-write under flock(LOCK_EX) on
links.lock; reads take LOCK_SH. Writes go to links.json.tmp, are fsynced,
then renamed over links.json.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import logging
import os
import time
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from tsundoku.errors import (
    DuplicateIdError,
    InvalidStateError,
    LockTimeoutError,
    NotFoundError,
    StorageIOError,
    ValidationError,
)
from tsundoku.models import LinkId, LinkRecord, State, new_link_id, new_record

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

logger = logging.getLogger("tsundoku.store")

_FORMAT_VERSION = 1
_DATA_FILENAME = "links.json"
_LOCK_FILENAME = "links.lock"

DEFAULT_LOCK_TIMEOUT = 5.0
_LOCK_BACKOFF_START = 0.01
_LOCK_BACKOFF_MAX = 0.25
_MAX_ID_ATTEMPTS = 32

_Collections = dict[State, list[LinkRecord]]


class LinkStore:
    """JSON-backed store holding the dump and archive collections."""

    def __init__(
        self,
        store_dir: Path | str,
        *,
        lock_timeout: float = DEFAULT_LOCK_TIMEOUT,
        id_factory: Callable[[], LinkId] = new_link_id,
    ) -> None:
        self.store_dir = Path(store_dir).expanduser()
        self.lock_timeout = lock_timeout
        self._id_factory = id_factory
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Cannot create store directory {self.store_dir}: {exc}"
            raise StorageIOError(msg, operation="open") from exc

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def data_path(self) -> Path:
        return self.store_dir / _DATA_FILENAME

    @property
    def lock_path(self) -> Path:
        return self.store_dir / _LOCK_FILENAME

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, link_id: LinkId) -> LinkRecord:
        """Look a record up in either collection."""
        with self._locked(fcntl.LOCK_SH, "get"):
            collections = self._load()
        record = _find(collections, link_id)
        if record is None:
            msg = f"No link {link_id}"
            raise NotFoundError(msg, link_id=link_id, operation="get")
        return record

    def list_records(self, collection: State | str) -> list[LinkRecord]:
        """All records in ``collection``, oldest first."""
        state = collection if isinstance(collection, State) else State.parse(collection)
        with self._locked(fcntl.LOCK_SH, "list"):
            collections = self._load()
        return list(collections[state])

    def tags(self) -> list[str]:
        """Every distinct tag across both collections, in order of first use."""
        seen: dict[str, None] = {}
        with self._locked(fcntl.LOCK_SH, "tags"):
            collections = self._load()
        for state in State:
            for record in collections[state]:
                for tag in record.tags:
                    seen.setdefault(tag, None)
        return list(seen)

    def counts(self) -> dict[str, int]:
        with self._locked(fcntl.LOCK_SH, "counts"):
            collections = self._load()
        return {state.value: len(records) for state, records in collections.items()}

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def insert(self, record: LinkRecord) -> LinkId:
        """Add a pre-built record to the collection matching its state."""
        with self._locked(fcntl.LOCK_EX, "insert"):
            collections = self._load()
            if _find(collections, record.id) is not None:
                msg = f"Link id {record.id} already exists"
                raise DuplicateIdError(msg, link_id=record.id, operation="insert")
            collections[record.state].append(record)
            self._save(collections)
        logger.info("link inserted: %s -> %s", record.id, record.state.value)
        return record.id

    def add(
        self,
        url: str,
        comment: str | None = "",
        tags: Iterable[str] | None = (),
        *,
        archive: bool = False,
    ) -> LinkRecord:
        """Create and insert a record, drawing ids until one is unused.

        Id generation and insertion share one exclusive lock, so two
        concurrent invocations can never claim the same id.
        """
        # Validate before touching the lock so bad input never blocks.
        draft = new_record(url, comment, tags, archive=archive)
        with self._locked(fcntl.LOCK_EX, "add"):
            collections = self._load()
            taken = {r.id for records in collections.values() for r in records}
            link_id = self._fresh_id(taken)
            record = replace(draft, id=link_id)
            collections[record.state].append(record)
            self._save(collections)
        logger.info("link added: %s -> %s (%s)", record.id, record.state.value, record.url)
        return record

    def move_to_archive(self, link_id: LinkId) -> LinkRecord:
        """Move a record from the dump into the archive."""
        with self._locked(fcntl.LOCK_EX, "read"):
            collections = self._load()
            dump = collections[State.DUMP]
            for i, record in enumerate(dump):
                if record.id == link_id:
                    break
            else:
                if any(r.id == link_id for r in collections[State.ARCHIVE]):
                    msg = f"Link {link_id} is already archived"
                    raise InvalidStateError(
                        msg, link_id=link_id, collection=State.ARCHIVE.value, operation="read",
                    )
                msg = f"No link {link_id}"
                raise NotFoundError(msg, link_id=link_id, operation="read")

            moved = dump.pop(i).archived()
            collections[State.ARCHIVE].append(moved)
            self._save(collections)
        logger.info("link archived: %s", link_id)
        return moved

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fresh_id(self, taken: set[LinkId]) -> LinkId:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = self._id_factory()
            if candidate not in taken:
                return candidate
            logger.debug("id collision on %s, redrawing", candidate)
        msg = f"Could not draw an unused link id after {_MAX_ID_ATTEMPTS} attempts"
        raise DuplicateIdError(msg, operation="add")

    @contextlib.contextmanager
    def _locked(self, mode: int, operation: str) -> Iterator[None]:
        """Hold flock(mode) on links.lock, retrying with backoff up to lock_timeout."""
        try:
            f = self.lock_path.open("a")
        except OSError as exc:
            msg = f"Cannot open lock file {self.lock_path}: {exc}"
            raise StorageIOError(msg, operation=operation) from exc

        try:
            deadline = time.monotonic() + self.lock_timeout
            delay = _LOCK_BACKOFF_START
            while True:
                try:
                    fcntl.flock(f, mode | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        msg = f"Store is locked by another process (waited {self.lock_timeout:.1f}s)"
                        raise LockTimeoutError(msg, operation=operation) from None
                    logger.debug("store locked, retrying in %.3fs", delay)
                    time.sleep(min(delay, remaining))
                    delay = min(delay * 2, _LOCK_BACKOFF_MAX)
            try:
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)
        finally:
            f.close()

    def _load(self) -> _Collections:
        """Read links.json. A missing file is an empty store."""
        collections: _Collections = {state: [] for state in State}
        path = self.data_path
        if not path.exists():
            return collections
        try:
            with path.open(encoding="utf-8") as f:
                raw: dict[str, Any] = json.load(f)
            version = raw.get("v")
            if version != _FORMAT_VERSION:
                msg = f"Unsupported store format version {version!r} in {path}"
                raise StorageIOError(msg, operation="load")
            for state in State:
                collections[state] = [
                    LinkRecord.from_dict(d, state) for d in raw.get(state.value, [])
                ]
        # ValueError covers JSONDecodeError and UnicodeDecodeError
        except (OSError, ValueError, KeyError, TypeError, AttributeError, ValidationError) as exc:
            msg = f"Cannot read store file {path}: {exc}"
            raise StorageIOError(msg, operation="load") from exc
        return collections

    def _save(self, collections: _Collections) -> None:
        """Atomically write links.json (tmp + fsync + rename)."""
        data: dict[str, Any] = {"v": _FORMAT_VERSION}
        for state in State:
            data[state.value] = [r.to_dict() for r in collections[state]]

        path = self.data_path
        tmp = path.with_suffix(".json.tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            msg = f"Cannot write store file {path}: {exc}"
            raise StorageIOError(msg, operation="save") from exc


def _find(collections: _Collections, link_id: LinkId) -> LinkRecord | None:
    for records in collections.values():
        for record in records:
            if record.id == link_id:
                return record
    return None
