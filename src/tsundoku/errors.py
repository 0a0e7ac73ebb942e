"""Error taxonomy for the link store.

Every error carries whatever context is known (link id, collection,
operation) so the CLI can print a precise message, plus the process exit
code it maps to.
"""

from __future__ import annotations


class TsundokuError(Exception):
    """Base class for all store errors."""

    exit_code = 1

    def __init__(
        self,
        message: str,
        *,
        link_id: object | None = None,
        collection: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.link_id = link_id
        self.collection = collection
        self.operation = operation

    def __str__(self) -> str:
        parts = [f"{k}={v}" for k, v in (
            ("op", self.operation),
            ("collection", self.collection),
        ) if v]
        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


class ValidationError(TsundokuError):
    """Malformed input: empty url, bad id, unknown collection."""

    exit_code = 2


class NotFoundError(TsundokuError):
    """No record with this id in either collection."""

    exit_code = 3


class InvalidStateError(TsundokuError):
    """Operation not valid for the record's current state."""

    exit_code = 4


class DuplicateIdError(TsundokuError):
    exit_code = 5


class LockTimeoutError(TsundokuError):
    """Another invocation held the store lock for too long."""

    exit_code = 6


class StorageIOError(TsundokuError):
    """The store file could not be read or written."""

    exit_code = 7
