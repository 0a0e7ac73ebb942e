"""Data models for the link store."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from tsundoku.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

_ID_HEX_LEN = 8
_ID_RE = re.compile(rf"^#?([0-9a-f]{{{_ID_HEX_LEN}}})$")


class State(str, Enum):
    """Which collection holds a record. Values double as collection names."""

    DUMP = "dump"
    ARCHIVE = "archive"

    @classmethod
    def parse(cls, name: str) -> State:
        try:
            return cls(name.strip().lower())
        except ValueError:
            msg = f"Unknown collection: {name!r} (expected 'dump' or 'archive')"
            raise ValidationError(msg, collection=name) from None


@dataclass(frozen=True, order=True)
class LinkId:
    """Opaque 8-hex-char link identifier.

    ``str(link_id)`` is the display form (``#ab12cd34``); ``link_id.hex`` is
    the storage key.
    """

    hex: str

    def __post_init__(self) -> None:
        if not _ID_RE.match(self.hex) or self.hex.startswith("#"):
            msg = f"Invalid link id: {self.hex!r}"
            raise ValidationError(msg)

    def __str__(self) -> str:
        return f"#{self.hex}"

    @classmethod
    def parse(cls, text: str) -> LinkId:
        """Accept ``#ab12cd34`` or ``ab12cd34`` (any case)."""
        m = _ID_RE.match(text.strip().lower())
        if m is None:
            msg = f"Invalid link id: {text!r} (expected {_ID_HEX_LEN} hex chars, e.g. #ab12cd34)"
            raise ValidationError(msg)
        return cls(m.group(1))


def new_link_id() -> LinkId:
    """Draw a fresh random id (32 bits). The store checks for collisions."""
    return LinkId(secrets.token_hex(_ID_HEX_LEN // 2))


@dataclass(frozen=True)
class LinkRecord:
    """A single link in the dump or the archive."""

    id: LinkId
    url: str
    comment: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)
    created_at: str = ""
    state: State = State.DUMP

    @classmethod
    def from_dict(cls, d: dict[str, Any], state: State) -> LinkRecord:
        """Rebuild a stored record, rejecting fields of the wrong type."""
        link_id = d["id"]
        url = d["url"]
        comment = d.get("comment", "")
        tags = d.get("tags", [])
        created_at = d.get("created_at", "")
        if not isinstance(link_id, str):
            msg = f"Stored id must be a string, got {link_id!r}"
            raise ValidationError(msg)
        if not isinstance(url, str) or not url.strip():
            msg = f"Stored url for #{link_id} must be a non-empty string"
            raise ValidationError(msg, link_id=link_id)
        if not isinstance(comment, str) or not isinstance(created_at, str):
            msg = f"Stored comment/created_at for #{link_id} must be strings"
            raise ValidationError(msg, link_id=link_id)
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            msg = f"Stored tags for #{link_id} must be a list of strings"
            raise ValidationError(msg, link_id=link_id)
        return cls(
            id=LinkId(link_id),
            url=url,
            comment=comment,
            tags=tuple(tags),
            created_at=created_at,
            state=state,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.hex,
            "url": self.url,
            "comment": self.comment,
            "tags": list(self.tags),
            "created_at": self.created_at,
        }

    def archived(self) -> LinkRecord:
        return replace(self, state=State.ARCHIVE)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


def parse_tags(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated tag list: ``"a, b,,c"`` -> ``("a", "b", "c")``."""
    if not raw:
        return ()
    return tuple(t.strip() for t in raw.split(",") if t.strip())


def _clean_tags(tags: Iterable[str]) -> tuple[str, ...]:
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        if "," in tag:
            msg = f"Tag may not contain a comma: {tag!r}"
            raise ValidationError(msg)
        cleaned.append(tag)
    return tuple(cleaned)


def new_record(
    url: str,
    comment: str | None = "",
    tags: Iterable[str] | None = (),
    *,
    archive: bool = False,
    link_id: LinkId | None = None,
) -> LinkRecord:
    """Build a validated record, in the dump unless ``archive`` is set."""
    url = (url or "").strip()
    if not url:
        msg = "URL must not be empty"
        raise ValidationError(msg, operation="add")

    return LinkRecord(
        id=link_id or new_link_id(),
        url=url,
        comment=(comment or "").strip(),
        tags=_clean_tags(tags or ()),
        created_at=datetime.now(UTC).isoformat(),
        state=State.ARCHIVE if archive else State.DUMP,
    )
