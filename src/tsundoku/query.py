"""Select records from a collection with composable predicates.

    select(store, "dump")                                   # everything, oldest first
    select(store, "dump", has_tag("python"))
    select(store, "archive", all_of(has_tag("py"), contains("asyncio")))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from tsundoku.models import LinkId, LinkRecord, State
    from tsundoku.store import LinkStore

    Predicate = Callable[[LinkRecord], bool]


def match_all(record: LinkRecord) -> bool:  # noqa: ARG001
    return True


def has_id(link_id: LinkId) -> Predicate:
    return lambda record: record.id == link_id


def has_tag(tag: str) -> Predicate:
    tag = tag.strip()
    return lambda record: record.has_tag(tag)


def contains(text: str) -> Predicate:
    """Case-insensitive substring match on url or comment."""
    needle = text.casefold()

    def _match(record: LinkRecord) -> bool:
        return needle in record.url.casefold() or needle in record.comment.casefold()

    return _match


def all_of(*predicates: Predicate) -> Predicate:
    return lambda record: all(p(record) for p in predicates)


def select(
    store: LinkStore,
    collection: State | str,
    predicate: Predicate = match_all,
) -> list[LinkRecord]:
    """Records in ``collection`` matching ``predicate``, in insertion order."""
    return [r for r in store.list_records(collection) if predicate(r)]


def build_filter(tag: str | None = None, text: str | None = None) -> Predicate:
    """Predicate for the CLI's optional ``--tag`` / ``--search`` flags."""
    predicates: list[Predicate] = []
    if tag:
        predicates.append(has_tag(tag))
    if text:
        predicates.append(contains(text))
    if not predicates:
        return match_all
    return all_of(*predicates)
