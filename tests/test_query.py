from __future__ import annotations

import pytest

from tsundoku.models import LinkId, State
from tsundoku.query import all_of, build_filter, contains, has_id, has_tag, match_all, select
from tsundoku.store import LinkStore


@pytest.fixture()
def filled(store: LinkStore) -> LinkStore:
    store.add("https://docs.python.org/3/library/asyncio.html", comment="Event loops", tags=["py", "async"])
    store.add("https://blog.rust-lang.org/", tags=["rust"])
    store.add("https://sqlite.org/wal.html", comment="WAL mode for Python apps", tags=["db", "py"])
    store.add("https://example.com/read", tags=["py"], archive=True)
    return store


def test_select_all_matches_list(filled: LinkStore) -> None:
    assert select(filled, "dump") == filled.list_records("dump")
    assert select(filled, State.DUMP, match_all) == filled.list_records(State.DUMP)


def test_select_empty_dump_is_not_an_error(store: LinkStore) -> None:
    assert select(store, "dump") == []


def test_select_by_tag_keeps_order(filled: LinkStore) -> None:
    urls = [r.url for r in select(filled, "dump", has_tag("py"))]
    assert urls == [
        "https://docs.python.org/3/library/asyncio.html",
        "https://sqlite.org/wal.html",
    ]


def test_select_by_tag_only_in_requested_collection(filled: LinkStore) -> None:
    assert [r.url for r in select(filled, "archive", has_tag("py"))] == ["https://example.com/read"]


def test_contains_matches_url_or_comment_case_insensitively(filled: LinkStore) -> None:
    urls = [r.url for r in select(filled, "dump", contains("PYTHON"))]
    assert urls == [
        "https://docs.python.org/3/library/asyncio.html",
        "https://sqlite.org/wal.html",
    ]


def test_has_id_exact(filled: LinkStore) -> None:
    target = filled.list_records("dump")[1]
    assert select(filled, "dump", has_id(target.id)) == [target]
    assert select(filled, "archive", has_id(target.id)) == []
    assert select(filled, "dump", has_id(LinkId("deadbeef"))) == []


def test_all_of(filled: LinkStore) -> None:
    hits = select(filled, "dump", all_of(has_tag("py"), contains("wal")))
    assert [r.url for r in hits] == ["https://sqlite.org/wal.html"]


def test_build_filter(filled: LinkStore) -> None:
    assert build_filter() is match_all
    assert len(select(filled, "dump", build_filter(tag="py"))) == 2
    assert len(select(filled, "dump", build_filter(text="rust"))) == 1
    assert select(filled, "dump", build_filter(tag="rust", text="python")) == []
