from __future__ import annotations

import pytest

from tsundoku.errors import ValidationError
from tsundoku.models import LinkId, LinkRecord, State, new_link_id, new_record, parse_tags


def test_link_id_display_and_storage_forms() -> None:
    lid = LinkId("ab12cd34")
    assert str(lid) == "#ab12cd34"
    assert lid.hex == "ab12cd34"


@pytest.mark.parametrize("text", ["#ab12cd34", "ab12cd34", " #AB12CD34 "])
def test_link_id_parse_accepts_display_and_bare(text: str) -> None:
    assert LinkId.parse(text) == LinkId("ab12cd34")


@pytest.mark.parametrize("text", ["", "#", "ab12cd3", "ab12cd345", "zz12cd34", "##ab12cd34"])
def test_link_id_parse_rejects_garbage(text: str) -> None:
    with pytest.raises(ValidationError):
        LinkId.parse(text)


def test_link_id_constructor_rejects_display_form() -> None:
    with pytest.raises(ValidationError):
        LinkId("#ab12cd34")


def test_new_link_id_is_8_hex() -> None:
    ids = {new_link_id() for _ in range(50)}
    assert all(len(i.hex) == 8 for i in ids)
    assert all(int(i.hex, 16) >= 0 for i in ids)
    # 32 bits of entropy: 50 draws colliding would be astronomically unlikely
    assert len(ids) == 50


def test_new_record_defaults() -> None:
    r = new_record("http://x")
    assert r.url == "http://x"
    assert r.comment == ""
    assert r.tags == ()
    assert r.state is State.DUMP
    assert r.created_at


def test_new_record_archive_flag() -> None:
    assert new_record("http://y", archive=True).state is State.ARCHIVE


@pytest.mark.parametrize("url", ["", "   ", None])
def test_new_record_rejects_empty_url(url: str | None) -> None:
    with pytest.raises(ValidationError):
        new_record(url)  # type: ignore[arg-type]


def test_new_record_cleans_comment_and_tags() -> None:
    r = new_record(" http://x ", comment="  later ", tags=[" py ", "", "py"])
    assert r.url == "http://x"
    assert r.comment == "later"
    # duplicates are kept, blanks dropped
    assert r.tags == ("py", "py")


def test_new_record_rejects_comma_in_tag() -> None:
    with pytest.raises(ValidationError):
        new_record("http://x", tags=["a,b"])


def test_parse_tags() -> None:
    assert parse_tags("a, b,,c ") == ("a", "b", "c")
    assert parse_tags("") == ()
    assert parse_tags(None) == ()


def test_record_dict_round_trip_keeps_state_out_of_payload() -> None:
    r = new_record("http://x", comment="c", tags=["t"], archive=True)
    d = r.to_dict()
    assert "state" not in d
    assert d["id"] == r.id.hex
    assert LinkRecord.from_dict(d, State.ARCHIVE) == r


def test_archived_only_changes_state() -> None:
    r = new_record("http://x", comment="c", tags=["t"])
    a = r.archived()
    assert a.state is State.ARCHIVE
    assert (a.id, a.url, a.comment, a.tags, a.created_at) == (
        r.id, r.url, r.comment, r.tags, r.created_at,
    )


def test_state_parse() -> None:
    assert State.parse("Dump") is State.DUMP
    assert State.parse("archive") is State.ARCHIVE
    with pytest.raises(ValidationError):
        State.parse("trash")
