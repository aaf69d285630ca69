from __future__ import annotations

import random

import pytest

from levelforge.errors import NoMatchingTemplate
from levelforge.rooms import Connection, ConnectivitySignature
from levelforge.templates import (
    EMPTY_TILE,
    RoomTemplate,
    TemplateStore,
    TileRecord,
    export_template,
    frame_template,
    parse_records,
    read_template,
    template_path,
)

ALL_CLOSED = ConnectivitySignature.parse("UC_RC_DC_LC")
ALL_OPEN = ConnectivitySignature.parse("UO_RO_DO_LO")


def _template(theme: str, signature: ConnectivitySignature, identifier: str) -> RoomTemplate:
    return RoomTemplate(
        theme=theme,
        signature=signature,
        records=(TileRecord(tile_id=1, x=0, y=0),),
        identifier=identifier,
    )


def test_signature_text_round_trip_and_enumeration():
    signature = ConnectivitySignature.parse("UO_RC_DO_LC")
    assert signature.up is Connection.OPEN
    assert signature.right is Connection.CLOSED
    assert str(signature) == "UO_RC_DO_LC"
    assert len(set(ConnectivitySignature.all())) == 16


@pytest.mark.parametrize("text", ["", "UX_RC_DC_LC", "RC_UC_DC_LC", "UO_RO_DO"])
def test_signature_parse_rejects_garbage(text):
    with pytest.raises(ValueError):
        ConnectivitySignature.parse(text)


def test_resolve_only_returns_templates_from_the_matching_group():
    first = _template("ThemeA", ALL_CLOSED, "a")
    second = _template("ThemeA", ALL_CLOSED, "b")
    other_signature = _template("ThemeA", ALL_OPEN, "c")
    other_theme = _template("ThemeB", ALL_CLOSED, "d")
    store = TemplateStore([first, second, other_signature, other_theme])

    rng = random.Random(8)
    chosen = {store.resolve("ThemeA", ALL_CLOSED, rng).identifier for _ in range(200)}
    assert chosen == {"a", "b"}


def test_resolve_raises_when_group_is_empty():
    store = TemplateStore([_template("ThemeA", ALL_OPEN, "x")])
    with pytest.raises(NoMatchingTemplate) as excinfo:
        store.resolve("ThemeA", ALL_CLOSED, random.Random(0))
    assert isinstance(excinfo.value, LookupError)
    assert "UC_RC_DC_LC" in str(excinfo.value)


def test_missing_signatures_lists_uncovered_groups():
    store = TemplateStore([_template("ThemeA", ALL_OPEN, "x")])
    missing = store.missing_signatures("ThemeA")
    assert len(missing) == 15
    assert ALL_OPEN not in missing


def test_records_outside_template_extent_are_rejected():
    with pytest.raises(ValueError):
        RoomTemplate(theme="T", signature=ALL_OPEN, records=(TileRecord(tile_id=1, x=32, y=0),))
    with pytest.raises(ValueError):
        RoomTemplate(theme="T", signature=ALL_OPEN, records=(TileRecord(tile_id=1, x=0, y=-1),))


def test_parse_records_reads_columns_by_position():
    rows = [
        ["anything", "goes", "here"],
        ["7", "3.0", "4", "True", "False"],
        ["65535", "5", "6", "false", "TRUE"],
        ["9", "1", "2"],
        [],
    ]
    records = parse_records(rows)
    assert records == [
        TileRecord(tile_id=7, x=3, y=4, mutable=True, is_chunk_template=False),
        TileRecord(tile_id=EMPTY_TILE, x=5, y=6, mutable=False, is_chunk_template=True),
        TileRecord(tile_id=9, x=1, y=2),
    ]


def test_parse_records_reports_bad_rows():
    with pytest.raises(ValueError, match="line 2|:2:"):
        parse_records([["h"], ["1", "2", "3", "maybe"]], source="room.csv")


def test_export_and_load_directory(tmp_path):
    template = frame_template("Cave", ALL_OPEN, identifier="arena")
    path = export_template(tmp_path, template)
    assert path == template_path(tmp_path, "Cave", ALL_OPEN, "arena")
    assert path.parent.name == "UO_RO_DO_LO"
    assert path.read_text(encoding="utf-8").splitlines()[0] == (
        "TileId,TileLocationX,TileLocationY,Mutateable,IsChunkTemplate"
    )

    store = TemplateStore.load_directory(tmp_path)
    loaded = store.resolve("Cave", ALL_OPEN, random.Random(0))
    assert loaded.records == template.records
    assert loaded.identifier == "arena"
    assert loaded.source == path


def test_export_conflicts_overwrite_or_index(tmp_path):
    template = _template("Cave", ALL_CLOSED, "boss")
    first = export_template(tmp_path, template)
    again = export_template(tmp_path, template)
    assert again == first
    indexed = export_template(tmp_path, template, auto_index=True)
    assert indexed.name == "roomData_Cave_UC_RC_DC_LC_boss_1.csv"
    second_index = export_template(tmp_path, template, auto_index=True)
    assert second_index.name == "roomData_Cave_UC_RC_DC_LC_boss_2.csv"

    store = TemplateStore.load_directory(tmp_path)
    assert len(store.templates("Cave", ALL_CLOSED)) == 3


def test_load_directory_skips_unrecognised_files(tmp_path):
    (tmp_path / "notes.csv").write_text("TileId\n1,0,0\n", encoding="utf-8")
    export_template(tmp_path, _template("Cave", ALL_OPEN, ""))
    store = TemplateStore.load_directory(tmp_path)
    assert len(store) == 1
    assert store.themes() == ["Cave"]


def test_load_directory_requires_existing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        TemplateStore.load_directory(tmp_path / "missing")


def test_read_template_with_explicit_group(tmp_path):
    path = tmp_path / "room.csv"
    path.write_text("h\n1,0,0,False,False\n2,31,15,True,False\n", encoding="utf-8")
    template = read_template(path, theme="Cave", signature=ALL_CLOSED)
    assert [record.tile_id for record in template.records] == [1, 2]
    assert template.label == "Cave_UC_RC_DC_LC"


def test_frame_template_leaves_openings_on_open_sides():
    closed = frame_template("Cave", ALL_CLOSED)
    opened = frame_template("Cave", ALL_OPEN)
    assert len(closed.records) == len(opened.records) == 32 * 16

    def solid(template):
        return {(r.x, r.y) for r in template.records if r.tile_id != EMPTY_TILE and not r.mutable}

    assert (16, 15) in solid(closed)
    assert (16, 15) not in solid(opened)
    assert (0, 8) in solid(closed)
    assert (0, 8) not in solid(opened)
    assert any(record.mutable for record in opened.records)
    assert sum(record.is_chunk_template for record in opened.records) == 1


def test_frame_template_rejects_underscored_theme():
    with pytest.raises(ValueError):
        frame_template("Bad_Theme", ALL_OPEN)
