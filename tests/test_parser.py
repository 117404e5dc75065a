"""Tests for BGG XML normalization."""

import xml.etree.ElementTree as ET

import pytest

from bgg_collection.bgg.parser import (
    get_error_messages,
    normalize_item,
    parse_collection,
    parse_things,
)
from bgg_collection.models import ImportedRecord

from conftest import collection_xml, thing_item, things_xml


def item(xml: str) -> ET.Element:
    return ET.fromstring(xml)


class TestNormalizeItem:
    def test_full_item(self) -> None:
        record = normalize_item(item(thing_item(13, "Catan", year=1995, thumbnail="  https://cf.geekdo-images.com/catan.jpg ")))

        assert record == ImportedRecord(
            external_id=13,
            name="Catan",
            year_published=1995,
            min_players=2,
            max_players=4,
            playing_time=60,
            thumbnail_url="https://cf.geekdo-images.com/catan.jpg",
        )

    def test_primary_name_wins_over_alternates(self) -> None:
        record = normalize_item(item(
            '<item id="13">'
            '<name type="alternate" value="Die Siedler von Catan"/>'
            '<name type="primary" value="Catan"/>'
            '<name type="alternate" value="Los Colonos de Catán"/>'
            '</item>'
        ))

        assert record.name == "Catan"

    def test_first_name_used_without_primary(self) -> None:
        record = normalize_item(item(
            '<item id="13">'
            '<name type="alternate" value="Die Siedler von Catan"/>'
            '<name type="alternate" value="Catan"/>'
            '</item>'
        ))

        assert record.name == "Die Siedler von Catan"

    def test_item_without_names_is_invalid(self) -> None:
        assert normalize_item(item('<item id="13"><yearpublished value="1995"/></item>')) is None

    def test_blank_name_value_is_invalid(self) -> None:
        assert normalize_item(item('<item id="13"><name type="primary" value="  "/></item>')) is None

    @pytest.mark.parametrize("raw_id", ["", "abc", "NaN", "inf"])
    def test_unusable_id_is_invalid(self, raw_id: str) -> None:
        assert normalize_item(item(f'<item id="{raw_id}"><name type="primary" value="Catan"/></item>')) is None

    def test_missing_id_is_invalid(self) -> None:
        assert normalize_item(item('<item><name type="primary" value="Catan"/></item>')) is None

    def test_missing_numeric_fields_are_none_not_zero(self) -> None:
        record = normalize_item(item('<item id="13"><name type="primary" value="Catan"/></item>'))

        assert record.year_published is None
        assert record.min_players is None
        assert record.max_players is None
        assert record.playing_time is None
        assert record.thumbnail_url is None

    def test_empty_or_non_numeric_values_are_none(self) -> None:
        record = normalize_item(item(
            '<item id="13"><name type="primary" value="Catan"/>'
            '<yearpublished value=""/><minplayers value="n/a"/>'
            '<maxplayers/><playingtime value="NaN"/></item>'
        ))

        assert record.year_published is None
        assert record.min_players is None
        assert record.max_players is None
        assert record.playing_time is None

    def test_explicit_zero_is_kept(self) -> None:
        """BGG uses 0 for an unknown year; that is a value, not a missing field."""
        record = normalize_item(item('<item id="13"><name type="primary" value="Catan"/>'
                                     '<yearpublished value="0"/></item>'))

        assert record.year_published == 0

    def test_empty_thumbnail_is_none(self) -> None:
        record = normalize_item(item('<item id="13"><name type="primary" value="Catan"/>'
                                     '<thumbnail>   </thumbnail></item>'))

        assert record.thumbnail_url is None


class TestParseThings:
    def test_malformed_item_dropped_batch_succeeds(self) -> None:
        content = things_xml(
            thing_item(13, "Catan"),
            thing_item(99),  # no name
            thing_item(822, "Carcassonne"),
        ).encode()

        records = parse_things(content)

        assert [r.external_id for r in records] == [13, 822]

    def test_empty_items(self) -> None:
        assert parse_things(b"<items/>") == []

    def test_nested_version_items_ignored(self) -> None:
        """Version listings nest their own <item> elements inside a game."""
        content = things_xml(
            '<item type="boardgame" id="13"><name type="primary" value="Catan"/>'
            '<versions><item type="boardgameversion" id="1001">'
            '<name type="primary" value="English edition"/></item></versions></item>'
        ).encode()

        records = parse_things(content)

        assert [(r.external_id, r.name) for r in records] == [(13, "Catan")]

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(ET.ParseError):
            parse_things(b"<items><item")


class TestParseCollection:
    def test_filters_to_boardgames_and_dedupes(self) -> None:
        content = collection_xml(
            (13, "boardgame"),
            (926, "boardgameexpansion"),
            (822, "boardgame"),
            (13, "boardgame"),
        ).encode()

        assert parse_collection(content) == [13, 822]

    def test_skips_unparseable_ids(self) -> None:
        content = collection_xml(("x", "boardgame"), (13, "boardgame")).encode()

        assert parse_collection(content) == [13]

    def test_empty_collection(self) -> None:
        assert parse_collection(b'<items totalitems="0"/>') == []


class TestGetErrorMessages:
    def test_error_document(self) -> None:
        root = ET.fromstring("<errors><error><message>Invalid username specified</message></error></errors>")

        assert get_error_messages(root) == ["Invalid username specified"]

    def test_items_document_has_no_errors(self) -> None:
        assert get_error_messages(ET.fromstring("<items/>")) == []
