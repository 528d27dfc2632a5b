"""Tests for extraction normalization."""
import json
from decimal import Decimal

import pytest
from schemas.enums import UnitType, DEFAULT_COUNTRY
from schemas.extraction import ExtractionResult, PropertyExtract, UnitExtract
from agents.extractors.base import strip_code_fences
from agents.normalizer import (
    to_text,
    to_decimal,
    to_number,
    to_int,
    normalize_unit_type,
    derive_ownership_share,
    parse_raw_extraction,
    normalize,
    to_raw_payload,
)
from ingestion.errors import MalformedResponse


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_unchanged(self):
        assert strip_code_fences('  {"a": 1}\n') == '{"a": 1}'

    def test_missing_closing_fence(self):
        assert strip_code_fences('```json\n{"a": 1}') == '{"a": 1}'

    def test_empty(self):
        assert strip_code_fences("") == ""
        assert strip_code_fences(None) == ""


class TestCoercions:
    def test_to_text(self):
        assert to_text("EG") == "EG"
        assert to_text(3) == "3"
        assert to_text(3.0) == "3"
        assert to_text(2.5) == "2.5"
        assert to_text(None) == ""
        assert to_text(True) == ""
        assert to_text(["EG"]) == ""
        assert to_text({"floor": 1}) == ""

    def test_to_decimal_reads_leading_number(self):
        assert to_decimal("72.5") == Decimal("72.5")
        assert to_decimal("125/1000") == Decimal("125")
        assert to_decimal("72,5 m²") == Decimal("72")
        assert to_decimal(" .5") == Decimal("0.5")
        assert to_decimal(48) == Decimal(48)
        assert to_decimal(72.5) == Decimal("72.5")

    def test_to_decimal_rejects_non_numbers(self):
        assert to_decimal("ca. 70") is None
        assert to_decimal("") is None
        assert to_decimal(None) is None
        assert to_decimal(True) is None
        assert to_decimal(float("nan")) is None
        assert to_decimal([72]) is None

    def test_to_decimal_exponent(self):
        assert to_decimal("1e3") == Decimal("1000")
        assert to_decimal("1E-7 m²") == Decimal("0.0000001")
        assert to_decimal("3 Etagen") == Decimal("3")

    def test_to_number(self):
        assert to_number("1250.5") == 1250.5
        assert to_number("n/a") is None

    def test_to_int(self):
        assert to_int("3 Zimmer") == 3
        assert to_int(3.9) == 3
        assert to_int("1998.0") == 1998
        assert to_int("Baujahr 1998") is None
        assert to_int(False) is None
        assert to_int(float("inf")) is None

    def test_oversized_digit_strings(self):
        assert to_int("9" * 5000) is None
        assert to_number("1e999999") is None


class TestUnitType:
    @pytest.mark.parametrize("raw,expected", [
        ("Apartment", UnitType.APARTMENT),
        ("Wohnung", UnitType.APARTMENT),
        ("Büro", UnitType.OFFICE),
        ("OFFICE space", UnitType.OFFICE),
        ("Gartenanteil", UnitType.GARDEN),
        ("garden", UnitType.GARDEN),
        ("Tiefgaragen-Parkplatz", UnitType.PARKING),
        ("Parking", UnitType.PARKING),
    ])
    def test_vocabulary(self, raw, expected):
        assert normalize_unit_type(raw) == expected

    def test_unknown_defaults_to_apartment(self):
        assert normalize_unit_type("Kellerraum") == UnitType.APARTMENT
        assert normalize_unit_type(None) == UnitType.APARTMENT
        assert normalize_unit_type(7) == UnitType.APARTMENT


class TestOwnershipShare:
    def test_denominator_of_first_unit(self):
        units = [{"co_ownership_share": "125/10000"}, {"co_ownership_share": "80/1000"}]
        assert derive_ownership_share(units) == 10000

    def test_defaults(self):
        assert derive_ownership_share(None) == 1000
        assert derive_ownership_share([]) == 1000
        assert derive_ownership_share("units") == 1000
        assert derive_ownership_share(["not a unit"]) == 1000
        assert derive_ownership_share([{}]) == 1000

    def test_non_fraction_share(self):
        assert derive_ownership_share([{"co_ownership_share": 125}]) == 1000
        assert derive_ownership_share([{"co_ownership_share": "125"}]) == 1000

    def test_invalid_denominator(self):
        assert derive_ownership_share([{"co_ownership_share": "125/0"}]) == 1000
        assert derive_ownership_share([{"co_ownership_share": "125/abc"}]) == 1000


class TestParseRawExtraction:
    def test_fenced_object(self, raw_reply, raw_payload):
        assert parse_raw_extraction(raw_reply) == raw_payload

    @pytest.mark.parametrize("text", [
        "",
        "   ",
        None,
        "I could not read this document.",
        "[1, 2, 3]",
        '{"buildings": []}',
        '{"property": "Lindenhof"}',
    ])
    def test_malformed(self, text):
        with pytest.raises(MalformedResponse):
            parse_raw_extraction(text)


class TestNormalize:
    def test_full_reply(self, raw_reply):
        result = normalize(raw_reply)

        assert result.property.name == "Wohnanlage Lindenhof"
        assert result.property.area == 1250.5
        assert result.property.area_unit == "m²"
        assert result.property.owner == "Lindenhof GmbH"
        assert result.property.internal_reference_number == "UR 123/2024"
        assert result.property.ownership_share == 1000

        assert [b.name for b in result.buildings] == ["Building A", "Building B"]
        assert result.buildings[0].reference_number == 1
        assert result.buildings[1].country == DEFAULT_COUNTRY

        assert [u.number for u in result.units] == ["1", "2", "3"]
        assert [u.type for u in result.units] == [UnitType.APARTMENT, UnitType.OFFICE, UnitType.PARKING]
        first = result.units[0]
        assert first.building_reference == "Building A"
        assert first.size == Decimal("72.5")
        assert first.co_ownership_share == Decimal("125")
        assert first.construction_year == 1998
        assert first.rooms == 3
        assert first.description == "3-Zimmer-Wohnung mit Balkon"
        assert result.units[1].floor is None

    def test_fenced_minimal_reply(self):
        result = normalize('```json\n{"property":{"name":"Test"},"buildings":[],"units":[]}\n```')
        assert result.property.name == "Test"
        assert result.buildings == []
        assert result.units == []

    def test_unfenced_reply(self, raw_payload):
        result = normalize(json.dumps(raw_payload))
        assert len(result.buildings) == 2
        assert len(result.units) == 3

    @pytest.mark.parametrize("text", ["", None, "not json", "[]", '{"units": []}'])
    def test_never_raises(self, text):
        assert normalize(text) == ExtractionResult.empty()

    def test_missing_units_keeps_default_share(self):
        result = normalize('{"property": {"name": "Lindenhof"}, "buildings": []}')
        assert result.property.name == "Lindenhof"
        assert result.property.ownership_share == 1000
        assert result.units == []

    def test_wrong_section_types_become_empty(self):
        result = normalize('{"property": {"name": "Lindenhof"}, "buildings": "two", "units": {"1": {}}}')
        assert result.property.name == "Lindenhof"
        assert result.buildings == []
        assert result.units == []

    def test_non_object_entries_skipped(self):
        result = normalize('{"property": {}, "units": [1, "x", {"number": "5"}]}')
        assert [u.number for u in result.units] == ["5"]
        assert result.property.ownership_share == 1000

    def test_empty_values_take_defaults(self):
        result = normalize(json.dumps({
            "property": {"name": None, "total_area": ""},
            "buildings": [{"building_name": "Haus 1", "country": ""}],
            "units": [{"number": 4, "floor": "", "type": None, "rooms": "drei"}],
        }))
        assert result.property.name == ""
        assert result.property.area is None
        assert result.buildings[0].country == DEFAULT_COUNTRY
        unit = result.units[0]
        assert unit.number == "4"
        assert unit.floor is None
        assert unit.type == UnitType.APARTMENT
        assert unit.rooms is None

    def test_oversized_field_only_drops_that_field(self):
        result = normalize(json.dumps({
            "property": {"name": "Lindenhof"},
            "units": [
                {"number": "1", "rooms": "9" * 5000, "size": "72.5"},
                {"number": "2", "rooms": 3},
            ],
        }))
        assert result.property.name == "Lindenhof"
        assert [u.number for u in result.units] == ["1", "2"]
        assert result.units[0].rooms is None
        assert result.units[0].size == Decimal("72.5")
        assert result.units[1].rooms == 3

    def test_zero_is_kept(self):
        result = normalize('{"property": {"total_area": 0}, "units": [{"rooms": 0}]}')
        assert result.property.area == 0
        assert result.units[0].rooms == 0


class TestRawPayload:
    def test_normalizes_back_to_same_result(self, raw_reply):
        result = normalize(raw_reply)
        assert normalize(json.dumps(to_raw_payload(result))) == result

    def test_share_fraction_uses_ownership_share(self):
        result = normalize('{"property": {}, "units": [{"number": "1", "co_ownership_share": "12.5/10000"}]}')
        payload = to_raw_payload(result)
        assert payload["units"][0]["co_ownership_share"] == "12.5/10000"
        assert payload["units"][0]["size"] is None

    def test_plain_notation_for_exponent_decimals(self):
        result = ExtractionResult(units=[
            UnitExtract(number="1", size=Decimal("1E+2"), co_ownership_share=Decimal("1E-7")),
        ])
        payload = to_raw_payload(result)
        assert payload["units"][0]["size"] == "100"
        assert payload["units"][0]["co_ownership_share"] == "0.0000001/1000"

        back = normalize(json.dumps(payload))
        assert back.units[0].size == Decimal("100")
        assert back == result

    def test_float_exponent_in_reply(self):
        result = normalize('{"property": {}, "units": [{"number": "1", "size": 1e-7}]}')
        assert result.units[0].size == Decimal("0.0000001")
        assert normalize(json.dumps(to_raw_payload(result))) == result

    def test_ownership_share_kept_when_first_unit_has_no_share(self):
        result = ExtractionResult(
            property=PropertyExtract(name="Lindenhof", ownership_share=2000),
            units=[
                UnitExtract(number="1"),
                UnitExtract(number="2", co_ownership_share=Decimal("5")),
            ],
        )
        payload = to_raw_payload(result)
        assert payload["units"][0]["co_ownership_share"] == "/2000"

        back = normalize(json.dumps(payload))
        assert back.property.ownership_share == 2000
        assert back.units[0].co_ownership_share is None
        assert back == result
