"""Extraction normalizer - raw completion text to a canonical ExtractionResult.

The completion service is untrusted: its reply may be fenced in Markdown, may
not be JSON at all, and may omit or mistype any field. normalize() never
raises. Whatever it is given, it returns a structurally valid result, falling
back to the empty result when the reply cannot be read.

Field handling is table-driven. Each FieldRule names the canonical field, the
key it is read from in the raw reply, the coercion applied, and the default
used when the coerced value is empty (None or ""):

    FieldRule("area", "total_area", to_number, None)

Numeric coercion reads the leading number of a string, so "125/1000" gives 125
and "3 Zimmer" gives 3. Text without a leading number coerces to None.
"""
import json
import logging
import math
import re
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple

import yaml

from schemas.enums import UnitType, DEFAULT_COUNTRY, DEFAULT_OWNERSHIP_SHARE
from schemas.extraction import (
    ExtractionResult, PropertyExtract, BuildingExtract, UnitExtract,
)
from agents.extractors.base import strip_code_fences
from ingestion.errors import MalformedResponse

logger = logging.getLogger(__name__)

_DECIMAL_PREFIX = re.compile(r"^\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PREFIX = re.compile(r"^\s*[+-]?\d+")


# ============================================================================
# Coercions
# ============================================================================

def to_text(value: Any) -> str:
    """Scalar to string; containers, booleans and None become ""."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else str(value)
    return ""


def to_decimal(value: Any) -> Optional[Decimal]:
    """Number or leading-number string to Decimal, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _DECIMAL_PREFIX.match(value)
        if not match:
            return None
        try:
            number = Decimal(match.group(0).strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def to_number(value: Any) -> Optional[float]:
    number = to_decimal(value)
    if number is None:
        return None
    result = float(number)
    return result if math.isfinite(result) else None


def to_int(value: Any) -> Optional[int]:
    """Number or leading-integer string to int (truncating), else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _INTEGER_PREFIX.match(value)
        if not match:
            return None
        try:
            return int(match.group(0))
        except ValueError:
            # digit strings beyond the interpreter's int conversion limit
            return None
    return None


@lru_cache(maxsize=1)
def load_unit_type_vocabulary() -> Tuple[List[Tuple[UnitType, Tuple[str, ...]]], UnitType]:
    """
    Load the bilingual unit type vocabulary from YAML config.

    Returns:
        Tuple of (ordered [(UnitType, tokens)] entries, default UnitType)
    """
    vocabulary_path = Path(__file__).parent.parent / "schemas" / "unit_types.yaml"
    with open(vocabulary_path, encoding="utf-8") as f:
        config = yaml.safe_load(f)

    entries = [
        (UnitType(entry["type"]), tuple(token.lower() for token in entry["tokens"]))
        for entry in config["types"]
    ]
    return entries, UnitType(config["default"])


def normalize_unit_type(value: Any) -> UnitType:
    """
    Map a raw unit type to UnitType by case-insensitive substring match.

    English and German terms are both recognized ("Büro", "OFFICE space",
    "Tiefgaragen-Parkplatz"). Anything unrecognized is an Apartment.
    """
    text = value.lower() if isinstance(value, str) else ""
    entries, default = load_unit_type_vocabulary()
    for unit_type, tokens in entries:
        if any(token in text for token in tokens):
            return unit_type
    return default


# ============================================================================
# Field tables
# ============================================================================

class FieldRule(NamedTuple):
    field: str
    source_key: str
    coerce: Callable[[Any], Any]
    default: Any


PROPERTY_RULES = [
    FieldRule("name", "name", to_text, ""),
    FieldRule("area", "total_area", to_number, None),
    FieldRule("area_unit", "area_unit", to_text, ""),
    FieldRule("owner", "owner", to_text, ""),
    FieldRule("internal_reference_number", "internal_reference_number", to_text, ""),
]

BUILDING_RULES = [
    FieldRule("reference_number", "building_number", to_int, None),
    FieldRule("name", "building_name", to_text, ""),
    FieldRule("street", "street", to_text, ""),
    FieldRule("house_number", "house_number", to_text, ""),
    FieldRule("postal_code", "postal_code", to_text, ""),
    FieldRule("city", "city", to_text, ""),
    FieldRule("country", "country", to_text, DEFAULT_COUNTRY),
    FieldRule("additional_details", "additional_details", to_text, ""),
]

UNIT_RULES = [
    FieldRule("number", "number", to_text, ""),
    FieldRule("type", "type", normalize_unit_type, UnitType.APARTMENT),
    FieldRule("building_reference", "building", to_text, ""),
    FieldRule("floor", "floor", to_text, None),
    FieldRule("entrance", "entrance", to_text, None),
    FieldRule("size", "size", to_decimal, None),
    FieldRule("co_ownership_share", "co_ownership_share", to_decimal, None),
    FieldRule("construction_year", "construction_year", to_int, None),
    FieldRule("rooms", "rooms", to_int, None),
    FieldRule("description", "description", to_text, ""),
]


def apply_rules(raw: Mapping[str, Any], rules: List[FieldRule]) -> Dict[str, Any]:
    """Build canonical field values from a raw mapping using a rule table."""
    fields = {}
    for rule in rules:
        value = rule.coerce(raw.get(rule.source_key))
        fields[rule.field] = rule.default if value is None or value == "" else value
    return fields


# ============================================================================
# Ownership share
# ============================================================================

def derive_ownership_share(raw_units: Any) -> float:
    """
    Derive total ownership shares from the first unit's fraction.

    Declarations express co-ownership as fractions over a common denominator
    ("125/1000"). The denominator of the first unit's fraction is taken as the
    property's total share count. This is a heuristic: other units are not
    checked for a consistent denominator.

    Args:
        raw_units: The raw "units" value from the completion reply

    Returns:
        The denominator, or DEFAULT_OWNERSHIP_SHARE if the first unit has no
        string fraction or the denominator is not a positive number
    """
    if not isinstance(raw_units, list) or not raw_units:
        return DEFAULT_OWNERSHIP_SHARE

    first = raw_units[0]
    share = first.get("co_ownership_share") if isinstance(first, dict) else None
    if not isinstance(share, str) or "/" not in share:
        return DEFAULT_OWNERSHIP_SHARE

    denominator = to_decimal(share.split("/")[1])
    if denominator is None or denominator <= 0:
        return DEFAULT_OWNERSHIP_SHARE
    return float(denominator)


# ============================================================================
# Normalization
# ============================================================================

def parse_raw_extraction(raw_text: Optional[str]) -> Dict[str, Any]:
    """
    Parse completion text into the raw extraction mapping.

    Raises:
        MalformedResponse: If the text is empty, not JSON, not a JSON object,
            or has no "property" object
    """
    text = strip_code_fences(raw_text or "")
    if not text:
        raise MalformedResponse("Empty response")

    try:
        raw = json.loads(text)
    except ValueError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise MalformedResponse(f"Expected a JSON object, got {type(raw).__name__}")
    if not isinstance(raw.get("property"), dict):
        raise MalformedResponse("Response has no property section")
    return raw


def _entries(raw: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Ignoring {key}: expected a list, got {type(value).__name__}")
        return []

    entries = [entry for entry in value if isinstance(entry, dict)]
    if len(entries) < len(value):
        logger.warning(f"Skipped {len(value) - len(entries)} non-object {key} entries")
    return entries


def normalize_payload(raw: Mapping[str, Any]) -> ExtractionResult:
    """
    Normalize an already-parsed raw extraction.

    Raises:
        MalformedResponse: If raw has no "property" object
    """
    if not isinstance(raw.get("property"), dict):
        raise MalformedResponse("Response has no property section")

    prop = PropertyExtract(
        **apply_rules(raw["property"], PROPERTY_RULES),
        ownership_share=derive_ownership_share(raw.get("units")),
    )
    buildings = [
        BuildingExtract(**apply_rules(entry, BUILDING_RULES))
        for entry in _entries(raw, "buildings")
    ]
    units = [
        UnitExtract(**apply_rules(entry, UNIT_RULES))
        for entry in _entries(raw, "units")
    ]
    return ExtractionResult(property=prop, buildings=buildings, units=units)


def normalize(raw_text: Optional[str]) -> ExtractionResult:
    """
    Normalize raw completion text into an ExtractionResult.

    Never raises. Unreadable input yields ExtractionResult.empty().

    Args:
        raw_text: Completion reply, plain or fenced JSON

    Returns:
        Canonical extraction result
    """
    try:
        result = normalize_payload(parse_raw_extraction(raw_text))
    except MalformedResponse as e:
        logger.warning(f"Malformed extraction response: {e}")
        return ExtractionResult.empty()
    except Exception as e:
        logger.warning(f"Extraction normalization failed: {e}")
        return ExtractionResult.empty()

    logger.info(
        f"Normalized extraction: property {result.property.name!r}, "
        f"{len(result.buildings)} buildings, {len(result.units)} units"
    )
    return result


# ============================================================================
# Inverse encoding
# ============================================================================

def _format_share(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _format_decimal(value: Optional[Decimal]) -> str:
    """Plain notation; "1E+2" would read back as 1."""
    return format(value, "f") if value is not None else ""


def to_raw_payload(result: ExtractionResult) -> Dict[str, Any]:
    """
    Encode a canonical result in the shape the completion service returns.

    Unit shares are written as "<share>/<ownership_share>" fractions. A unit
    without a share is written as "/<ownership_share>": the blank numerator
    reads back as no share while the denominator still carries the
    property's ownership share.
    """
    prop = result.property
    denominator = _format_share(prop.ownership_share)

    return {
        "property": {
            "name": prop.name,
            "total_area": prop.area,
            "area_unit": prop.area_unit,
            "internal_reference_number": prop.internal_reference_number,
            "owner": prop.owner,
        },
        "buildings": [
            {
                "building_number": b.reference_number,
                "building_name": b.name,
                "street": b.street,
                "house_number": b.house_number,
                "postal_code": b.postal_code,
                "city": b.city,
                "country": b.country,
                "additional_details": b.additional_details,
            }
            for b in result.buildings
        ],
        "units": [
            {
                "number": u.number,
                "type": u.type.value,
                "building": u.building_reference,
                "floor": u.floor,
                "entrance": u.entrance,
                "size": _format_decimal(u.size) or None,
                "co_ownership_share": f"{_format_decimal(u.co_ownership_share)}/{denominator}",
                "construction_year": u.construction_year,
                "rooms": u.rooms,
                "description": u.description,
            }
            for u in result.units
        ],
    }
