"""Shared test fixtures and configuration."""
import json

import pytest

from schemas.enums import PropertyType
from schemas.records import PropertyDraft
from ingestion.gateway import InMemoryGateway


class FakeCompleter:
    """Completion client returning a canned reply and recording prompts."""

    def __init__(self, reply="", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def property_draft():
    return PropertyDraft(name="Wohnanlage Lindenhof", type=PropertyType.WEG, unique_number="WEG-0042")


@pytest.fixture
def raw_payload():
    """A well-formed completion reply, as parsed JSON."""
    return {
        "property": {
            "name": "Wohnanlage Lindenhof",
            "total_area": "1250.5",
            "area_unit": "m²",
            "internal_reference_number": "UR 123/2024",
            "owner": "Lindenhof GmbH",
        },
        "buildings": [
            {
                "building_number": 1,
                "building_name": "Building A",
                "street": "Lindenstraße",
                "house_number": "12",
                "postal_code": "10115",
                "city": "Berlin",
                "country": "Germany",
                "additional_details": "",
            },
            {
                "building_number": 2,
                "building_name": "Building B",
                "street": "Lindenstraße",
                "house_number": "14",
                "postal_code": "10115",
                "city": "Berlin",
            },
        ],
        "units": [
            {
                "number": "1",
                "type": "Wohnung",
                "building": "Building A",
                "floor": "EG",
                "entrance": "links",
                "size": "72.5",
                "co_ownership_share": "125/1000",
                "construction_year": 1998,
                "rooms": 3,
                "description": "3-Zimmer-Wohnung mit Balkon",
            },
            {
                "number": "2",
                "type": "Büro",
                "building": "Building A",
                "size": 48,
                "co_ownership_share": "80/1000",
            },
            {
                "number": "3",
                "type": "Tiefgaragen-Parkplatz",
                "building": "Building B",
                "co_ownership_share": "5/1000",
            },
        ],
    }


@pytest.fixture
def raw_reply(raw_payload):
    """The same reply as text, fenced the way the completion service often returns it."""
    return "```json\n" + json.dumps(raw_payload, ensure_ascii=False) + "\n```"


@pytest.fixture
def fake_completer():
    return FakeCompleter
