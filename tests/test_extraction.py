"""
Test the extraction facade and its coercion helpers.
"""
import pytest

from quote_core.extraction import (
    ExtractedShipment,
    coerce_bool,
    coerce_optional_bool,
    normalize_container_size,
    parse_extraction_text,
    to_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("62 miles", 62.0),
        ("1,200", 1200.0),
        ("-3", -3.0),
        (5, 5.0),
        (2.5, 2.5),
        (True, None),
        ("abc", None),
        ("-", None),
        ("1.5 hrs.", 1.5),
        ("2-3 stops", 2.0),
        ("46,999.5 lbs", 46999.5),
        ("1.2.3", 1.2),
        (".5", 0.5),
        (".", None),
        (None, None),
        ([1], None),
    ],
)
def test_to_number(raw, expected):
    assert to_number(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (True, True),
        (False, False),
        ("Yes", True),
        (" on ", True),
        ("Y", True),
        ("1", True),
        ("TRUE", True),
        ("no", False),
        ("maybe", False),
        (2, True),
        (0, False),
        (None, False),
    ],
)
def test_coerce_bool(raw, expected):
    assert coerce_bool(raw) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        (True, True),
        (False, False),
        ("yes", True),
        (" Off ", False),
        ("N", False),
        ("0", False),
        (1, True),
        (0, False),
        ("not mentioned", None),
        ("n/a", None),
        ("unknown", None),
        ("", None),
        (None, None),
        ([True], None),
    ],
)
def test_coerce_optional_bool(raw, expected):
    assert coerce_optional_bool(raw) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [("40ft", "40"), ("45'", "45"), (20, "20"), (40.0, "40"), ("20 foot", "20"), ("n/a", None), (None, None)],
)
def test_normalize_container_size(raw, expected):
    assert normalize_container_size(raw) == expected


def test_parse_extraction_text_tolerates_fences_and_prose():
    fenced = '```json\n{"container_size": "40ft", "quantity": 12}\n```'
    assert parse_extraction_text(fenced) == {"container_size": "40ft", "quantity": 12}

    prose = 'Here is the data: {"palletized": true} Let me know.'
    assert parse_extraction_text(prose) == {"palletized": True}


@pytest.mark.parametrize("text", ["", "   ", None, "not json", "[1, 2]"])
def test_parse_extraction_text_falls_back_to_empty(text):
    assert parse_extraction_text(text) == {}


def test_first_non_null_candidate_wins():
    shipment = ExtractedShipment(
        {
            "drayage": {"miles": None, "miles_to_travel": "80", "origin": "  "},
            "miles": 120,
            "origin": "Miami, FL",
        }
    )
    assert shipment.miles == 80.0
    assert shipment.origin == "Miami, FL"


def test_unparseable_number_falls_through_to_next_source():
    shipment = ExtractedShipment({"drayage": {"miles": "unknown"}, "miles": 40})
    assert shipment.miles == 40.0


def test_invoice_sub_object_is_a_source():
    shipment = ExtractedShipment({"drayage": {"invoice": {"chassis_days": "3", "chassis_type": "WCCP"}}})
    assert shipment.chassis_days == 3.0
    assert shipment.chassis_type == "WCCP"


def test_top_level_fields():
    shipment = ExtractedShipment(
        {"container_size": "20ft", "quantity": "350", "fragile": "yes", "palletized": False, "requested_ship_by": "2025-03-01"}
    )
    assert shipment.container_size == "20"
    assert shipment.pieces == 350.0
    assert shipment.shrink_wrap is True
    assert shipment.palletized is False
    assert shipment.ship_by_date == "2025-03-01"


def test_flags_are_tri_state():
    assert ExtractedShipment({}).urgent_within_48_hours is None
    assert ExtractedShipment({"drayage": {"within_48_hours": "no"}}).urgent_within_48_hours is False
    assert ExtractedShipment({"urgent_within_48h": 1}).urgent_within_48_hours is True


def test_non_mapping_payload_is_empty():
    shipment = ExtractedShipment(None)
    assert shipment.payload == {}
    assert shipment.miles is None
    assert not shipment.has_drayage_details

    assert ExtractedShipment({"drayage": "yes"}).miles is None


def test_from_text():
    shipment = ExtractedShipment.from_text('```json\n{"drayage": {"container_size": "45ft"}}\n```')
    assert shipment.drayage_container_size == "45"
    assert shipment.has_drayage_details


def test_unrecognised_transloading_flags_stay_unknown():
    shipment = ExtractedShipment(
        {"palletized": "unknown", "seal": "not mentioned", "bill_of_lading": "n/a", "shrink_wrap": "maybe"}
    )
    assert shipment.palletized is None
    assert shipment.seal is None
    assert shipment.bill_of_lading is None
    assert shipment.shrink_wrap is None

    shipment = ExtractedShipment({"palletized": "no", "seal": "false", "bill_of_lading": 0})
    assert shipment.palletized is False
    assert shipment.seal is False
    assert shipment.bill_of_lading is False


def test_noisy_numbers_keep_their_leading_value():
    shipment = ExtractedShipment({"drayage": {"live_unload_hours": "3.5 hrs.", "extra_stops": "2-3 stops"}})
    assert shipment.live_unload_hours == 3.5
    assert shipment.extra_stops == 2.0
