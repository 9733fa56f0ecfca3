"""
Test the drayage calculator: mileage floor, weight brackets, add-ons and
invoice-only charges.
"""
import dataclasses

import pytest

from quote_core.drayage import calculate_drayage_pricing, find_weight_bracket, hot_rush_applies, resolve_rate_per_mile
from quote_core.errors import MissingRateConfiguration
from quote_core.models import DrayageInput


def _input(**overrides):
    base = dict(
        container_size="40",
        container_weight_lbs=48000,
        miles=80,
        origin="Port of Long Beach",
        destination="Ontario, CA",
        ship_by_date="2025-03-01",
    )
    base.update(overrides)
    return DrayageInput(**base)


def _labels(result):
    return [item.label for item in result.line_items]


def test_reference_scenario(rate_sheet):
    result = calculate_drayage_pricing(_input(), rate_sheet)

    assert result.service_type == "drayage"
    assert result.total == 650.00
    assert [item.amount for item in result.line_items] == [300.0, 350.0]
    assert result.line_items[1].label == "Weight surcharge (Overweight (47,000-50,000 lbs))"
    assert result.invoice_items == ()
    assert result.breakdown is None

    meta = result.metadata
    assert meta.container_size == "40"
    assert meta.rate_per_mile == 3.75
    assert (meta.requested_miles, meta.charged_miles) == (80, 80)
    assert meta.weight_bracket == "Overweight (47,000-50,000 lbs)"
    assert (meta.origin, meta.destination, meta.ship_by_date) == ("Port of Long Beach", "Ontario, CA", "2025-03-01")


@pytest.mark.parametrize("miles", [20, 0, None, 50])
def test_minimum_mile_floor(rate_sheet, miles):
    result = calculate_drayage_pricing(_input(miles=miles, container_weight_lbs=30000), rate_sheet)
    assert result.metadata.charged_miles == 50
    assert result.metadata.requested_miles == miles
    assert result.total == 187.50
    assert len(result.line_items) == 1


@pytest.mark.parametrize(
    "weight, surcharge",
    [(0, 0.0), (43999, 0.0), (44000, 150.0), (46999, 150.0), (47000, 350.0), (50000, 350.0), (50001, 500.0), (80000, 500.0)],
)
def test_weight_bracket_boundaries(rate_sheet, weight, surcharge):
    result = calculate_drayage_pricing(_input(container_weight_lbs=weight), rate_sheet)
    assert result.total == pytest.approx(300.0 + surcharge)


@pytest.mark.parametrize(
    "weight, surcharge",
    [(43999.5, 0.0), (46999.5, 150.0), (50000.4, 350.0), (50000.99, 350.0), (50001.0, 500.0)],
)
def test_fractional_weights_between_brackets(rate_sheet, weight, surcharge):
    result = calculate_drayage_pricing(_input(container_weight_lbs=weight), rate_sheet)
    assert result.metadata.weight_bracket is not None
    assert result.total == pytest.approx(300.0 + surcharge)


def test_weight_above_a_closed_top_bracket(rate_sheet):
    rates = dataclasses.replace(rate_sheet.drayage, weight_brackets=rate_sheet.drayage.weight_brackets[:3])
    assert find_weight_bracket(rates, 50000) is rates.weight_brackets[2]
    assert find_weight_bracket(rates, 50000.5) is None
    assert find_weight_bracket(rates, -1) is None


def test_unknown_weight_has_no_bracket(rate_sheet):
    result = calculate_drayage_pricing(_input(container_weight_lbs=None), rate_sheet)
    assert result.metadata.weight_bracket is None
    assert result.total == 300.0


@pytest.mark.parametrize("size, rate", [("20", 3.5), ("40", 3.75), ("45ft", 4.0), ("53", 3.75), (None, 3.75)])
def test_rate_per_mile_by_size(rate_sheet, size, rate):
    assert calculate_drayage_pricing(_input(container_size=size), rate_sheet).metadata.rate_per_mile == rate


def test_rate_per_mile_fallback_order(rate_sheet):
    rates = rate_sheet.drayage
    assert resolve_rate_per_mile(dataclasses.replace(rates, base_per_mile={"45": 4.0}), "20") == ("45", 4.0)
    assert resolve_rate_per_mile(dataclasses.replace(rates, base_per_mile={}), "40") == ("40", 0.0)


def test_fallback_rate_size_is_reported(rate_sheet):
    result = calculate_drayage_pricing(_input(container_size="53"), rate_sheet)
    assert result.line_items[0].label == "Base drayage (40ft @ $3.75/mile)"
    assert result.metadata.container_size == "40"

    result = calculate_drayage_pricing(_input(container_size="53"), dataclasses.replace(
        rate_sheet, drayage=dataclasses.replace(rate_sheet.drayage, base_per_mile={"45": 4.0})
    ))
    assert result.line_items[0].label == "Base drayage (45ft @ $4.00/mile)"
    assert result.metadata.container_size == "45"


def test_flat_add_ons(rate_sheet):
    result = calculate_drayage_pricing(
        _input(prepaid_pier_pass=True, tcf_charges=True, chassis_split_required=True, prepull_required=True),
        rate_sheet,
    )
    assert _labels(result)[2:] == ["Prepaid Pier pass charges", "TCF charges", "Chassis split", "Prepull"]
    assert result.total == 650.0 + 80 + 20 + 100 + 150


@pytest.mark.parametrize(
    "urgent, within_48, lfd, applies",
    [
        (True, None, None, True),
        (True, True, None, True),
        (True, False, None, False),
        (True, False, 24, True),
        (True, False, 48, False),
        (False, True, 10, False),
    ],
)
def test_hot_rush(rate_sheet, urgent, within_48, lfd, applies):
    di = _input(urgent=urgent, urgent_within_48_hours=within_48, lfd_hours_notice=lfd)
    assert hot_rush_applies(di) is applies
    result = calculate_drayage_pricing(di, rate_sheet)
    assert result.total == (850.0 if applies else 650.0)


def test_per_unit_add_ons_respect_free_units(rate_sheet):
    result = calculate_drayage_pricing(_input(extra_stops=2, empty_storage_days=3, storage_days=2), rate_sheet)
    extra = {item.label: item for item in result.line_items[2:]}
    assert extra["Extra stop"].amount == 100.0
    assert extra["Extra stop"].quantity == 2
    assert extra["Empty container storage"].amount == 50.0
    assert "Loaded container storage" not in extra
    assert result.total == 650.0 + 100 + 50


def test_non_positive_units_are_skipped(rate_sheet):
    result = calculate_drayage_pricing(_input(extra_stops=0, storage_days=-1), rate_sheet)
    assert result.total == 650.0


def test_invoice_items_never_touch_total(rate_sheet):
    plain = calculate_drayage_pricing(_input(), rate_sheet)
    billed = calculate_drayage_pricing(
        _input(
            terminal_dry_run=True,
            chassis_days=3,
            chassis_type="wccp",
            terminal_waiting_hours=3,
            live_unload_hours=2,
            examination_required=True,
            replug_required=True,
            delivery_order_cancellation=True,
            on_time_delivery=True,
            failed_delivery_city_rate=350,
        ),
        rate_sheet,
    )
    assert billed.total == plain.total
    assert billed.line_items == plain.line_items

    invoice = {item.label: item.amount for item in billed.invoice_items}
    assert invoice == {
        "Terminal Dry Run": 150.0,
        "Customs examination fee": 200.0,
        "Reefer replug": 75.0,
        "Delivery order cancellation": 150.0,
        "On-time delivery guarantee": 100.0,
        "Chassis rental (WCCP)": 165.0,
        "Terminal waiting time": 85.0,
        "Failed delivery (city rate less deduction)": 250.0,
    }
    assert all(item.category == "invoice" for item in billed.invoice_items)


def test_standard_chassis_and_small_failed_delivery(rate_sheet):
    result = calculate_drayage_pricing(_input(chassis_days=2, failed_delivery_city_rate=80), rate_sheet)
    assert [(item.label, item.amount) for item in result.invoice_items] == [("Chassis rental (standard)", 90.0)]


def test_missing_drayage_block(rate_sheet):
    sheet = dataclasses.replace(rate_sheet, drayage=None)
    with pytest.raises(MissingRateConfiguration):
        calculate_drayage_pricing(_input(), sheet)
