"""
Test the transloading calculator against the bundled rate card.
"""
import dataclasses

import pytest

from quote_core.errors import UnsupportedContainerSize
from quote_core.models import PricingInput
from quote_core.transloading import calculate_transloading_cost, select_loose_tier


def test_palletized_40ft_scenario(rate_sheet):
    result = calculate_transloading_cost(PricingInput(container_size="40", palletized=True, pieces=0), rate_sheet)

    assert result.service_type == "transloading"
    assert result.total == 345.00
    assert result.breakdown.base_cost == 335.0
    assert result.breakdown.accessories == 10.0
    assert [item.label for item in result.line_items] == ["Base transloading (palletized)", "Accessories"]
    assert result.invoice_items == ()
    assert result.metadata is None


def test_seal_and_bill_of_lading_can_be_declined(rate_sheet):
    pi = PricingInput(container_size="40", palletized=True, pieces=0, seal=False, bill_of_lading=False)
    result = calculate_transloading_cost(pi, rate_sheet)
    assert result.total == 335.00
    assert [item.category for item in result.line_items] == ["base"]

    only_seal = dataclasses.replace(pi, seal=True)
    assert calculate_transloading_cost(only_seal, rate_sheet).total == 340.00


def test_base_line_item_kept_when_zero(card):
    from quote_core.rate_sheet import load_rate_sheet

    card["TRANSLOADING"][0]["Palletized"] = "$0.00"
    sheet = load_rate_sheet(card)
    result = calculate_transloading_cost(
        PricingInput(container_size="20", palletized=True, pieces=0, seal=False, bill_of_lading=False), sheet
    )
    assert result.total == 0.0
    assert len(result.line_items) == 1
    assert result.line_items[0].amount == 0.0


@pytest.mark.parametrize("size", ["40", "45", "45ft", "40'"])
def test_45_shares_the_40_row(rate_sheet, size):
    result = calculate_transloading_cost(PricingInput(container_size=size, palletized=True, pieces=0), rate_sheet)
    assert result.breakdown.base_cost == 335.0


@pytest.mark.parametrize("size", ["53", None, "big"])
def test_unsupported_container_size(rate_sheet, size):
    with pytest.raises(UnsupportedContainerSize) as exc:
        calculate_transloading_cost(PricingInput(container_size=size, palletized=True, pieces=0), rate_sheet)
    assert exc.value.container_size == size
    assert exc.value.supported == ("20", "40", "45")


@pytest.mark.parametrize(
    "pieces, base",
    [(0, 170.0), (1, 170.0), (500, 170.0), (501, 230.0), (1000, 230.0), (1001, 300.0), (1500, 300.0), (1501, 450.3), (2000, 600.0)],
)
def test_loose_cargo_tiers(rate_sheet, pieces, base):
    pi = PricingInput(container_size="20", palletized=False, pieces=pieces, seal=False, bill_of_lading=False)
    result = calculate_transloading_cost(pi, rate_sheet)
    assert result.breakdown.base_cost == pytest.approx(base)
    assert result.total == pytest.approx(base)


def test_tier_selection_falls_back_to_last_tier(rate_sheet):
    row = rate_sheet.find_transloading_row("20")
    assert select_loose_tier(row, -5) is row.loose_tiers[-1]


def test_shrink_wrap_and_handling(rate_sheet):
    pi = PricingInput(container_size="40", palletized=True, pieces=400, pallets=10, shrink_wrap=True)
    result = calculate_transloading_cost(pi, rate_sheet)
    assert result.breakdown.accessories == 15.0 * 10 + 5 + 5
    assert result.breakdown.handling == 220.0
    handling = next(item for item in result.line_items if item.label == "Handling")
    assert (handling.quantity, handling.unit) == (10, "pallets")


@pytest.mark.parametrize("after_hours, fee", [("weekday", 350.0), ("weekend", 550.0), (None, 0.0)])
def test_after_hours_fee(rate_sheet, after_hours, fee):
    pi = PricingInput(container_size="40", palletized=True, pieces=0, after_hours=after_hours)
    assert calculate_transloading_cost(pi, rate_sheet).breakdown.after_hours_fee == fee


@pytest.mark.parametrize(
    "days, height, storage",
    [
        (0, None, 0.0),
        (2, None, 0.0),          # free period boundary
        (3, None, 70.0),         # one weekly charge
        (9, None, 70.0),         # still within the week after the free period
        (10, None, 70.0 + 220.0),
        (10, 60, 70.0 + 220.0),
        (10, 72, 70.0 + 340.0),
        (39, None, 70.0 + 220.0),
        (40, None, 70.0 + 440.0),
    ],
)
def test_storage_boundaries(rate_sheet, days, height, storage):
    pi = PricingInput(
        container_size="40", palletized=True, pieces=400, pallets=10, storage_days=days, height_inches=height
    )
    assert calculate_transloading_cost(pi, rate_sheet).breakdown.storage == pytest.approx(storage)


def test_storage_needs_pallets(rate_sheet):
    pi = PricingInput(container_size="40", palletized=False, pieces=100, storage_days=30)
    assert calculate_transloading_cost(pi, rate_sheet).breakdown.storage == 0.0


@pytest.mark.parametrize("hours, workers, labor", [(2, 3, 210.0), (2, None, 0.0), (None, 3, 0.0), (1.5, 2, 105.0)])
def test_labor(rate_sheet, hours, workers, labor):
    pi = PricingInput(container_size="40", palletized=True, pieces=0, extra_hours=hours, workers=workers)
    assert calculate_transloading_cost(pi, rate_sheet).breakdown.labor == labor


@pytest.mark.parametrize(
    "pi",
    [
        PricingInput(container_size="20", palletized=False, pieces=1750, pallets=4, shrink_wrap=True),
        PricingInput(
            container_size="45",
            palletized=True,
            pieces=900,
            pallets=23,
            shrink_wrap=True,
            after_hours="weekend",
            storage_days=45,
            height_inches=70,
            workers=3,
            extra_hours=2,
        ),
        PricingInput(container_size="40", palletized=False, pieces=650, seal=False, storage_days=5, pallets=2),
    ],
)
def test_total_is_sum_of_buckets(rate_sheet, pi):
    result = calculate_transloading_cost(pi, rate_sheet)
    assert result.total == round(sum(amount for _, amount in result.breakdown.buckets()), 2)
    assert result.total == pytest.approx(sum(item.amount for item in result.line_items))


def test_result_is_immutable_and_serializable(rate_sheet):
    result = calculate_transloading_cost(PricingInput(container_size="40", palletized=True, pieces=0), rate_sheet)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.total = 0
    data = result.to_dict()
    assert data["breakdown"]["base_cost"] == 335.0
    assert data["line_items"][0]["category"] == "base"
