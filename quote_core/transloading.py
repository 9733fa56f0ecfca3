"""
Transloading Calculator

Prices unloading/palletizing a container from the rate sheet:
base (palletized flat or loose-cargo tier) + accessorials + handling
+ after-hours fee + storage + labor.
"""
from __future__ import annotations

import logging
import math

from quote_core.errors import UnsupportedContainerSize
from quote_core.extraction import normalize_container_size
from quote_core.models import LineItem, PricingInput, QuoteResult, TransloadingBreakdown
from quote_core.rate_sheet.models import LooseCargoTier, RateSheet, TransloadingRow


logger = logging.getLogger(__name__)

MONTH_DAYS = 30
WEEK_DAYS = 7
TALL_PALLET_INCHES = 60


def calculate_transloading_cost(pricing_input: PricingInput, rate_sheet: RateSheet) -> QuoteResult:
    """
    Price a transloading request.

    Raises UnsupportedContainerSize when no rate row carries the size.
    Absent numeric fields count as zero; seal and bill of lading are charged
    unless explicitly False.
    """
    size = normalize_container_size(pricing_input.container_size)
    row = rate_sheet.find_transloading_row(size) if size else None
    if row is None:
        logger.warning("Unsupported container size %r", pricing_input.container_size)
        raise UnsupportedContainerSize(pricing_input.container_size, rate_sheet.container_sizes)

    pieces = int(pricing_input.pieces or 0)
    pallets = int(pricing_input.pallets or 0)

    base_cost, base_label = _base_cost(row, palletized=bool(pricing_input.palletized), pieces=pieces)

    acc = rate_sheet.accessorials
    accessories = 0.0
    if pricing_input.shrink_wrap:
        accessories += acc.shrink_wrap_per_pallet * pallets
    if pricing_input.seal is not False:
        accessories += acc.seal
    if pricing_input.bill_of_lading is not False:
        accessories += acc.bill_of_lading

    wh = rate_sheet.warehousing
    handling = wh.handling_per_pallet * pallets

    if pricing_input.after_hours == "weekend":
        after_hours_fee = wh.after_hours_weekend
    elif pricing_input.after_hours == "weekday":
        after_hours_fee = wh.after_hours_weekday
    else:
        after_hours_fee = 0.0

    storage = storage_charge(
        rate_sheet,
        days=float(pricing_input.storage_days or 0),
        pallets=pallets,
        height_inches=pricing_input.height_inches,
    )

    labor = float(pricing_input.extra_hours or 0) * int(pricing_input.workers or 0) * rate_sheet.storage.labor_per_hour

    breakdown = TransloadingBreakdown(
        base_cost=round(base_cost, 2),
        accessories=round(accessories, 2),
        handling=round(handling, 2),
        after_hours_fee=round(after_hours_fee, 2),
        storage=round(storage, 2),
        labor=round(labor, 2),
    )

    line_items = [LineItem(label=base_label, amount=breakdown.base_cost, category="base")]
    if breakdown.accessories > 0:
        line_items.append(LineItem(label="Accessories", amount=breakdown.accessories, category="accessorial"))
    if breakdown.handling > 0:
        line_items.append(
            LineItem(label="Handling", amount=breakdown.handling, category="accessorial", unit="pallets", quantity=pallets)
        )
    if breakdown.after_hours_fee > 0:
        line_items.append(
            LineItem(label=f"After-hours fee ({pricing_input.after_hours})", amount=breakdown.after_hours_fee, category="surcharge")
        )
    if breakdown.storage > 0:
        line_items.append(
            LineItem(
                label="Storage",
                amount=breakdown.storage,
                category="surcharge",
                unit="days",
                quantity=pricing_input.storage_days,
            )
        )
    if breakdown.labor > 0:
        line_items.append(LineItem(label="Labor", amount=breakdown.labor, category="surcharge"))

    return QuoteResult(
        service_type="transloading",
        total=round(breakdown.subtotal, 2),
        line_items=tuple(line_items),
        breakdown=breakdown,
    )


def select_loose_tier(row: TransloadingRow, pieces: int) -> LooseCargoTier:
    for tier in row.loose_tiers:
        if tier.contains(pieces):
            return tier
    return row.loose_tiers[-1]


def storage_charge(rate_sheet: RateSheet, *, days: float, pallets: int, height_inches: float | None) -> float:
    """
    One weekly charge once the free period is exceeded; whole 30-day months
    at the height-bracket rate for every day past a further week.
    """
    rules = rate_sheet.storage
    if days <= rules.free_days or pallets <= 0:
        return 0.0

    total = pallets * rules.weekly_per_pallet

    monthly_days = days - rules.free_days - WEEK_DAYS
    if monthly_days > 0:
        months = math.ceil(monthly_days / MONTH_DAYS)
        wh = rate_sheet.warehousing
        tall = height_inches is not None and height_inches > TALL_PALLET_INCHES
        monthly_rate = wh.monthly_storage_over_60in if tall else wh.monthly_storage_up_to_60in
        total += months * pallets * monthly_rate
    return total


def _base_cost(row: TransloadingRow, *, palletized: bool, pieces: int) -> tuple[float, str]:
    if palletized:
        return row.palletized, "Base transloading (palletized)"
    tier = select_loose_tier(row, pieces)
    if tier.per_piece:
        return tier.amount * pieces, f"Base transloading ({tier.label}, {pieces} pcs)"
    return tier.amount, f"Base transloading ({tier.label})"
