"""
Drayage Calculator

Prices trucking a port container: per-mile base with a minimum-mile floor,
a weight-bracket surcharge and the quote-facing add-ons. Invoice-only
charges are itemized separately and never enter the total.
"""
from __future__ import annotations

import logging

from quote_core.errors import MissingRateConfiguration
from quote_core.extraction import normalize_container_size
from quote_core.models import DrayageInput, DrayageMetadata, LineItem, QuoteResult
from quote_core.rate_sheet.models import AddOnRate, DrayageRates, RateSheet, WeightBracket


logger = logging.getLogger(__name__)

RATE_FALLBACK_SIZES = ("40", "45")
HOT_RUSH_WINDOW_HOURS = 48

# Flat quote add-ons: input flag -> add-on code on the rate sheet.
FLAT_ADD_ONS = (
    ("prepaid_pier_pass", "prepaid_pier_pass"),
    ("tcf_charges", "tcf"),
    ("chassis_split_required", "chassis_split"),
    ("prepull_required", "prepull"),
)

# Per-unit quote add-ons: input quantity -> add-on code.
UNIT_ADD_ONS = (
    ("extra_stops", "extra_stop"),
    ("empty_storage_days", "empty_storage"),
    ("storage_days", "storage"),
)

INVOICE_FLAGS = (
    ("terminal_dry_run", "terminal_dry_run"),
    ("examination_required", "examination"),
    ("replug_required", "replug"),
    ("delivery_order_cancellation", "delivery_order_cancellation"),
    ("on_time_delivery", "on_time_delivery"),
)

INVOICE_UNITS = (
    ("terminal_waiting_hours", "terminal_waiting"),
    ("live_unload_hours", "live_unload"),
)


def calculate_drayage_pricing(drayage_input: DrayageInput, rate_sheet: RateSheet) -> QuoteResult:
    """Price a drayage request. Raises MissingRateConfiguration without a DRAYAGE block."""
    rates = rate_sheet.drayage
    if rates is None:
        raise MissingRateConfiguration(f"Rate card {rate_sheet.name!r} has no DRAYAGE block.")

    size = normalize_container_size(drayage_input.container_size)
    rate_size, rate_per_mile = resolve_rate_per_mile(rates, size)

    requested = drayage_input.miles
    charged_miles = max(float(requested or 0), rates.minimum_miles)
    base = round(rate_per_mile * charged_miles, 2)

    line_items: list[LineItem] = [
        LineItem(
            label=_base_label(rate_size, rate_per_mile),
            amount=base,
            category="base",
            unit="miles",
            quantity=charged_miles,
        )
    ]

    bracket = None
    if drayage_input.container_weight_lbs is not None:
        bracket = find_weight_bracket(rates, drayage_input.container_weight_lbs)
        if bracket is not None and bracket.surcharge > 0:
            line_items.append(
                LineItem(label=f"Weight surcharge ({bracket.label})", amount=bracket.surcharge, category="surcharge")
            )

    for flag, code in FLAT_ADD_ONS:
        add_on = rates.quote_add_ons.get(code)
        if getattr(drayage_input, flag) and add_on is not None and add_on.amount > 0:
            line_items.append(LineItem(label=add_on.label, amount=add_on.amount, category="add_on"))

    hot_rush = rates.quote_add_ons.get("hot_rush")
    if hot_rush is not None and hot_rush.amount > 0 and hot_rush_applies(drayage_input):
        line_items.append(LineItem(label=hot_rush.label, amount=hot_rush.amount, category="add_on"))

    for field_name, code in UNIT_ADD_ONS:
        item = _unit_item(rates.quote_add_ons.get(code), getattr(drayage_input, field_name), category="add_on")
        if item is not None:
            line_items.append(item)

    total = round(sum(item.amount for item in line_items), 2)

    metadata = DrayageMetadata(
        container_size=rate_size,
        rate_per_mile=rate_per_mile,
        requested_miles=requested,
        charged_miles=charged_miles,
        weight_bracket=bracket.label if bracket else None,
        container_weight_lbs=drayage_input.container_weight_lbs,
        origin=drayage_input.origin,
        destination=drayage_input.destination,
        ship_by_date=drayage_input.ship_by_date,
    )

    return QuoteResult(
        service_type="drayage",
        total=total,
        line_items=tuple(line_items),
        invoice_items=tuple(_invoice_items(drayage_input, rates)),
        metadata=metadata,
    )


def resolve_rate_per_mile(rates: DrayageRates, container_size: str | None) -> tuple[str | None, float]:
    """Return (size whose rate was used, rate). Falls back to 40ft then 45ft."""
    for candidate in (container_size, *RATE_FALLBACK_SIZES):
        if candidate and candidate in rates.base_per_mile:
            return candidate, rates.base_per_mile[candidate]
    logger.warning("No per-mile drayage rate for %r or the fallback sizes", container_size)
    return container_size, 0.0


def _base_label(rate_size: str | None, rate_per_mile: float) -> str:
    if rate_size:
        return f"Base drayage ({rate_size}ft @ ${rate_per_mile:.2f}/mile)"
    return f"Base drayage (@ ${rate_per_mile:.2f}/mile)"


def find_weight_bracket(rates: DrayageRates, weight_lbs: float) -> WeightBracket | None:
    """
    The bracket with the highest floor at or below the weight.

    Sheet brackets are whole-pound ranges (..46999, 47000..), so a fractional
    weight between two of them stays in the lower one. Only the top bracket's
    ceiling is enforced.
    """
    brackets = sorted(rates.weight_brackets, key=lambda b: b.min_lbs)
    match = None
    for bracket in brackets:
        if bracket.min_lbs <= weight_lbs:
            match = bracket
    if match is None:
        return None
    if match is brackets[-1] and match.max_lbs is not None and weight_lbs > match.max_lbs:
        return None
    return match


def hot_rush_applies(drayage_input: DrayageInput) -> bool:
    # Urgency is assumed unless the request says it is not within 48 hours.
    if not drayage_input.urgent:
        return False
    if drayage_input.urgent_within_48_hours is not False:
        return True
    lfd = drayage_input.lfd_hours_notice
    return lfd is not None and lfd < HOT_RUSH_WINDOW_HOURS


def _unit_item(add_on: AddOnRate | None, units: float | None, *, category: str) -> LineItem | None:
    if add_on is None or units is None or units <= 0 or add_on.amount <= 0:
        return None
    billable = max(0.0, units - add_on.free_units)
    if billable <= 0:
        return None
    return LineItem(
        label=add_on.label,
        amount=round(add_on.amount * billable, 2),
        category=category,
        unit=add_on.unit,
        quantity=billable,
    )


def _invoice_items(drayage_input: DrayageInput, rates: DrayageRates) -> list[LineItem]:
    invoice = rates.invoice_add_ons
    items: list[LineItem] = []

    for flag, code in INVOICE_FLAGS:
        add_on = invoice.get(code)
        if getattr(drayage_input, flag) and add_on is not None and add_on.amount > 0:
            items.append(LineItem(label=add_on.label, amount=add_on.amount, category="invoice"))

    chassis_code = "chassis_wccp" if drayage_input.chassis_type == "wccp" else "chassis_standard"
    item = _unit_item(invoice.get(chassis_code), drayage_input.chassis_days, category="invoice")
    if item is not None:
        items.append(item)

    for field_name, code in INVOICE_UNITS:
        item = _unit_item(invoice.get(code), getattr(drayage_input, field_name), category="invoice")
        if item is not None:
            items.append(item)

    city_rate = drayage_input.failed_delivery_city_rate
    failed = invoice.get("failed_delivery")
    if city_rate is not None and failed is not None:
        amount = round(max(0.0, city_rate - failed.amount), 2)
        if amount > 0:
            items.append(LineItem(label=failed.label, amount=amount, category="invoice"))

    return items
