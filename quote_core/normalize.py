"""
Input normalization: extraction payload + raw email text -> canonical inputs.

Four steps, each pure:
1. normalize_transloading()  - map extracted fields to a PricingInput
2. apply_pricing_heuristics() - recover what the extraction missed from the text
3. infer_pallets()            - derive pallets once the heuristics have run
4. build_drayage_input()     - assemble the drayage-specific DrayageInput
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import logging
import math
import re
from typing import Any, Callable, Mapping

from quote_core.config import NormalizationConfig
from quote_core.extraction import ExtractedShipment
from quote_core.models import AfterHours, DrayageInput, PricingInput


logger = logging.getLogger(__name__)


def as_shipment(extracted: ExtractedShipment | Mapping[str, Any] | None) -> ExtractedShipment:
    if isinstance(extracted, ExtractedShipment):
        return extracted
    return ExtractedShipment(extracted)


# ============================================================================
# TRANSLOADING
# ============================================================================

def normalize_transloading(
    extracted: ExtractedShipment | Mapping[str, Any] | None,
    *,
    settings: NormalizationConfig | None = None,
) -> PricingInput:
    settings = settings or NormalizationConfig()
    shipment = as_shipment(extracted)

    pieces = _whole(shipment.pieces)
    palletized = shipment.palletized
    pallet_size = shipment.pallet_size

    pallets = _whole(shipment.pallets, ceil=True)
    if pallets is None and palletized and pieces:
        pallets = _pallets_for(pieces, settings)

    container_size = shipment.container_size
    if container_size is None and (pieces is not None or pallet_size or palletized is not None):
        container_size = _infer_container_size(pieces=pieces, pallet_size=pallet_size, settings=settings)
        logger.debug("Inferred container size %s (pieces=%s, pallet_size=%r)", container_size, pieces, pallet_size)

    return PricingInput(
        container_size=container_size,
        palletized=palletized,
        pieces=pieces,
        pallets=pallets,
        shrink_wrap=shipment.shrink_wrap,
        seal=shipment.seal,
        bill_of_lading=shipment.bill_of_lading,
        after_hours=_after_hours(shipment.after_hours),
        height_inches=shipment.height_inches,
        storage_days=shipment.warehouse_storage_days,
        workers=_whole(shipment.workers),
        extra_hours=shipment.extra_hours,
    )


def infer_pallets(
    pricing_input: PricingInput,
    *,
    settings: NormalizationConfig | None = None,
    inferred_count: int | None = None,
) -> PricingInput:
    """
    Fill the pallet count of a palletized load from its piece count.

    Run after apply_pricing_heuristics(), which may set `palletized` or raise
    `pieces`. `inferred_count` is a count normalize_transloading() derived
    from pieces; while it is still the current count it is recomputed. Any
    other existing count is kept.
    """
    if not pricing_input.palletized or not pricing_input.pieces:
        return pricing_input
    current = pricing_input.pallets
    if current is not None and current != inferred_count:
        return pricing_input
    pallets = _pallets_for(pricing_input.pieces, settings or NormalizationConfig())
    if pallets == current:
        return pricing_input
    logger.debug("Inferred %d pallet(s) from %d piece(s)", pallets, pricing_input.pieces)
    return replace(pricing_input, pallets=pallets)


def _pallets_for(pieces: int, settings: NormalizationConfig) -> int:
    return math.ceil(pieces / settings.pallet_capacity)


def _infer_container_size(*, pieces: int | None, pallet_size: str | None, settings: NormalizationConfig) -> str:
    if pallet_size:
        return settings.pallet_size_container
    if pieces is not None and pieces <= settings.small_load_max_pieces:
        return "20"
    return settings.default_container_size


def _after_hours(value: str | None) -> AfterHours | None:
    if not value:
        return None
    v = value.casefold()
    if any(token in v for token in ("weekend", "saturday", "sunday")):
        return "weekend"
    if v in ("false", "no", "none", "n", "0"):
        return None
    return "weekday"


def _whole(value: float | None, *, ceil: bool = False) -> int | None:
    if value is None or value < 0:
        return None
    return int(math.ceil(value)) if ceil else int(value)


# ============================================================================
# TEXT HEURISTICS
# ============================================================================

class MergeStrategy(Enum):
    """How a number found in the email text combines with the current value."""

    MAX_OF = "max_of"                      # raise only; never lowers a larger value
    LAST_WRITER_WINS = "last_writer_wins"  # an explicit mention replaces the value

    def merge(self, current: Any, found: Any) -> Any:
        if self is MergeStrategy.LAST_WRITER_WINS or current is None:
            return found
        return max(current, found)


@dataclass(frozen=True)
class HeuristicRule:
    field: str
    pattern: re.Pattern[str]
    strategy: MergeStrategy
    convert: Callable[[str], Any] = int


def _count(token: str) -> int:
    return int(token.replace(",", ""))


HEURISTIC_RULES: tuple[HeuristicRule, ...] = (
    HeuristicRule("storage_days", re.compile(r"(\d[\d,]*)\s+days?", re.I), MergeStrategy.MAX_OF, _count),
    HeuristicRule("pallets", re.compile(r"(\d[\d,]*)\s+pallets?", re.I), MergeStrategy.MAX_OF, _count),
    HeuristicRule("pieces", re.compile(r"(\d[\d,]*)\s+(?:pieces|pcs|cartons|cases)", re.I), MergeStrategy.MAX_OF, _count),
    HeuristicRule("extra_hours", re.compile(r"(\d[\d,]*)\s+hours?", re.I), MergeStrategy.MAX_OF, _count),
    HeuristicRule("workers", re.compile(r"(\d[\d,]*)\s+workers?", re.I), MergeStrategy.LAST_WRITER_WINS, _count),
    HeuristicRule(
        "container_size",
        re.compile(r"\b(20|40|45)\s*(?:'|’|-?ft\b|-?foot\b|-?feet\b|\s*container)", re.I),
        MergeStrategy.LAST_WRITER_WINS,
        str,
    ),
)

_SHRINK_WRAP_RE = re.compile(r"shrink[-\s]?wrap|shrinkwrap", re.I)
_WEEKEND_RE = re.compile(r"\b(?:weekend|sat(?:urday)?|sun(?:day)?)\b", re.I)
_AFTER_HOURS_RE = re.compile(r"after[-\s]?hours?", re.I)
_PALLETIZED_RE = re.compile(r"palleti[sz]ed", re.I)


def apply_pricing_heuristics(text: str | None, pricing_input: PricingInput) -> PricingInput:
    """
    Scan the raw email text for facts the extraction missed or under-reported.

    Numeric fields follow HEURISTIC_RULES; boolean / enum fields are only
    filled while still unset. Zero or unparseable matches change nothing.
    Returns a new PricingInput.
    """
    if not text or not text.strip():
        return pricing_input

    updates: dict[str, Any] = {}

    for rule in HEURISTIC_RULES:
        m = rule.pattern.search(text)
        if not m:
            continue
        try:
            found = rule.convert(m.group(1))
        except ValueError:
            continue
        if not found:
            continue
        current = getattr(pricing_input, rule.field)
        merged = rule.strategy.merge(current, found)
        if merged != current:
            updates[rule.field] = merged

    if pricing_input.shrink_wrap is None and _SHRINK_WRAP_RE.search(text):
        updates["shrink_wrap"] = True

    if pricing_input.after_hours is None:
        if _WEEKEND_RE.search(text):
            updates["after_hours"] = "weekend"
        elif _AFTER_HOURS_RE.search(text):
            updates["after_hours"] = "weekday"

    if pricing_input.palletized is None and _PALLETIZED_RE.search(text):
        updates["palletized"] = True

    if updates:
        logger.debug("Heuristics updated %s", sorted(updates))
        return replace(pricing_input, **updates)
    return pricing_input


# ============================================================================
# DRAYAGE
# ============================================================================

def build_drayage_input(
    extracted: ExtractedShipment | Mapping[str, Any] | None,
    pricing_input: PricingInput | None = None,
) -> DrayageInput:
    """
    Assemble a DrayageInput. Each field resolves through the extraction
    facade; container size falls back to the normalized transloading size.
    """
    shipment = as_shipment(extracted)

    container_size = shipment.drayage_container_size
    if container_size is None and pricing_input is not None:
        container_size = pricing_input.container_size
    if container_size is None:
        container_size = shipment.container_size

    chassis_type = shipment.chassis_type
    return DrayageInput(
        container_size=container_size,
        container_weight_lbs=shipment.container_weight_lbs,
        miles=shipment.miles,
        origin=shipment.origin,
        destination=shipment.destination,
        ship_by_date=shipment.ship_by_date,
        urgent=bool(shipment.urgent),
        urgent_within_48_hours=shipment.urgent_within_48_hours,
        lfd_hours_notice=shipment.lfd_hours_notice,
        extra_stops=shipment.extra_stops,
        empty_storage_days=shipment.empty_storage_days,
        storage_days=shipment.storage_days,
        prepull_required=bool(shipment.prepull_required),
        chassis_split_required=bool(shipment.chassis_split_required),
        prepaid_pier_pass=bool(shipment.prepaid_pier_pass),
        tcf_charges=bool(shipment.tcf_charges),
        terminal_dry_run=bool(shipment.terminal_dry_run),
        reefer=bool(shipment.reefer),
        hazmat=bool(shipment.hazmat),
        chassis_days=shipment.chassis_days,
        chassis_type=None if chassis_type is None else ("wccp" if "wccp" in chassis_type.casefold() else "standard"),
        terminal_waiting_hours=shipment.terminal_waiting_hours,
        live_unload_hours=shipment.live_unload_hours,
        examination_required=bool(shipment.examination_required),
        replug_required=bool(shipment.replug_required),
        delivery_order_cancellation=bool(shipment.delivery_order_cancellation),
        on_time_delivery=bool(shipment.on_time_delivery),
        failed_delivery_city_rate=shipment.failed_delivery_city_rate,
    )
