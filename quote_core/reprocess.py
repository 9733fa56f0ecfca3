"""
Batch reprocessing of stored quote records.

Each record is re-priced against the current rate sheet on its own; a
record that fails is logged and reported, and the batch carries on.

Record shape (extra keys are ignored):
    {
        "id": "...",
        "body": "raw email text",
        "extracted": {...},              # model extraction
        "service_type": "drayage",       # optional; "both" or missing => re-derived
        "normalized": {...},             # optional stored PricingInput fields
        "ai_response": "draft text",     # optional stored draft
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
import logging
import re
from typing import Any, Callable, Iterable, Literal, Mapping

from quote_core.classifier import determine_service_type
from quote_core.config import NormalizationConfig
from quote_core.drayage import calculate_drayage_pricing
from quote_core.extraction import ExtractedShipment, coerce_optional_bool, normalize_container_size, to_number
from quote_core.formatting import build_price_footer, split_price_footer
from quote_core.models import PricingInput, QuoteResult, ServiceType
from quote_core.normalize import apply_pricing_heuristics, build_drayage_input, infer_pallets, normalize_transloading
from quote_core.rate_sheet.models import RateSheet
from quote_core.transloading import calculate_transloading_cost
from quote_core.validation import validate_required_fields


logger = logging.getLogger(__name__)

Outcome = Literal["updated", "skipped", "failed"]

_BOOL_FIELDS = {"palletized", "shrink_wrap", "seal", "bill_of_lading"}
_INT_FIELDS = {"pieces", "pallets", "workers"}


@dataclass(frozen=True)
class RecordOutcome:
    record_id: Any
    status: Outcome
    service_type: ServiceType | None = None
    quote: QuoteResult | None = None
    draft: str | None = None
    missing_fields: tuple[str, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class ReprocessSummary:
    outcomes: tuple[RecordOutcome, ...] = field(default_factory=tuple)

    def _count(self, status: Outcome) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def updated(self) -> int:
        return self._count("updated")

    @property
    def skipped(self) -> int:
        return self._count("skipped")

    @property
    def failed(self) -> int:
        return self._count("failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "records": [
                {
                    "id": o.record_id,
                    "status": o.status,
                    "service_type": o.service_type,
                    "total": o.quote.total if o.quote else None,
                    "missing_fields": list(o.missing_fields),
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


def reprocess_records(
    records: Iterable[Mapping[str, Any]],
    *,
    rate_sheet: RateSheet,
    settings: NormalizationConfig | None = None,
) -> ReprocessSummary:
    outcomes: list[RecordOutcome] = []
    for record in records:
        record_id = record.get("id") if isinstance(record, Mapping) else None
        try:
            outcome = reprocess_record(record, rate_sheet=rate_sheet, settings=settings)
        except Exception as e:
            logger.exception("Reprocessing failed for record %s", record_id)
            outcome = RecordOutcome(record_id=record_id, status="failed", error=str(e))
        outcomes.append(outcome)

    summary = ReprocessSummary(outcomes=tuple(outcomes))
    logger.info("Reprocessed %d record(s): %d updated, %d skipped, %d failed",
                len(outcomes), summary.updated, summary.skipped, summary.failed)
    return summary


def reprocess_record(
    record: Mapping[str, Any],
    *,
    rate_sheet: RateSheet,
    settings: NormalizationConfig | None = None,
) -> RecordOutcome:
    if not isinstance(record, Mapping):
        raise TypeError(f"Record must be a mapping, got {type(record).__name__}")

    record_id = record.get("id")
    body = record.get("body") or ""
    shipment = ExtractedShipment(record.get("extracted") or record.get("extracted_json") or {})

    service_type = _stored_service_type(record.get("service_type"))
    if service_type is None:
        service_type = determine_service_type(shipment, body)

    normalized = normalize_transloading(shipment, settings=settings)
    inferred_count = normalized.pallets if shipment.pallets is None else None
    pricing_input = _apply_stored_fields(normalized, record.get("normalized") or {})

    if service_type == "drayage":
        drayage_input = build_drayage_input(shipment, pricing_input)
        missing = validate_required_fields(drayage_input, "drayage")
        if missing:
            return RecordOutcome(record_id, "skipped", service_type, missing_fields=tuple(missing))
        quote = calculate_drayage_pricing(drayage_input, rate_sheet)
    else:
        pricing_input = infer_pallets(
            apply_pricing_heuristics(body, pricing_input), settings=settings, inferred_count=inferred_count
        )
        pricing_input = replace(
            pricing_input,
            seal=True if pricing_input.seal is None else pricing_input.seal,
            bill_of_lading=True if pricing_input.bill_of_lading is None else pricing_input.bill_of_lading,
        )
        missing = validate_required_fields(pricing_input, "transloading")
        if missing:
            return RecordOutcome(record_id, "skipped", service_type, missing_fields=tuple(missing))
        quote = calculate_transloading_cost(pricing_input, rate_sheet)

    existing, _ = split_price_footer(record.get("ai_response"))
    footer = build_price_footer(quote, rate_sheet)
    draft = f"{existing}\n\n{footer}".strip()
    return RecordOutcome(record_id, "updated", service_type, quote=quote, draft=draft)


def _stored_service_type(value: Any) -> ServiceType | None:
    if not isinstance(value, str):
        return None
    v = value.strip().casefold()
    if v == "drayage":
        return "drayage"
    if v.startswith("transload"):
        return "transloading"
    return None


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _coercer(name: str) -> Callable[[Any], Any]:
    if name == "container_size":
        return normalize_container_size
    if name in _BOOL_FIELDS:
        return coerce_optional_bool
    if name == "after_hours":
        return lambda v: v if v in ("weekday", "weekend") else None
    if name in _INT_FIELDS:
        return _to_int
    return to_number


def _to_int(value: Any) -> int | None:
    number = to_number(value)
    return None if number is None else int(number)


def _apply_stored_fields(pricing_input: PricingInput, stored: Mapping[str, Any]) -> PricingInput:
    """Overlay previously stored, non-null PricingInput fields (snake or camel case keys)."""
    known = {f.name for f in fields(PricingInput)}
    updates: dict[str, Any] = {}
    for key, value in stored.items():
        name = _snake(str(key))
        if name not in known or value is None:
            continue
        coerced = _coercer(name)(value)
        if coerced is not None:
            updates[name] = coerced
    return replace(pricing_input, **updates) if updates else pricing_input
