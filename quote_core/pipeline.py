from __future__ import annotations

from dataclasses import asdict, dataclass
import logging
from typing import Any, Literal, Mapping

from quote_core.classifier import determine_service_type
from quote_core.config import NormalizationConfig
from quote_core.drayage import calculate_drayage_pricing
from quote_core.errors import QuoteError
from quote_core.extraction import ExtractedShipment
from quote_core.formatting import build_clarification_email, build_price_footer, format_quote_table
from quote_core.models import DrayageInput, PricingInput, QuoteResult, ServiceType
from quote_core.normalize import apply_pricing_heuristics, build_drayage_input, infer_pallets, normalize_transloading
from quote_core.rate_sheet.models import RateSheet
from quote_core.trace import RunTrace
from quote_core.transloading import calculate_transloading_cost
from quote_core.validation import validate_required_fields


logger = logging.getLogger(__name__)

Status = Literal["quoted", "needs_clarification", "error"]


@dataclass(frozen=True)
class PipelineResult:
    service_type: ServiceType
    status: Status
    trace: RunTrace
    missing_fields: tuple[str, ...] = ()
    pricing_input: PricingInput | None = None
    drayage_input: DrayageInput | None = None
    quote: QuoteResult | None = None
    quote_table: str | None = None
    price_footer: str | None = None
    clarification_email: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "service_type": self.service_type,
            "status": self.status,
            "missing_fields": list(self.missing_fields),
            "pricing_input": asdict(self.pricing_input) if self.pricing_input else None,
            "drayage_input": asdict(self.drayage_input) if self.drayage_input else None,
            "quote": self.quote.to_dict() if self.quote else None,
            "quote_table": self.quote_table,
            "price_footer": self.price_footer,
            "clarification_email": self.clarification_email,
            "error": self.error,
            "trace": self.trace.to_list(),
        }


def run_quote_pipeline(
    *,
    extracted: ExtractedShipment | Mapping[str, Any] | str | None,
    email_text: str | None,
    rate_sheet: RateSheet,
    settings: NormalizationConfig | None = None,
    service_type: ServiceType | None = None,
) -> PipelineResult:
    """
    Classify, normalize, validate and price one request.

    `extracted` is the model's extraction (dict or raw reply text).
    Passing `service_type` skips classification. Calculator errors end up
    on the result with status "error"; nothing is raised for bad input.
    """
    trace = RunTrace()

    if isinstance(extracted, ExtractedShipment):
        shipment = extracted
    elif isinstance(extracted, str):
        shipment = ExtractedShipment.from_text(extracted)
    else:
        shipment = ExtractedShipment(extracted)
    trace.add("Load Extraction", summary=f"{len(shipment.payload)} extracted field(s).", data=dict(shipment.payload))

    if service_type is None:
        service_type = determine_service_type(shipment, email_text)
        trace.add("Classify Service", summary=f"Classified as {service_type}.")
    else:
        trace.add("Classify Service", summary=f"Service type given as {service_type}.")

    normalized = normalize_transloading(shipment, settings=settings)
    pricing_input = infer_pallets(
        apply_pricing_heuristics(email_text, normalized),
        settings=settings,
        inferred_count=normalized.pallets if shipment.pallets is None else None,
    )
    trace.add("Normalize", summary="Mapped extraction and text heuristics to pricing input.", data=asdict(pricing_input))

    drayage_input: DrayageInput | None = None
    if service_type == "drayage":
        drayage_input = build_drayage_input(shipment, pricing_input)
        trace.add("Build Drayage Input", data=asdict(drayage_input))

    target = drayage_input if drayage_input is not None else pricing_input
    missing = validate_required_fields(target, service_type)
    if missing:
        trace.add("Validate", summary=f"Missing: {', '.join(missing)}", data=missing)
        return PipelineResult(
            service_type=service_type,
            status="needs_clarification",
            trace=trace,
            missing_fields=tuple(missing),
            pricing_input=pricing_input,
            drayage_input=drayage_input,
            clarification_email=build_clarification_email(service_type, missing),
        )
    trace.add("Validate", summary="All required fields present.")

    try:
        if drayage_input is not None:
            quote = calculate_drayage_pricing(drayage_input, rate_sheet)
        else:
            quote = calculate_transloading_cost(pricing_input, rate_sheet)
    except QuoteError as e:
        logger.warning("Pricing failed: %s", e)
        trace.add("Calculate", summary=str(e), failed=True)
        return PipelineResult(
            service_type=service_type,
            status="error",
            trace=trace,
            pricing_input=pricing_input,
            drayage_input=drayage_input,
            error=str(e),
        )

    trace.add("Calculate", summary=f"Total ${quote.total:.2f}", data=quote.to_dict())

    table = format_quote_table(quote)
    footer = build_price_footer(quote, rate_sheet)
    trace.add("Format", summary="Rendered quote table and price footer.")

    return PipelineResult(
        service_type=service_type,
        status="quoted",
        trace=trace,
        pricing_input=pricing_input,
        drayage_input=drayage_input,
        quote=quote,
        quote_table=table,
        price_footer=footer,
    )
