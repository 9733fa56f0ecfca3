"""
Quote Core

Turns a model-extracted shipment request plus the raw email text into a
priced transloading or drayage quote.

Usage:
    from quote_core import default_rate_sheet, run_quote_pipeline

    result = run_quote_pipeline(
        extracted={"container_size": "40ft", "palletized": True, "quantity": 0},
        email_text="Need a 40ft container unloaded.",
        rate_sheet=default_rate_sheet(),
    )
    print(result.quote_table)
"""

from .classifier import determine_service_type
from .drayage import calculate_drayage_pricing
from .errors import MissingRateConfiguration, ParseError, QuoteError, UnsupportedContainerSize
from .extraction import ExtractedShipment, parse_extraction_text
from .formatting import build_price_footer, format_quote_table, parse_table_total, split_price_footer
from .models import DrayageInput, LineItem, PricingInput, QuoteResult, TransloadingBreakdown
from .normalize import apply_pricing_heuristics, build_drayage_input, infer_pallets, normalize_transloading
from .pipeline import PipelineResult, run_quote_pipeline
from .rate_sheet import RateSheet, default_rate_sheet, extract_dollar_value, load_rate_sheet
from .reprocess import ReprocessSummary, reprocess_records
from .transloading import calculate_transloading_cost
from .validation import describe_missing_fields, validate_required_fields

__all__ = [
    "determine_service_type",
    "calculate_drayage_pricing",
    "MissingRateConfiguration",
    "ParseError",
    "QuoteError",
    "UnsupportedContainerSize",
    "ExtractedShipment",
    "parse_extraction_text",
    "build_price_footer",
    "format_quote_table",
    "parse_table_total",
    "split_price_footer",
    "DrayageInput",
    "LineItem",
    "PricingInput",
    "QuoteResult",
    "TransloadingBreakdown",
    "apply_pricing_heuristics",
    "build_drayage_input",
    "infer_pallets",
    "normalize_transloading",
    "PipelineResult",
    "run_quote_pipeline",
    "RateSheet",
    "default_rate_sheet",
    "extract_dollar_value",
    "load_rate_sheet",
    "ReprocessSummary",
    "reprocess_records",
    "calculate_transloading_cost",
    "describe_missing_fields",
    "validate_required_fields",
]
