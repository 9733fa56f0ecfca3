"""
Rate Sheet Module

Parses the declarative rate card (transloading table, accessorials,
storage rules, warehousing, optional drayage block) into typed, read-only
lookup structures shared by both calculators.

Usage:
    from quote_core.rate_sheet import load_default_rate_sheet

    sheet = load_default_rate_sheet()
    row = sheet.find_transloading_row("40")
"""

from .models import (
    AccessorialRates,
    AddOnRate,
    DrayageRates,
    LooseCargoTier,
    RateSheet,
    RateSheetWarning,
    StorageRules,
    TransloadingRow,
    WarehousingRates,
    WeightBracket,
)
from .parser import (
    DEFAULT_RATE_SHEET_PATH,
    audit_rate_sheet,
    default_rate_sheet,
    extract_dollar_value,
    load_default_rate_sheet,
    load_rate_sheet,
    load_rate_sheet_file,
    read_rate_document,
    select_card,
)
from .terms import build_pricing_terms_text, pricing_document_json

__all__ = [
    "AccessorialRates",
    "AddOnRate",
    "DrayageRates",
    "LooseCargoTier",
    "RateSheet",
    "RateSheetWarning",
    "StorageRules",
    "TransloadingRow",
    "WarehousingRates",
    "WeightBracket",
    "DEFAULT_RATE_SHEET_PATH",
    "audit_rate_sheet",
    "default_rate_sheet",
    "extract_dollar_value",
    "load_default_rate_sheet",
    "load_rate_sheet",
    "load_rate_sheet_file",
    "read_rate_document",
    "select_card",
    "build_pricing_terms_text",
    "pricing_document_json",
]
