"""
Quote Formatter

Renders a QuoteResult as a markdown table plus a compact plain-text footer
for stored copies of quote emails. Presentation only: amounts are printed
exactly as computed.
"""
from __future__ import annotations

import re

from quote_core.models import LineItem, QuoteResult, ServiceType
from quote_core.rate_sheet.models import RateSheet
from quote_core.validation import describe_missing_fields


PRICE_FOOTER_MARKER = "--PRICE-FOOTER--"

TABLE_HEADER = ("| Component | Amount |", "| --- | ---: |")

_TOTAL_ROW_RE = re.compile(r"\|\s*\*\*Total\*\*\s*\|\s*\*\*\$(-?\d+(?:\.\d+)?)\*\*\s*\|")


def format_amount(amount: float) -> str:
    return f"${amount:.2f}"


def format_quote_table(result: QuoteResult | None) -> str:
    if result is None or not result.line_items:
        return ""

    sections = [
        "Quotation Summary",
        "",
        *TABLE_HEADER,
        *_render_rows(result.line_items),
        f"| **Total** | **{format_amount(result.total)}** |",
    ]

    if result.invoice_items:
        sections += [
            "",
            "Invoice-only Charges",
            "",
            *TABLE_HEADER,
            *_render_rows(result.invoice_items),
        ]
    return "\n".join(sections)


def parse_table_total(table: str) -> float | None:
    """Read the bold total row back out of a rendered table."""
    m = _TOTAL_ROW_RE.search(table or "")
    return float(m.group(1)) if m else None


def build_price_footer(result: QuoteResult, rate_sheet: RateSheet) -> str:
    lines = [PRICE_FOOTER_MARKER]
    if result.service_type == "drayage":
        lines.append(f"Drayage pricing (computed): Total: {format_amount(result.total)}")
        lines.append("; ".join(f"{item.label}: {format_amount(item.amount)}" for item in result.line_items))
    else:
        acc = rate_sheet.accessorials
        lines.append(f"Pricing (computed): Total: {format_amount(result.total)}")
        lines.append(f"Includes: Seal {format_amount(acc.seal)}, Bill of Lading {format_amount(acc.bill_of_lading)}")
    return "\n".join(lines)


def split_price_footer(text: str | None) -> tuple[str, str | None]:
    """Split a stored draft into (body, footer note). note is None when there is no footer."""
    if not text:
        return "", None
    idx = text.find(PRICE_FOOTER_MARKER)
    if idx < 0:
        return text.strip(), None
    body = text[:idx].strip()
    note = text[idx + len(PRICE_FOOTER_MARKER):].strip()
    return body, note or None


def build_clarification_email(service_type: ServiceType, missing: list[str]) -> str:
    """Customer-facing request for the details still needed to price."""
    service = "drayage" if service_type == "drayage" else "transloading"
    wanted = ", ".join(describe_missing_fields(missing))
    return (
        "Dear Customer,\n\n"
        "Thank you for your inquiry.\n\n"
        f"To proceed with your {service} quotation, could you please confirm:\n\n"
        f"Missing: {wanted}\n\n"
        "We will finalize the quote immediately upon receiving these details.\n\n"
        "Warm regards,"
    )


def _render_rows(items: tuple[LineItem, ...]) -> list[str]:
    rows = []
    for item in items:
        detail = item.label
        if item.quantity and item.unit:
            detail = f"{item.label} ({_quantity(item.quantity)} {item.unit})"
        rows.append(f"| {detail} | {format_amount(item.amount)} |")
    return rows


def _quantity(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
