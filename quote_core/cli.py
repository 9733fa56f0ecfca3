"""
Command-line entry point.

Usage:
    quote-core quote --extraction extracted.json --email email.txt
    quote-core reprocess records.json
    quote-core rate-sheet
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Sequence

from quote_core.config import AppConfig, load_app_config
from quote_core.errors import QuoteError
from quote_core.extraction import parse_extraction_text
from quote_core.pipeline import run_quote_pipeline
from quote_core.rate_sheet import (
    RateSheet,
    audit_rate_sheet,
    build_pricing_terms_text,
    load_rate_sheet,
    read_rate_document,
)
from quote_core.reprocess import reprocess_records


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="quote-core", description="Price transloading and drayage requests.")
    parser.add_argument("--config", type=Path, default=None, help="TOML config file (default: built-in settings)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser("quote", help="Price one request")
    quote.add_argument("--extraction", type=Path, required=True, help="Model extraction (JSON or raw reply text)")
    quote.add_argument("--email", type=Path, default=None, help="Raw email text")
    quote.add_argument("--service-type", choices=("transloading", "drayage"), default=None)
    quote.add_argument("--json", action="store_true", help="Print the full result as JSON")

    reprocess = sub.add_parser("reprocess", help="Re-price a JSON list of stored records")
    reprocess.add_argument("records", type=Path)

    sub.add_parser("rate-sheet", help="Print the pricing terms and any zero-rate warnings")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    config = load_app_config(args.config)
    try:
        document = read_rate_document(config.rates.file)
        sheet = load_rate_sheet(document, card_name=config.rates.card_name)
    except (OSError, QuoteError) as e:
        print(f"[Pipeline] ERROR: could not load rate sheet {config.rates.file}: {e}", file=sys.stderr)
        return 2
    print(f"[Pipeline] Loaded rate card: {sheet.name}", file=sys.stderr)

    if args.command == "rate-sheet":
        print(build_pricing_terms_text(document, card_name=config.rates.card_name))
        warnings = audit_rate_sheet(sheet)
        if warnings:
            print("\nZero-rate warnings:")
            for w in warnings:
                print(f"  - {w}")
        return 0

    if args.command == "quote":
        return _quote(args, config, sheet)

    if args.command == "reprocess":
        records = json.loads(args.records.read_text(encoding="utf-8"))
        if not isinstance(records, list):
            print("[Pipeline] ERROR: records file must hold a JSON list", file=sys.stderr)
            return 2
        print(f"[Pipeline] Reprocessing {len(records)} record(s)...", file=sys.stderr)
        summary = reprocess_records(records, rate_sheet=sheet, settings=config.normalization)
        print(json.dumps(summary.to_dict(), indent=2))
        return 1 if summary.failed else 0

    return 2


def _quote(args: argparse.Namespace, config: AppConfig, sheet: RateSheet) -> int:
    extracted = parse_extraction_text(args.extraction.read_text(encoding="utf-8"))
    email_text = args.email.read_text(encoding="utf-8") if args.email else None

    print("[Pipeline] Classifying, normalizing and pricing...", file=sys.stderr)
    result = run_quote_pipeline(
        extracted=extracted,
        email_text=email_text,
        rate_sheet=sheet,
        settings=config.normalization,
        service_type=args.service_type,
    )
    print(f"[Pipeline] Service: {result.service_type} / status: {result.status}", file=sys.stderr)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    elif result.status == "quoted":
        print(result.quote_table)
        print()
        print(result.price_footer)
    elif result.status == "needs_clarification":
        print(result.clarification_email)
    else:
        print(f"[Pipeline] ERROR: {result.error}", file=sys.stderr)

    return 1 if result.status == "error" else 0


if __name__ == "__main__":
    raise SystemExit(main())
