from __future__ import annotations

import json
import logging
import math
import re
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import pandas as pd

from quote_core.errors import ParseError
from quote_core.rate_sheet.models import (
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


logger = logging.getLogger(__name__)

DEFAULT_RATE_SHEET_PATH = Path(__file__).resolve().parents[1] / "data" / "rate_sheet.json"

REQUIRED_SECTIONS = ("TRANSLOADING", "ACCESSORIAL CHARGES", "STORAGE", "WAREHOUSING")
DEFAULT_FREE_HOURS = 48.0

_LOOSE_CARGO_RE = re.compile(r"(?i)loose\s+cargo\s+(\d[\d,]*)\s*(?:-\s*(\d[\d,]*)|or\s+more|\+)")
_PER_PIECE_RE = re.compile(r"(?i)/\s*(?:pc|pcs|piece)\b|\bper\s+(?:pc|piece)")
_DOLLAR_TOKEN_RE = re.compile(r"\$\s*\d[\d,]*(?:\.\d+)?")
_FREE_PERIOD_RE = re.compile(r"(?i)(\d+(?:\.\d+)?)\s*(hours?|hrs?|days?)")
_SIZE_TOKEN_RE = re.compile(r"\d+")
_NUMERIC_PREFIX_RE = re.compile(r"\d*(?:\.\d*)?")

BRACKET_COLUMN_MAP = {
    "min lbs": "min_lbs",
    "min": "min_lbs",
    "max lbs": "max_lbs",
    "max": "max_lbs",
    "surcharge": "surcharge",
    "amount": "surcharge",
    "label": "label",
}


def extract_dollar_value(value: object) -> float:
    """
    Strip everything but digits and '.', then parse the leading number.

    Never raises: empty or unparseable text is 0.0. A typo in the sheet
    therefore prices as zero; `RateSheet.warnings` lists every entry where
    that happened.
    """
    numeric = re.sub(r"[^0-9.]", "", _cell_text(value))
    m = _NUMERIC_PREFIX_RE.match(numeric)
    token = m.group(0) if m else ""
    if token in ("", "."):
        return 0.0
    try:
        return float(token)
    except ValueError:
        return 0.0


def load_rate_sheet(document: Mapping[str, Any], *, card_name: str | None = None) -> RateSheet:
    """Parse a rate sheet document into a RateSheet. Raises ParseError."""
    name, card = select_card(document, card_name)

    missing = [s for s in REQUIRED_SECTIONS if s not in card]
    if missing:
        raise ParseError(f"Rate card {name!r} is missing section(s): {', '.join(missing)}")

    warnings: list[RateSheetWarning] = []

    sheet = RateSheet(
        name=name,
        transloading_rows=_parse_transloading(card["TRANSLOADING"], warnings),
        accessorials=_parse_accessorials(card["ACCESSORIAL CHARGES"], warnings),
        warehousing=_parse_warehousing(card["WAREHOUSING"], warnings),
        storage=_parse_storage(card["STORAGE"], warnings),
        drayage=_parse_drayage(card["DRAYAGE"], warnings) if card.get("DRAYAGE") is not None else None,
        warnings=tuple(warnings),
    )

    for w in sheet.warnings:
        logger.warning("Rate sheet %r: %s", name, w)
    return sheet


def load_rate_sheet_file(path: Path | str, *, card_name: str | None = None) -> RateSheet:
    return load_rate_sheet(read_rate_document(path), card_name=card_name)


def load_default_rate_sheet(*, card_name: str | None = None) -> RateSheet:
    return load_rate_sheet_file(DEFAULT_RATE_SHEET_PATH, card_name=card_name)


@lru_cache(maxsize=None)
def default_rate_sheet() -> RateSheet:
    """The bundled rate card, parsed once per process."""
    return load_default_rate_sheet()


def audit_rate_sheet(sheet: RateSheet) -> list[str]:
    """Human-readable list of monetary entries that parsed to zero."""
    return [str(w) for w in sheet.warnings]


def read_rate_document(path: Path | str) -> dict[str, Any]:
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise ParseError(f"Rate sheet {path} is not valid JSON: {e}") from e
    if not isinstance(document, dict):
        raise ParseError(f"Rate sheet {path} must contain a JSON object.")
    return document


def select_card(document: Mapping[str, Any], card_name: str | None) -> tuple[str, Mapping[str, Any]]:
    if not isinstance(document, Mapping):
        raise ParseError("Rate sheet document must be a mapping.")

    # Unwrapped card: sections sit at the top level.
    if "TRANSLOADING" in document:
        return card_name or "Rate Sheet", document

    if card_name is not None:
        card = document.get(card_name)
        if card is None:
            raise ParseError(f"Rate card {card_name!r} not found (available: {', '.join(map(str, document))})")
    elif len(document) == 1:
        card_name, card = next(iter(document.items()))
    else:
        raise ParseError(f"Rate sheet holds {len(document)} cards; pass card_name to choose one.")

    if not isinstance(card, Mapping):
        raise ParseError(f"Rate card {card_name!r} must be a mapping of sections.")
    return str(card_name), card


def _parse_transloading(rows: object, warnings: list[RateSheetWarning]) -> tuple[TransloadingRow, ...]:
    if not isinstance(rows, list) or not rows or not all(isinstance(r, Mapping) for r in rows):
        raise ParseError("TRANSLOADING must be a non-empty list of rows.")

    df = pd.DataFrame(rows)
    df.columns = [str(c).strip() for c in df.columns]

    size_col = _find_col(list(df.columns), {"container size", "container", "size"})
    pallet_col = _find_col(list(df.columns), {"palletized", "palletised"})
    if size_col is None or pallet_col is None:
        raise ParseError(f"Unrecognized TRANSLOADING columns: {list(df.columns)}")

    tier_specs: list[tuple[str, int, int | None]] = []
    for col in df.columns:
        m = _LOOSE_CARGO_RE.search(col)
        if not m:
            continue
        lo = int(m.group(1).replace(",", ""))
        hi = int(m.group(2).replace(",", "")) if m.group(2) else None
        tier_specs.append((col, lo, hi))
    if not tier_specs:
        raise ParseError("TRANSLOADING has no loose cargo tier columns.")

    tier_specs.sort(key=lambda spec: spec[1])
    # The lowest tier also covers an empty container so every count >= 0 lands somewhere.
    first_col, _, first_hi = tier_specs[0]
    tier_specs[0] = (first_col, 0, first_hi)

    out: list[TransloadingRow] = []
    for _, row in df.iterrows():
        size_text = _cell_text(row[size_col])
        sizes = tuple(_SIZE_TOKEN_RE.findall(size_text))
        if not sizes:
            raise ParseError(f"TRANSLOADING row has no container size: {size_text!r}")

        section = f"TRANSLOADING {size_text}"
        tiers: list[LooseCargoTier] = []
        for i, (col, lo, hi) in enumerate(tier_specs):
            raw = _cell_text(row[col])
            is_last = i == len(tier_specs) - 1
            tiers.append(
                LooseCargoTier(
                    label=col,
                    min_pieces=lo,
                    max_pieces=None if is_last else hi,
                    amount=_dollar(raw, section=section, entry=col, warnings=warnings),
                    per_piece=bool(_PER_PIECE_RE.search(raw)) or (is_last and hi is None),
                )
            )

        out.append(
            TransloadingRow(
                container_sizes=sizes,
                palletized=_dollar(_cell_text(row[pallet_col]), section=section, entry=pallet_col, warnings=warnings),
                loose_tiers=tuple(tiers),
            )
        )
    return tuple(out)


def _parse_accessorials(section: object, warnings: list[RateSheetWarning]) -> AccessorialRates:
    entries = _require_mapping(section, "ACCESSORIAL CHARGES")
    name = "ACCESSORIAL CHARGES"
    return AccessorialRates(
        shrink_wrap_per_pallet=_dollar_entry(entries, ("shrink",), section=name, warnings=warnings),
        seal=_dollar_entry(entries, ("seal",), section=name, warnings=warnings),
        bill_of_lading=_dollar_entry(entries, ("bill of lading", "bol"), section=name, warnings=warnings),
    )


def _parse_warehousing(section: object, warnings: list[RateSheetWarning]) -> WarehousingRates:
    entries = _require_mapping(section, "WAREHOUSING")
    name = "WAREHOUSING"
    return WarehousingRates(
        handling_per_pallet=_dollar_entry(entries, ("handling",), section=name, warnings=warnings),
        after_hours_weekday=_dollar_entry(entries, ("weekday",), section=name, warnings=warnings),
        after_hours_weekend=_dollar_entry(entries, ("weekend",), section=name, warnings=warnings),
        monthly_storage_up_to_60in=_dollar_entry(
            entries, ("up to 60", "under 60", "<= 60", "<=60"), section=name, warnings=warnings
        ),
        monthly_storage_over_60in=_dollar_entry(
            entries, ("over 60", "above 60", "> 60", ">60"), section=name, warnings=warnings
        ),
    )


def _parse_storage(section: object, warnings: list[RateSheetWarning]) -> StorageRules:
    if isinstance(section, Mapping):
        lines = [f"{k}: {v}" for k, v in section.items()]
    elif isinstance(section, list):
        lines = [_cell_text(x) for x in section]
    else:
        raise ParseError("STORAGE must be a list of rule lines or a mapping.")

    free_hours = DEFAULT_FREE_HOURS
    free_line = _first_line(lines, ("free",))
    if free_line:
        m = _FREE_PERIOD_RE.search(free_line)
        if m:
            value = float(m.group(1))
            free_hours = value * 24 if m.group(2).lower().startswith("day") else value

    weekly_line = _first_line(lines, ("week",)) or ""
    labor_line = _first_line(lines, ("labor", "labour")) or ""
    return StorageRules(
        free_hours=free_hours,
        weekly_per_pallet=_dollar(_dollar_token(weekly_line), section="STORAGE", entry="weekly storage", warnings=warnings),
        labor_per_hour=_dollar(_dollar_token(labor_line), section="STORAGE", entry="labor", warnings=warnings),
    )


def _parse_drayage(section: object, warnings: list[RateSheetWarning]) -> DrayageRates:
    entries = _require_mapping(section, "DRAYAGE")

    per_mile_raw = _lookup(entries, ("per mile",))
    if not isinstance(per_mile_raw, Mapping):
        raise ParseError("DRAYAGE base rate per mile must map container sizes to rates.")
    base_per_mile: dict[str, float] = {}
    for size, raw in per_mile_raw.items():
        tokens = _SIZE_TOKEN_RE.findall(str(size))
        if not tokens:
            continue
        base_per_mile[tokens[0]] = _dollar(raw, section="DRAYAGE per mile", entry=str(size), warnings=warnings)

    minimum_miles = extract_dollar_value(_lookup(entries, ("minimum miles", "min miles")))

    return DrayageRates(
        base_per_mile=MappingProxyType(base_per_mile),
        minimum_miles=minimum_miles,
        weight_brackets=_parse_weight_brackets(_lookup(entries, ("weight",)) or []),
        quote_add_ons=_parse_add_ons(_lookup(entries, ("quote add-ons", "add-ons", "addons")) or {}, "DRAYAGE add-ons", warnings),
        invoice_add_ons=_parse_add_ons(_lookup(entries, ("invoice",)) or {}, "DRAYAGE invoice-only", warnings),
    )


def _parse_weight_brackets(rows: object) -> tuple[WeightBracket, ...]:
    if not isinstance(rows, list):
        raise ParseError("DRAYAGE weight surcharges must be a list of brackets.")
    if not rows:
        return ()

    df = pd.DataFrame(rows)
    df.columns = [str(c).strip().casefold() for c in df.columns]
    df = df.rename(columns=BRACKET_COLUMN_MAP)
    for col in ("min_lbs", "max_lbs", "surcharge"):
        if col not in df.columns:
            raise ParseError(f"Missing weight bracket column: {col}")
    if "label" not in df.columns:
        df["label"] = None

    brackets: list[WeightBracket] = []
    for _, row in df.iterrows():
        max_text = _cell_text(row["max_lbs"])
        label = _cell_text(row["label"]) or f"{_cell_text(row['min_lbs'])}+ lbs"
        brackets.append(
            WeightBracket(
                min_lbs=extract_dollar_value(row["min_lbs"]),
                max_lbs=extract_dollar_value(max_text) if max_text else None,
                surcharge=extract_dollar_value(row["surcharge"]),
                label=label,
            )
        )
    return tuple(brackets)


def _parse_add_ons(section: object, name: str, warnings: list[RateSheetWarning]) -> Mapping[str, AddOnRate]:
    entries = _require_mapping(section, name)
    out: dict[str, AddOnRate] = {}
    for code, entry in entries.items():
        code = str(code)
        if isinstance(entry, Mapping):
            label = _cell_text(entry.get("Label")) or code
            unit = _cell_text(entry.get("Unit")) or None
            out[code] = AddOnRate(
                code=code,
                label=label,
                amount=_dollar(entry.get("Rate"), section=name, entry=label, warnings=warnings),
                unit=unit,
                free_units=extract_dollar_value(entry.get("Free units")),
            )
        else:
            out[code] = AddOnRate(code=code, label=code, amount=_dollar(entry, section=name, entry=code, warnings=warnings))
    return MappingProxyType(out)


def _dollar(raw: object, *, section: str, entry: str, warnings: list[RateSheetWarning]) -> float:
    value = extract_dollar_value(raw)
    if value == 0:
        warnings.append(RateSheetWarning(section=section, entry=entry, raw=_cell_text(raw)))
    return value


def _dollar_entry(
    entries: Mapping[str, Any],
    keywords: tuple[str, ...],
    *,
    section: str,
    warnings: list[RateSheetWarning],
) -> float:
    return _dollar(_lookup(entries, keywords), section=section, entry=keywords[0], warnings=warnings)


def _dollar_token(text: str) -> str:
    m = _DOLLAR_TOKEN_RE.search(text)
    return m.group(0) if m else text


def _lookup(entries: Mapping[str, Any], keywords: tuple[str, ...]) -> Any:
    for keyword in keywords:
        for key, value in entries.items():
            if keyword in str(key).casefold():
                return value
    return None


def _first_line(lines: list[str], keywords: tuple[str, ...]) -> str | None:
    for line in lines:
        if any(k in line.casefold() for k in keywords):
            return line
    return None


def _find_col(headers: list[str], candidates: set[str]) -> str | None:
    cand = {c.casefold() for c in candidates}
    for h in headers:
        if h.strip().casefold() in cand:
            return h
    return None


def _require_mapping(section: object, name: str) -> Mapping[str, Any]:
    if not isinstance(section, Mapping):
        raise ParseError(f"{name} must be a mapping.")
    return section


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()
