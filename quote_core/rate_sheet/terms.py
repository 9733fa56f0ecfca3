from __future__ import annotations

import json
from typing import Any, Mapping

from quote_core.rate_sheet.parser import select_card


TRANSLOADING_COLUMNS = [
    "Container Size",
    "Palletized",
    "Loose cargo 1-500 pcs",
    "Loose cargo 501-1000 pcs",
    "Loose cargo 1001-1500 pcs",
    "Loose cargo 1501 or more pcs",
]


def build_pricing_terms_text(document: Mapping[str, Any], *, card_name: str | None = None) -> str:
    """Render a rate card as the plain-text listing shown to the drafting model."""
    name, card = select_card(document, card_name)

    lines: list[str] = [name, "", "TRANSLOADING", " | ".join(TRANSLOADING_COLUMNS)]
    for row in card.get("TRANSLOADING", []):
        lines.append(" | ".join(str(row.get(col, "")) for col in TRANSLOADING_COLUMNS))

    lines += ["", "ACCESSORIAL CHARGES"]
    for key, value in card.get("ACCESSORIAL CHARGES", {}).items():
        lines.append(f"{key}: {value}")

    lines += ["", "STORAGE"]
    storage = card.get("STORAGE", [])
    if isinstance(storage, Mapping):
        lines.extend(f"{k}: {v}" for k, v in storage.items())
    else:
        lines.extend(str(entry) for entry in storage)

    lines += ["", "WAREHOUSING"]
    for key, value in card.get("WAREHOUSING", {}).items():
        lines.append(f"{key}: {value}")

    drayage = card.get("DRAYAGE")
    if isinstance(drayage, Mapping):
        lines += ["", "DRAYAGE"]
        for key, value in drayage.items():
            if isinstance(value, Mapping):
                lines.append(f"{key}:")
                for sub_key, sub_value in value.items():
                    if isinstance(sub_value, Mapping):
                        label = sub_value.get("Label", sub_key)
                        rate = sub_value.get("Rate", "")
                        free = sub_value.get("Free units")
                        extra = f" ({free} free)" if free not in (None, "", "0") else ""
                        lines.append(f"  {label}: {rate}{extra}")
                    else:
                        lines.append(f"  {sub_key}: {sub_value}")
            elif isinstance(value, list):
                lines.append(f"{key}:")
                for item in value:
                    lines.append(f"  {item.get('Label', '')}: {item.get('Surcharge', '')}")
            else:
                lines.append(f"{key}: {value}")

    return "\n".join(lines)


def pricing_document_json(document: Mapping[str, Any], *, card_name: str | None = None) -> str:
    name, card = select_card(document, card_name)
    return json.dumps({name: card}, indent=2)
