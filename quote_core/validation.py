from __future__ import annotations

from typing import Any

from quote_core.models import DrayageInput, PricingInput, ServiceType


REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "transloading": ("container_size", "palletized", "pieces"),
    "drayage": ("container_size", "container_weight_lbs", "origin", "destination", "miles", "ship_by_date"),
}

FIELD_DESCRIPTIONS = {
    "container_size": "container size",
    "palletized": "whether the cargo is palletized",
    "pieces": "number of pieces",
    "container_weight_lbs": "container weight (lbs)",
    "origin": "origin location",
    "destination": "destination location",
    "miles": "miles to travel",
    "ship_by_date": "requested ship-by date",
}


def validate_required_fields(
    pricing_input: PricingInput | DrayageInput,
    service_type: ServiceType,
) -> list[str]:
    """
    Field names still missing before the request can be priced.

    Presence, not truthiness: palletized=False and pieces=0 are valid.
    An empty list means ready to price.
    """
    if service_type not in REQUIRED_FIELDS:
        raise ValueError(f"Unsupported service type: {service_type}")
    return [name for name in REQUIRED_FIELDS[service_type] if _missing(getattr(pricing_input, name, None))]


def describe_missing_fields(missing: list[str]) -> list[str]:
    return [FIELD_DESCRIPTIONS.get(name, name.replace("_", " ")) for name in missing]


def _missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
