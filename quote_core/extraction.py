"""
Typed facade over the model's extraction payload.

The language model returns a loosely-shaped JSON object: the same fact can
appear in the nested `drayage` object, in `drayage.invoice`, or at the top
level, and any of them may be null, blank, or a string like "62 miles".
ExtractedShipment resolves each named field through an ordered list of
candidate paths (first non-null, non-blank value wins) and coerces it, so
the normalizer and classifier never index the raw payload directly.
"""
from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Literal, Mapping


logger = logging.getLogger(__name__)

Kind = Literal["raw", "text", "number", "flag", "optional_flag", "size"]

_TRUE_RE = re.compile(r"(?i)^(true|yes|y|1|on)$")
_FALSE_RE = re.compile(r"(?i)^(false|no|n|0|off)$")
_LEADING_NUMBER_RE = re.compile(r"-?\d*\.?\d+")
_FENCE_RE = re.compile(r"```(?:json)?", flags=re.IGNORECASE)


def to_number(value: Any) -> float | None:
    """
    Numbers pass through; strings lose everything but digits, '.' and '-'
    and then yield their leading number ("1.5 hrs." -> 1.5, "2-3 stops" -> 2).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        m = _LEADING_NUMBER_RE.match(cleaned)
        return float(m.group(0)) if m else None
    return None


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        return bool(_TRUE_RE.match(value.strip()))
    return False


def coerce_optional_bool(value: Any) -> bool | None:
    """Like coerce_bool, but only explicit false words give False; anything unrecognised is None."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        v = value.strip()
        if _TRUE_RE.match(v):
            return True
        if _FALSE_RE.match(v):
            return False
    return None


def normalize_container_size(value: Any) -> str | None:
    """'40ft' -> '40', "45'" -> '45', 20 -> '20'."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    m = re.search(r"\d+", str(value))
    return m.group(0) if m else None


def parse_extraction_text(text: str | None) -> dict[str, Any]:
    """
    Parse the model's raw reply into a dict.

    Code fences and surrounding prose are tolerated. Anything that is not a
    JSON object yields {} so the normalizer falls back to text heuristics.
    """
    if not text or not text.strip():
        return {}
    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        data = json.loads(cleaned)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    m = re.search(r"\{.*\}", cleaned, flags=re.DOTALL)
    if m:
        try:
            data = json.loads(m.group(0))
            if isinstance(data, dict):
                return data
        except json.JSONDecodeError:
            pass

    logger.warning("Extraction reply is not a JSON object; continuing with an empty payload.")
    return {}


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, Mapping):
        return any(_has_value(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(_has_value(v) for v in value)
    return True


class _Field:
    """Descriptor: resolve `paths` in order on the wrapped payload, then coerce by `kind`."""

    def __init__(self, kind: Kind, *paths: tuple[str, ...]):
        self.kind = kind
        self.paths = paths
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, obj: "ExtractedShipment | None", objtype: type | None = None) -> Any:
        if obj is None:
            return self
        return obj.resolve(self.kind, self.paths)


_D = "drayage"
_INV = ("drayage", "invoice")


class ExtractedShipment:
    """Read-only view over one extraction payload."""

    # Classification
    service_type = _Field("text", ("service_type",), ("serviceType",), ("mode",), ("shipment_type",))

    # Transloading
    container_size = _Field("size", ("container_size",), ("containerSize",))
    palletized = _Field("optional_flag", ("palletized",))
    pieces = _Field("number", ("quantity",), ("pieces",), ("piece_count",))
    pallets = _Field("number", ("pallets",), ("pallet_count",))
    pallet_size = _Field("text", ("pallet_size",))
    shrink_wrap = _Field("optional_flag", ("shrink_wrap",), ("fragile",))
    seal = _Field("optional_flag", ("seal",))
    bill_of_lading = _Field("optional_flag", ("bill_of_lading",))
    after_hours = _Field("text", ("after_hours",))
    height_inches = _Field("number", ("pallet_height_inches",), ("height_inches",))
    warehouse_storage_days = _Field("number", ("storage_days",))
    workers = _Field("number", ("workers",))
    extra_hours = _Field("number", ("extra_hours",))

    # Drayage
    drayage_container_size = _Field("size", (_D, "container_size"), ("drayage_container_size",))
    container_weight_lbs = _Field("number", (_D, "container_weight_lbs"), ("container_weight_lbs",))
    miles = _Field("number", (_D, "miles"), (_D, "miles_to_travel"), ("miles_to_travel",), ("miles",))
    origin = _Field("text", (_D, "origin"), (_D, "origin_city"), ("origin",))
    destination = _Field("text", (_D, "destination"), (_D, "destination_city"), ("destination",))
    ship_by_date = _Field("text", (_D, "ship_by_date"), (_D, "requested_ship_by"), ("requested_ship_by",))
    urgent = _Field("flag", (_D, "urgent"), ("urgent",))
    urgent_within_48_hours = _Field(
        "flag", (_D, "urgent_within_48h"), (_D, "within_48_hours"), ("urgent_within_48h",)
    )
    lfd_hours_notice = _Field("number", (_D, "hours_before_lfd"), ("hours_before_lfd",))
    extra_stops = _Field("number", (_D, "extra_stops"), ("extra_stops",))
    empty_storage_days = _Field("number", (_D, "empty_storage_days"), ("empty_storage_days",))
    storage_days = _Field("number", (_D, "storage_days"), ("storage_days",))
    prepull_required = _Field("flag", (_D, "prepull_required"), ("prepull_required",))
    chassis_split_required = _Field("flag", (_D, "chassis_split_required"), ("chassis_split_required",))
    prepaid_pier_pass = _Field("flag", (_D, "prepaid_pier_pass"), ("prepaid_pier_pass",))
    tcf_charges = _Field("flag", (_D, "tcf_charges"), ("tcf_charges",))
    terminal_dry_run = _Field("flag", (_D, "terminal_dry_run"), ("terminal_dry_run",))
    reefer = _Field("flag", (_D, "reefer"), ("reefer",), ("temperature_controlled",))
    hazmat = _Field("flag", (_D, "hazmat"), ("hazmat",))

    # Drayage invoice-only
    chassis_days = _Field("number", (_D, "chassis_days"), (*_INV, "chassis_days"), ("chassis_days",))
    chassis_type = _Field("text", (_D, "chassis_type"), (*_INV, "chassis_type"), ("chassis_type",))
    terminal_waiting_hours = _Field(
        "number", (_D, "terminal_waiting_hours"), (*_INV, "terminal_waiting_hours"), ("terminal_waiting_hours",)
    )
    live_unload_hours = _Field(
        "number", (_D, "live_unload_hours"), (*_INV, "live_unload_hours"), ("live_unload_hours",)
    )
    examination_required = _Field(
        "flag", (_D, "examination_fee"), (*_INV, "examination_fee"), ("examination_fee",)
    )
    replug_required = _Field("flag", (_D, "replug_required"), (*_INV, "replug_required"), ("replug_required",))
    delivery_order_cancellation = _Field(
        "flag",
        (_D, "delivery_order_cancellation"),
        (*_INV, "delivery_order_cancellation"),
        ("delivery_order_cancellation",),
    )
    on_time_delivery = _Field("flag", (_D, "on_time_delivery"), (*_INV, "on_time_delivery"), ("on_time_delivery",))
    failed_delivery_city_rate = _Field(
        "number",
        (_D, "failed_delivery_city_rate"),
        (*_INV, "failed_delivery_city_rate"),
        ("failed_delivery_city_rate",),
    )

    def __init__(self, payload: Mapping[str, Any] | None):
        self._payload: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    @classmethod
    def from_text(cls, text: str | None) -> "ExtractedShipment":
        return cls(parse_extraction_text(text))

    @property
    def payload(self) -> Mapping[str, Any]:
        return self._payload

    @property
    def has_drayage_details(self) -> bool:
        """True when the nested drayage object carries at least one real value."""
        return _has_value(self._payload.get("drayage"))

    def first(self, paths: tuple[tuple[str, ...], ...]) -> Any:
        for path in paths:
            value = self._get(path)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            return value
        return None

    def resolve(self, kind: Kind, paths: tuple[tuple[str, ...], ...]) -> Any:
        if kind == "number":
            # A candidate that does not parse as a number falls through to the next one.
            for path in paths:
                number = to_number(self._get(path))
                if number is not None:
                    return number
            return None

        value = self.first(paths)
        if kind == "raw" or value is None:
            return value
        if kind == "text":
            return str(value).strip()
        if kind == "flag":
            return coerce_bool(value)
        if kind == "optional_flag":
            return coerce_optional_bool(value)
        if kind == "size":
            return normalize_container_size(value)
        raise ValueError(f"Unsupported field kind: {kind}")

    def _get(self, path: tuple[str, ...]) -> Any:
        node: Any = self._payload
        for key in path:
            if not isinstance(node, Mapping):
                return None
            node = node.get(key)
        return node
