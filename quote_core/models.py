"""
Data models for the quote core.

These dataclasses define the structure of data flowing through each step:
extraction -> normalized inputs -> QuoteResult.
Using frozen dataclasses for:
- Immutability (a QuoteResult is never changed after it is built)
- Easy serialization to/from JSON via to_dict()
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal


ServiceType = Literal["transloading", "drayage"]
AfterHours = Literal["weekday", "weekend"]
ChassisType = Literal["standard", "wccp"]
LineItemCategory = Literal["base", "accessorial", "surcharge", "add_on", "invoice"]


# ============================================================================
# NORMALIZED INPUTS
# ============================================================================

@dataclass(frozen=True)
class PricingInput:
    """
    Canonical transloading request.

    container_size / palletized / pieces may be None straight out of
    normalization; the validator reports them before pricing.
    seal and bill_of_lading are charged unless explicitly False.
    """
    container_size: str | None = None
    palletized: bool | None = None
    pieces: int | None = None
    pallets: int | None = None
    shrink_wrap: bool | None = None
    seal: bool | None = None
    bill_of_lading: bool | None = None
    after_hours: AfterHours | None = None
    height_inches: float | None = None
    storage_days: float | None = None
    workers: int | None = None
    extra_hours: float | None = None


@dataclass(frozen=True)
class DrayageInput:
    """Canonical drayage request built from the nested and top-level extraction fields."""
    container_size: str | None = None
    container_weight_lbs: float | None = None
    miles: float | None = None
    origin: str | None = None
    destination: str | None = None
    ship_by_date: str | None = None

    urgent: bool = False
    urgent_within_48_hours: bool | None = None   # None = not stated
    lfd_hours_notice: float | None = None        # hours before the last free day

    extra_stops: float | None = None
    empty_storage_days: float | None = None
    storage_days: float | None = None

    prepull_required: bool = False
    chassis_split_required: bool = False
    prepaid_pier_pass: bool = False
    tcf_charges: bool = False
    terminal_dry_run: bool = False
    reefer: bool = False
    hazmat: bool = False

    # Invoice-only
    chassis_days: float | None = None
    chassis_type: ChassisType | None = None
    terminal_waiting_hours: float | None = None
    live_unload_hours: float | None = None
    examination_required: bool = False
    replug_required: bool = False
    delivery_order_cancellation: bool = False
    on_time_delivery: bool = False
    failed_delivery_city_rate: float | None = None


# ============================================================================
# QUOTE RESULT
# ============================================================================

@dataclass(frozen=True)
class LineItem:
    label: str
    amount: float
    category: LineItemCategory
    unit: str | None = None
    quantity: float | None = None


@dataclass(frozen=True)
class TransloadingBreakdown:
    base_cost: float
    accessories: float
    handling: float
    after_hours_fee: float
    storage: float
    labor: float

    def buckets(self) -> tuple[tuple[str, float], ...]:
        return (
            ("base_cost", self.base_cost),
            ("accessories", self.accessories),
            ("handling", self.handling),
            ("after_hours_fee", self.after_hours_fee),
            ("storage", self.storage),
            ("labor", self.labor),
        )

    @property
    def subtotal(self) -> float:
        return sum(amount for _, amount in self.buckets())


@dataclass(frozen=True)
class DrayageMetadata:
    container_size: str | None
    rate_per_mile: float
    requested_miles: float | None
    charged_miles: float
    weight_bracket: str | None
    container_weight_lbs: float | None
    origin: str | None = None
    destination: str | None = None
    ship_by_date: str | None = None


@dataclass(frozen=True)
class QuoteResult:
    """
    Priced quote. Purely a function of the input and the rate sheet.

    Transloading results carry `breakdown`; drayage results carry
    `invoice_items` (never part of `total`) and `metadata`.
    """
    service_type: ServiceType
    total: float
    line_items: tuple[LineItem, ...] = ()
    invoice_items: tuple[LineItem, ...] = ()
    breakdown: TransloadingBreakdown | None = None
    metadata: DrayageMetadata | None = None
    currency: str = "USD"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
