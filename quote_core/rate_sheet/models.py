"""
Typed, read-only structures for a parsed rate sheet.

Everything here is produced by `rate_sheet.parser.load_rate_sheet` and shared
by both calculators. Nothing is mutated after construction: dataclasses are
frozen and lookup maps are wrapped in MappingProxyType.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class LooseCargoTier:
    """
    One loose-cargo pricing tier.

    max_pieces is None for the open-ended top tier ("1501 or more pcs").
    per_piece tiers multiply amount by the piece count; the others are flat.
    """
    label: str
    min_pieces: int
    max_pieces: int | None
    amount: float
    per_piece: bool = False

    def contains(self, pieces: int) -> bool:
        if pieces < self.min_pieces:
            return False
        return self.max_pieces is None or pieces <= self.max_pieces


@dataclass(frozen=True)
class TransloadingRow:
    container_sizes: tuple[str, ...]   # ("40", "45") for a "40' / 45'" row
    palletized: float
    loose_tiers: tuple[LooseCargoTier, ...]


@dataclass(frozen=True)
class AccessorialRates:
    shrink_wrap_per_pallet: float
    seal: float
    bill_of_lading: float


@dataclass(frozen=True)
class WarehousingRates:
    handling_per_pallet: float
    after_hours_weekday: float
    after_hours_weekend: float
    monthly_storage_up_to_60in: float
    monthly_storage_over_60in: float


@dataclass(frozen=True)
class StorageRules:
    free_hours: float
    weekly_per_pallet: float
    labor_per_hour: float

    @property
    def free_days(self) -> float:
        return self.free_hours / 24


@dataclass(frozen=True)
class WeightBracket:
    min_lbs: float
    max_lbs: float | None
    surcharge: float
    label: str


@dataclass(frozen=True)
class AddOnRate:
    """
    A drayage add-on. Flat when unit is None, otherwise billed per unit
    beyond free_units.
    """
    code: str
    label: str
    amount: float
    unit: str | None = None
    free_units: float = 0.0

    @property
    def per_unit(self) -> bool:
        return self.unit is not None


@dataclass(frozen=True)
class DrayageRates:
    base_per_mile: Mapping[str, float]
    minimum_miles: float
    weight_brackets: tuple[WeightBracket, ...]
    quote_add_ons: Mapping[str, AddOnRate]
    invoice_add_ons: Mapping[str, AddOnRate] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class RateSheetWarning:
    """A monetary entry that parsed to zero at load time."""
    section: str
    entry: str
    raw: str

    def __str__(self) -> str:
        return f"{self.section} / {self.entry}: {self.raw!r} parsed to $0.00"


@dataclass(frozen=True)
class RateSheet:
    name: str
    transloading_rows: tuple[TransloadingRow, ...]
    accessorials: AccessorialRates
    warehousing: WarehousingRates
    storage: StorageRules
    drayage: DrayageRates | None = None
    warnings: tuple[RateSheetWarning, ...] = ()

    @property
    def container_sizes(self) -> tuple[str, ...]:
        return tuple(size for row in self.transloading_rows for size in row.container_sizes)

    def find_transloading_row(self, container_size: str) -> TransloadingRow | None:
        for row in self.transloading_rows:
            if container_size in row.container_sizes:
                return row
        return None
