from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import tomllib

from dotenv import load_dotenv

from quote_core.rate_sheet.parser import DEFAULT_RATE_SHEET_PATH


@dataclass(frozen=True)
class RatesConfig:
    file: Path = DEFAULT_RATE_SHEET_PATH
    card_name: str | None = None


@dataclass(frozen=True)
class NormalizationConfig:
    pallet_capacity: int = 40
    small_load_max_pieces: int = 500
    default_container_size: str = "40"
    pallet_size_container: str = "40"


@dataclass(frozen=True)
class AppConfig:
    rates: RatesConfig = field(default_factory=RatesConfig)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)


def load_app_config(config_path: Path | None = None) -> AppConfig:
    raw: dict = {}
    base_dir = Path.cwd()

    if config_path is not None:
        config_path = config_path.resolve()
        base_dir = config_path.parent
        env_path = base_dir / ".env"
        if env_path.exists():
            load_dotenv(env_path)
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    else:
        load_dotenv()

    rates_raw = raw.get("rates", {})
    norm_raw = raw.get("normalization", {})

    rate_file = os.getenv("QUOTE_RATE_SHEET") or rates_raw.get("file")
    rate_path = (base_dir / rate_file).resolve() if rate_file else DEFAULT_RATE_SHEET_PATH
    card_name = os.getenv("QUOTE_RATE_CARD") or rates_raw.get("card_name") or None

    defaults = NormalizationConfig()
    return AppConfig(
        rates=RatesConfig(file=rate_path, card_name=card_name),
        normalization=NormalizationConfig(
            pallet_capacity=int(norm_raw.get("pallet_capacity", defaults.pallet_capacity)),
            small_load_max_pieces=int(norm_raw.get("small_load_max_pieces", defaults.small_load_max_pieces)),
            default_container_size=str(norm_raw.get("default_container_size", defaults.default_container_size)),
            pallet_size_container=str(norm_raw.get("pallet_size_container", defaults.pallet_size_container)),
        ),
    )
