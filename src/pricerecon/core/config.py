"""Reconciliation settings loaded from defaults, YAML and the environment."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from decimal import Decimal
from enum import Enum
import os
from pathlib import Path
from typing import Any

import yaml

from pricerecon.core.money import to_decimal

ENV_PREFIX = "PRICERECON_"
MAX_CURRENCY_PRECISION = 10


class TieBreakRule(Enum):
    """How to pick one discount rule when several match a category/period."""

    LOWEST_COUPON_CODE = "lowest_coupon_code"
    HIGHEST_DISCOUNT = "highest_discount"
    LOWEST_DISCOUNT = "lowest_discount"


@dataclass(frozen=True, slots=True)
class ReconcileConfig:
    """Thresholds and policies for a reconciliation and scan pass."""

    ratio_threshold_pct: Decimal = Decimal("100")
    currency_precision: int = 2
    discount_tie_break: TieBreakRule = TieBreakRule.LOWEST_COUPON_CODE
    max_workers: int = 1
    high_delivery_threshold: Decimal = Decimal("500")
    tax_dominance_max_quantity: int = 50

    def __post_init__(self) -> None:
        if not 0 <= self.currency_precision <= MAX_CURRENCY_PRECISION:
            raise ValueError(
                "currency_precision must be between 0 and "
                f"{MAX_CURRENCY_PRECISION}, got {self.currency_precision}"
            )


def _parse_field(name: str, raw: Any) -> Any:
    if name in {"ratio_threshold_pct", "high_delivery_threshold"}:
        try:
            value = to_decimal(raw)
        except ValueError:
            raise ValueError(f"{name} must be a number, got {raw!r}") from None
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {raw!r}")
        return value

    if name == "discount_tie_break":
        if isinstance(raw, TieBreakRule):
            return raw
        choices = ", ".join(rule.value for rule in TieBreakRule)
        try:
            return TieBreakRule(str(raw).strip().lower())
        except ValueError:
            raise ValueError(f"{name} must be one of: {choices}") from None

    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if name == "max_workers" and value < 1:
        raise ValueError("max_workers must be >= 1")
    if name == "tax_dominance_max_quantity" and value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def apply_overrides(
    config: ReconcileConfig, overrides: dict[str, Any]
) -> ReconcileConfig:
    """Validate raw field values and return `config` with them applied."""
    known = {f.name for f in fields(ReconcileConfig)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    parsed = {name: _parse_field(name, raw) for name, raw in overrides.items()}
    return replace(config, **parsed)


def load_config_from_yaml(
    path: Path, base: ReconcileConfig | None = None
) -> ReconcileConfig:
    """Load config values from a YAML mapping of field name to value."""
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return apply_overrides(base or ReconcileConfig(), data)


def load_config_from_env(base: ReconcileConfig | None = None) -> ReconcileConfig:
    """Apply PRICERECON_* environment overrides on top of `base`."""
    overrides: dict[str, Any] = {}
    for f in fields(ReconcileConfig):
        value = os.environ.get(ENV_PREFIX + f.name.upper(), "").strip()
        if value:
            overrides[f.name] = value
    return apply_overrides(base or ReconcileConfig(), overrides)


def load_config(path: Path | None = None) -> ReconcileConfig:
    """Defaults, then optional YAML file, then environment overrides."""
    config = ReconcileConfig()
    if path is not None:
        config = load_config_from_yaml(path, config)
    return load_config_from_env(config)
