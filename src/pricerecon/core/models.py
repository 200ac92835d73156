"""Domain entities for invoice reconciliation and anomaly reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pricerecon.core.money import quantize


class CouponStatus(Enum):
    """Coupon state recorded on a sales line."""

    USED = "used"
    NOT_USED = "not_used"
    CLICKED = "clicked"

    @classmethod
    def parse(cls, raw: str) -> CouponStatus:
        """Parse a coupon status as written in source data ("Used", "Not Used")."""
        normalized = raw.strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown coupon status: {raw!r}") from None


class AnomalyKind(Enum):
    """Kinds of deviations surfaced by the anomaly scanner."""

    PRICE_INCONSISTENCY = "price_inconsistency"
    DELIVERY_RATIO_OUTLIER = "delivery_ratio_outlier"
    ZERO_BASE_PRICE_INVOICE = "zero_base_price_invoice"
    INVOICE_INCONSISTENCY = "invoice_inconsistency"
    MALFORMED_RECORD = "malformed_record"
    FREE_DELIVERY = "free_delivery"
    HIGH_DELIVERY_CHARGE = "high_delivery_charge"
    TAX_DOMINANT_INVOICE = "tax_dominant_invoice"
    AMBIGUOUS_DISCOUNT_RULE = "ambiguous_discount_rule"


@dataclass(frozen=True, slots=True)
class LineItem:
    """One raw sales row. Delivery charge is repeated on every line of an invoice."""

    customer_id: str
    transaction_id: str
    transaction_date: date
    product_category: str
    product_description: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    delivery_charge: Decimal
    coupon_status: CouponStatus
    location: str

    @property
    def period(self) -> int:
        """Month number used to match discount rules."""
        return self.transaction_date.month


@dataclass(frozen=True, slots=True)
class DiscountRule:
    """Coupon discount offered for a product category in a given month."""

    product_category: str
    period: int
    coupon_code: str
    discount_pct: Decimal


@dataclass(frozen=True, slots=True)
class TaxRate:
    """GST percentage for a product category."""

    product_category: str
    gst_pct: Decimal


@dataclass(frozen=True, slots=True)
class RejectedLine:
    """A line item excluded from aggregation and why."""

    line: LineItem
    reason: str


_MONEY_FIELDS = (
    "base_price",
    "discount_effect",
    "tax_effect",
    "price_after_discount",
    "price_after_tax",
    "delivery_charge",
    "final_price",
)


@dataclass(frozen=True, slots=True)
class Invoice:
    """Canonical aggregate of all line items sharing one transaction id.

    Monetary aggregates are kept at full precision; `final_price` is the
    only field that already includes a rounding step (price after tax is
    rounded before the delivery charge is added).
    """

    transaction_id: str
    customer_id: str
    period: int
    lines: tuple[LineItem, ...]
    base_price: Decimal
    discount_effect: Decimal
    tax_effect: Decimal
    price_after_discount: Decimal
    price_after_tax: Decimal
    delivery_charge: Decimal
    final_price: Decimal
    is_consistent: bool
    observed_delivery_charges: tuple[Decimal, ...] = ()
    product_categories: tuple[str, ...] = ()

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def to_dict(self, precision: int = 2) -> dict[str, Any]:
        """Flatten for reporting, rounding every monetary field."""
        row: dict[str, Any] = {
            "transaction_id": self.transaction_id,
            "customer_id": self.customer_id,
            "period": self.period,
            "line_count": len(self.lines),
            "total_quantity": self.total_quantity,
            "product_categories": ",".join(self.product_categories),
        }
        for name in _MONEY_FIELDS:
            row[name] = str(quantize(getattr(self, name), precision))
        row["is_consistent"] = self.is_consistent
        return row


@dataclass(frozen=True, slots=True)
class AnomalyRecord:
    """A reported deviation from expected invariants in the source data."""

    kind: AnomalyKind
    subject: str
    observed: dict[str, Any] = field(default_factory=dict)
    basis: dict[str, Any] = field(default_factory=dict)

    # Evidence is held in dicts, so records compare by value but are unhashable.
    __hash__ = None  # type: ignore[assignment]

    def sort_key(self) -> tuple[str, str]:
        return (self.kind.value, self.subject)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "subject": self.subject,
            "observed": _jsonable(self.observed),
            "basis": _jsonable(self.basis),
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value
