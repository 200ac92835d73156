"""Invoice-level reconciliation of raw sales lines.

Exposes high-level function:
- reconcile(lines, discount_rules, tax_rates) -> ReconciliationResult

Lines are grouped by transaction id and reduced to one Invoice per group.
Tax is applied to the post-discount amount. Intermediate sums keep full
Decimal precision; only price after tax is rounded, right before the
canonical delivery charge is added to form the final price.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import concurrent.futures
from dataclasses import dataclass
from decimal import Decimal

from pricerecon.core.config import ReconcileConfig
from pricerecon.core.models import (
    DiscountRule,
    Invoice,
    LineItem,
    RejectedLine,
    TaxRate,
)
from pricerecon.core.money import ZERO, quantize
from pricerecon.reconciliation.logger import ReconcilerLogger
from pricerecon.reference.resolver import ReferenceResolver


@dataclass(frozen=True, slots=True)
class LineBreakdown:
    """Monetary breakdown of a single line."""

    base: Decimal
    discount: Decimal
    price_after_discount: Decimal
    tax: Decimal
    price_after_tax: Decimal


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Canonical invoices plus the lines excluded from aggregation."""

    invoices: tuple[Invoice, ...]
    rejected: tuple[RejectedLine, ...]

    def invoice(self, transaction_id: str) -> Invoice | None:
        for candidate in self.invoices:
            if candidate.transaction_id == transaction_id:
                return candidate
        return None


@dataclass(frozen=True, slots=True)
class _GroupOutcome:
    invoice: Invoice | None
    rejected: tuple[RejectedLine, ...]


def validate_line(line: LineItem) -> str | None:
    """Return why a line is malformed, or None if it can be aggregated."""
    if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
        return f"quantity must be an integer, got {line.quantity!r}"
    if line.quantity <= 0:
        return f"quantity must be positive, got {line.quantity}"
    if not line.unit_price.is_finite():
        return f"unit price must be finite, got {line.unit_price}"
    if not line.delivery_charge.is_finite():
        return f"delivery charge must be finite, got {line.delivery_charge}"
    if line.unit_price < ZERO:
        return f"unit price must be non-negative, got {line.unit_price}"
    if line.delivery_charge < ZERO:
        return f"delivery charge must be non-negative, got {line.delivery_charge}"
    return None


def group_by_transaction(lines: Iterable[LineItem]) -> dict[str, list[LineItem]]:
    """Group lines by exact transaction id, keeping first-seen order."""
    groups: dict[str, list[LineItem]] = {}
    for line in lines:
        groups.setdefault(line.transaction_id, []).append(line)
    return groups


class InvoiceReconciler:
    """Builds canonical invoices from line items using a reference resolver."""

    def __init__(
        self,
        resolver: ReferenceResolver,
        config: ReconcileConfig | None = None,
        reconciler_logger: ReconcilerLogger | None = None,
    ) -> None:
        self._resolver = resolver
        self._config = config or ReconcileConfig()
        self._logger = reconciler_logger or ReconcilerLogger()

    def price_line(self, line: LineItem) -> LineBreakdown:
        """Compute base, discount and tax for one line.

        Tax is computed on the discounted amount, never on the base.
        """
        base = line.quantity * line.unit_price
        discount_rate = self._resolver.resolve_discount(
            line.product_category, line.period, line.coupon_status
        )
        discount = base * discount_rate
        price_after_discount = base - discount
        tax = price_after_discount * self._resolver.resolve_tax(line.product_category)
        return LineBreakdown(
            base=base,
            discount=discount,
            price_after_discount=price_after_discount,
            tax=tax,
            price_after_tax=price_after_discount + tax,
        )

    def reconcile(self, lines: Sequence[LineItem]) -> ReconciliationResult:
        """Reconcile every transaction in `lines`.

        A malformed line is rejected on its own; the rest of its invoice and
        every other transaction are still reconciled.

        Returns:
            ReconciliationResult with invoices in first-seen transaction order
        """
        groups = group_by_transaction(lines)
        workers = self._config.max_workers
        self._logger.reconcile_start(len(lines), len(groups), workers)

        if workers > 1 and len(groups) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(self._reconcile_group, groups.items()))
        else:
            outcomes = [self._reconcile_group(item) for item in groups.items()]

        result = ReconciliationResult(
            invoices=tuple(o.invoice for o in outcomes if o.invoice is not None),
            rejected=tuple(r for o in outcomes for r in o.rejected),
        )
        self._logger.reconcile_complete(result)
        return result

    def _reconcile_group(self, item: tuple[str, list[LineItem]]) -> _GroupOutcome:
        transaction_id, group = item

        accepted: list[LineItem] = []
        rejected: list[RejectedLine] = []
        for line in group:
            reason = validate_line(line)
            if reason is None:
                accepted.append(line)
            else:
                self._logger.line_rejected(transaction_id, line.product_sku, reason)
                rejected.append(RejectedLine(line=line, reason=reason))

        if not accepted:
            return _GroupOutcome(invoice=None, rejected=tuple(rejected))

        base = discount = after_discount = tax = after_tax = ZERO
        for line in accepted:
            breakdown = self.price_line(line)
            base += breakdown.base
            discount += breakdown.discount
            after_discount += breakdown.price_after_discount
            tax += breakdown.tax
            after_tax += breakdown.price_after_tax

        observed: list[Decimal] = []
        for line in accepted:
            if line.delivery_charge not in observed:
                observed.append(line.delivery_charge)
        delivery = max(observed)
        is_consistent = len(observed) == 1
        if not is_consistent:
            self._logger.delivery_inconsistent(transaction_id, observed, delivery)

        categories: list[str] = []
        for line in accepted:
            if line.product_category not in categories:
                categories.append(line.product_category)

        invoice = Invoice(
            transaction_id=transaction_id,
            customer_id=accepted[0].customer_id,
            period=min(line.transaction_date for line in accepted).month,
            lines=tuple(accepted),
            base_price=base,
            discount_effect=discount,
            tax_effect=tax,
            price_after_discount=after_discount,
            price_after_tax=after_tax,
            delivery_charge=delivery,
            final_price=quantize(after_tax, self._config.currency_precision) + delivery,
            is_consistent=is_consistent,
            observed_delivery_charges=tuple(observed),
            product_categories=tuple(categories),
        )
        return _GroupOutcome(invoice=invoice, rejected=tuple(rejected))


def reconcile(
    lines: Sequence[LineItem],
    discount_rules: Iterable[DiscountRule],
    tax_rates: Iterable[TaxRate],
    config: ReconcileConfig | None = None,
) -> ReconciliationResult:
    """Build a resolver from the reference tables and reconcile `lines`."""
    config = config or ReconcileConfig()
    resolver = ReferenceResolver(
        discount_rules, tax_rates, tie_break=config.discount_tie_break
    )
    return InvoiceReconciler(resolver, config).reconcile(lines)
