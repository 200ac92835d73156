"""Anomaly scans over reconciled invoices and raw sales lines.

Scans are read-only and report facts for human review; they never judge
whether a deviation is legitimate. Records come out in the order their
grouping keys were first encountered, which carries no meaning.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
import concurrent.futures
from dataclasses import dataclass
from decimal import Decimal

from pricerecon.anomalies.logger import ScannerLogger
from pricerecon.core.config import ReconcileConfig
from pricerecon.core.models import (
    AnomalyKind,
    AnomalyRecord,
    Invoice,
    LineItem,
    RejectedLine,
)
from pricerecon.core.money import HUNDRED, ZERO, quantize
from pricerecon.reconciliation.reconciler import ReconciliationResult
from pricerecon.reference.resolver import ReferenceResolver

DEFAULT_RATIO_THRESHOLD_PCT = Decimal("100")


@dataclass(frozen=True, slots=True)
class AnomalyReport:
    """All anomaly records from one scan pass."""

    records: tuple[AnomalyRecord, ...]

    def counts(self) -> dict[AnomalyKind, int]:
        return dict(Counter(record.kind for record in self.records))

    def of_kind(self, kind: AnomalyKind) -> list[AnomalyRecord]:
        return [record for record in self.records if record.kind is kind]

    def sorted(self) -> list[AnomalyRecord]:
        return sorted(self.records, key=AnomalyRecord.sort_key)


def scan_price_consistency(lines: Iterable[LineItem]) -> list[AnomalyRecord]:
    """Report SKUs sold at more than one unit price on the same date and location."""
    groups: dict[tuple[str, str, str], list[LineItem]] = {}
    for line in lines:
        key = (line.product_sku, line.transaction_date.isoformat(), line.location)
        groups.setdefault(key, []).append(line)

    records: list[AnomalyRecord] = []
    for (sku, day, location), group in groups.items():
        prices: list[Decimal] = []
        for line in group:
            if line.unit_price not in prices:
                prices.append(line.unit_price)
        if len(prices) <= 1:
            continue
        records.append(
            AnomalyRecord(
                kind=AnomalyKind.PRICE_INCONSISTENCY,
                subject=f"{sku}|{day}|{location}",
                observed={
                    "unit_prices": prices,
                    "entries": [
                        {
                            "transaction_id": line.transaction_id,
                            "unit_price": line.unit_price,
                            "quantity": line.quantity,
                            "coupon_status": line.coupon_status,
                        }
                        for line in group
                    ],
                },
                basis={"distinct_prices": len(prices), "max_expected": 1},
            )
        )
    return records


def scan_delivery_ratio(
    invoices: Iterable[Invoice],
    threshold_pct: Decimal = DEFAULT_RATIO_THRESHOLD_PCT,
    precision: int = 2,
) -> list[AnomalyRecord]:
    """Flag invoices whose delivery charge is >= threshold_pct of base price.

    Invoices with a zero base price have no defined ratio. They are never
    divided and are reported as zero-base-price invoices instead.
    """
    records: list[AnomalyRecord] = []
    for invoice in invoices:
        if invoice.base_price == ZERO:
            records.append(
                AnomalyRecord(
                    kind=AnomalyKind.ZERO_BASE_PRICE_INVOICE,
                    subject=invoice.transaction_id,
                    observed={
                        "base_price": quantize(invoice.base_price, precision),
                        "delivery_charge": invoice.delivery_charge,
                        "line_count": len(invoice.lines),
                    },
                    basis={"reason": "delivery ratio undefined for zero base price"},
                )
            )
            continue

        ratio = invoice.delivery_charge * HUNDRED / invoice.base_price
        if ratio >= threshold_pct:
            records.append(
                AnomalyRecord(
                    kind=AnomalyKind.DELIVERY_RATIO_OUTLIER,
                    subject=invoice.transaction_id,
                    observed={
                        "ratio_pct": quantize(ratio, precision),
                        "delivery_charge": invoice.delivery_charge,
                        "base_price": quantize(invoice.base_price, precision),
                        "product_categories": list(invoice.product_categories),
                    },
                    basis={"threshold_pct": threshold_pct},
                )
            )
    return records


def scan_invoice_consistency(invoices: Iterable[Invoice]) -> list[AnomalyRecord]:
    """Report invoices whose lines disagree on the delivery charge."""
    return [
        AnomalyRecord(
            kind=AnomalyKind.INVOICE_INCONSISTENCY,
            subject=invoice.transaction_id,
            observed={
                "delivery_charges": list(invoice.observed_delivery_charges),
                "canonical_delivery_charge": invoice.delivery_charge,
            },
            basis={"resolution": "max", "expected_distinct": 1},
        )
        for invoice in invoices
        if not invoice.is_consistent
    ]


def scan_malformed(rejected: Iterable[RejectedLine]) -> list[AnomalyRecord]:
    """One record per line excluded from aggregation."""
    return [
        AnomalyRecord(
            kind=AnomalyKind.MALFORMED_RECORD,
            subject=entry.line.transaction_id,
            observed={
                "product_sku": entry.line.product_sku,
                "quantity": entry.line.quantity,
                "unit_price": entry.line.unit_price,
                "delivery_charge": entry.line.delivery_charge,
            },
            basis={"reason": entry.reason},
        )
        for entry in rejected
    ]


def scan_free_delivery(lines: Sequence[LineItem]) -> list[AnomalyRecord]:
    """Surface zero-delivery lines grouped by product category.

    No cause is asserted: non-physical goods and data entry errors look the same.
    """
    total = len(lines)
    groups: dict[str, list[LineItem]] = {}
    for line in lines:
        if line.delivery_charge == ZERO:
            groups.setdefault(line.product_category, []).append(line)

    records: list[AnomalyRecord] = []
    for category, group in groups.items():
        transaction_ids: list[str] = []
        for line in group:
            if line.transaction_id not in transaction_ids:
                transaction_ids.append(line.transaction_id)
        records.append(
            AnomalyRecord(
                kind=AnomalyKind.FREE_DELIVERY,
                subject=category,
                observed={
                    "line_count": len(group),
                    "share_of_lines_pct": quantize(
                        Decimal(len(group)) * HUNDRED / Decimal(total), 3
                    ),
                    "transaction_ids": transaction_ids,
                },
                basis={"delivery_charge": ZERO},
            )
        )
    return records


def scan_high_delivery(
    invoices: Iterable[Invoice], threshold: Decimal, precision: int = 2
) -> list[AnomalyRecord]:
    """Invoices whose canonical delivery charge is at or above `threshold`."""
    return [
        AnomalyRecord(
            kind=AnomalyKind.HIGH_DELIVERY_CHARGE,
            subject=invoice.transaction_id,
            observed={
                "delivery_charge": invoice.delivery_charge,
                "total_quantity": invoice.total_quantity,
                "base_price": quantize(invoice.base_price, precision),
            },
            basis={"threshold": threshold},
        )
        for invoice in invoices
        if invoice.delivery_charge >= threshold
    ]


def scan_tax_dominance(
    invoices: Iterable[Invoice], max_quantity: int, precision: int = 2
) -> list[AnomalyRecord]:
    """Low-quantity invoices where tax outweighs discount plus delivery."""
    records: list[AnomalyRecord] = []
    for invoice in invoices:
        if invoice.total_quantity > max_quantity:
            continue
        offset = invoice.discount_effect + invoice.delivery_charge
        if invoice.tax_effect <= offset:
            continue
        records.append(
            AnomalyRecord(
                kind=AnomalyKind.TAX_DOMINANT_INVOICE,
                subject=invoice.transaction_id,
                observed={
                    "tax_effect": quantize(invoice.tax_effect, precision),
                    "discount_effect": quantize(invoice.discount_effect, precision),
                    "delivery_charge": invoice.delivery_charge,
                    "total_quantity": invoice.total_quantity,
                    "final_price": quantize(invoice.final_price, precision),
                },
                basis={"max_quantity": max_quantity},
            )
        )
    return records


def scan_ambiguous_discounts(resolver: ReferenceResolver) -> list[AnomalyRecord]:
    """Report category/periods where the discount tie-break rule had to choose."""
    return [
        AnomalyRecord(
            kind=AnomalyKind.AMBIGUOUS_DISCOUNT_RULE,
            subject=f"{entry.product_category}|{entry.period}",
            observed={
                "candidates": [
                    {"coupon_code": rule.coupon_code, "discount_pct": rule.discount_pct}
                    for rule in entry.candidates
                ],
                "chosen_coupon_code": entry.chosen.coupon_code,
            },
            basis={"tie_break": resolver.tie_break},
        )
        for entry in resolver.ambiguous_keys
    ]


def scan_all(
    result: ReconciliationResult,
    lines: Sequence[LineItem],
    resolver: ReferenceResolver | None = None,
    config: ReconcileConfig | None = None,
    scanner_logger: ScannerLogger | None = None,
) -> AnomalyReport:
    """Run every scan against one reconciliation pass.

    The scans share only immutable inputs and run on a thread pool.
    """
    config = config or ReconcileConfig()
    log = scanner_logger or ScannerLogger()
    precision = config.currency_precision

    scans: dict[str, Callable[[], list[AnomalyRecord]]] = {
        "price_consistency": lambda: scan_price_consistency(lines),
        "delivery_ratio": lambda: scan_delivery_ratio(
            result.invoices, config.ratio_threshold_pct, precision
        ),
        "invoice_consistency": lambda: scan_invoice_consistency(result.invoices),
        "malformed": lambda: scan_malformed(result.rejected),
        "free_delivery": lambda: scan_free_delivery(lines),
        "high_delivery": lambda: scan_high_delivery(
            result.invoices, config.high_delivery_threshold, precision
        ),
        "tax_dominance": lambda: scan_tax_dominance(
            result.invoices, config.tax_dominance_max_quantity, precision
        ),
    }
    if resolver is not None:
        scans["ambiguous_discounts"] = lambda: scan_ambiguous_discounts(resolver)

    with concurrent.futures.ThreadPoolExecutor(max_workers=len(scans)) as pool:
        futures = {name: pool.submit(scan) for name, scan in scans.items()}
        records: list[AnomalyRecord] = []
        for name, future in futures.items():
            found = future.result()
            log.scan_complete(name, len(found))
            records.extend(found)

    report = AnomalyReport(records=tuple(records))
    log.report_complete(report)
    return report
