"""Anomaly scans over canonical invoices and raw lines."""

from pricerecon.anomalies.scanner import (
    AnomalyReport,
    scan_all,
    scan_ambiguous_discounts,
    scan_delivery_ratio,
    scan_free_delivery,
    scan_high_delivery,
    scan_invoice_consistency,
    scan_malformed,
    scan_price_consistency,
    scan_tax_dominance,
)

__all__ = [
    "AnomalyReport",
    "scan_all",
    "scan_ambiguous_discounts",
    "scan_delivery_ratio",
    "scan_free_delivery",
    "scan_high_delivery",
    "scan_invoice_consistency",
    "scan_malformed",
    "scan_price_consistency",
    "scan_tax_dominance",
]
