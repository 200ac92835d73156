"""Invoice-level pricing reconciliation and anomaly scanning."""

from pricerecon.anomalies.scanner import (
    scan_all,
    scan_delivery_ratio,
    scan_price_consistency,
)
from pricerecon.core.config import ReconcileConfig, load_config
from pricerecon.core.models import (
    AnomalyKind,
    AnomalyRecord,
    CouponStatus,
    DiscountRule,
    Invoice,
    LineItem,
    TaxRate,
)
from pricerecon.reconciliation.reconciler import InvoiceReconciler, reconcile
from pricerecon.reference.resolver import ReferenceResolver

__all__ = [
    "AnomalyKind",
    "AnomalyRecord",
    "CouponStatus",
    "DiscountRule",
    "Invoice",
    "InvoiceReconciler",
    "LineItem",
    "ReconcileConfig",
    "ReferenceResolver",
    "TaxRate",
    "load_config",
    "reconcile",
    "scan_all",
    "scan_delivery_ratio",
    "scan_price_consistency",
]
