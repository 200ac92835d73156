"""Invoice reconciliation from raw line items."""

from pricerecon.reconciliation.reconciler import (
    InvoiceReconciler,
    ReconciliationResult,
    reconcile,
)

__all__ = ["InvoiceReconciler", "ReconciliationResult", "reconcile"]
