"""Logging for invoice reconciliation.

Keeps log wording out of the reconciliation arithmetic.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from pricerecon.reconciliation.reconciler import ReconciliationResult


class ReconcilerLogger:
    """Handles all logging for invoice reconciliation."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def reconcile_start(self, line_count: int, group_count: int, workers: int) -> None:
        """Log start of a reconciliation pass."""
        self._logger.bind(lines=line_count, groups=group_count, workers=workers).info(
            "Reconciling {} lines across {} transactions ({} workers)",
            line_count,
            group_count,
            workers,
        )

    def line_rejected(self, transaction_id: str, sku: str, reason: str) -> None:
        """Log a malformed line excluded from its invoice."""
        self._logger.bind(transaction_id=transaction_id, sku=sku, reason=reason).warning(
            "Rejected line {} in transaction {}: {}",
            sku,
            transaction_id,
            reason,
        )

    def delivery_inconsistent(
        self,
        transaction_id: str,
        observed: list[Decimal],
        canonical: Decimal,
    ) -> None:
        """Log disagreeing delivery charges within one transaction."""
        self._logger.bind(
            transaction_id=transaction_id,
            observed=[str(value) for value in observed],
            canonical=str(canonical),
        ).warning(
            "Transaction {} has {} distinct delivery charges; using {}",
            transaction_id,
            len(observed),
            canonical,
        )

    def reconcile_complete(self, result: ReconciliationResult) -> None:
        """Log reconciliation totals."""
        inconsistent = sum(1 for invoice in result.invoices if not invoice.is_consistent)
        self._logger.bind(
            invoices=len(result.invoices),
            rejected=len(result.rejected),
            inconsistent=inconsistent,
        ).info(
            "Reconciliation complete: {} invoices, {} rejected lines, {} inconsistent",
            len(result.invoices),
            len(result.rejected),
            inconsistent,
        )
