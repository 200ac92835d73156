"""Logging for anomaly scans."""

from __future__ import annotations

from typing import TYPE_CHECKING

import loguru
from loguru import logger

if TYPE_CHECKING:
    from pricerecon.anomalies.scanner import AnomalyReport


class ScannerLogger:
    """Handles all logging for the anomaly scanner."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def scan_complete(self, scan_name: str, found: int) -> None:
        """Log one scan finished."""
        self._logger.bind(scan=scan_name, found=found).debug(
            "Scan {} found {} anomalies", scan_name, found
        )

    def report_complete(self, report: AnomalyReport) -> None:
        """Log anomaly counts by kind."""
        counts = report.counts()
        if not counts:
            self._logger.info("No anomalies found")
            return

        self._logger.bind(total=len(report.records)).info(
            "Anomaly scan complete: {} records", len(report.records)
        )
        for kind, count in counts.items():
            self._logger.bind(kind=kind.value, count=count).info(
                "  {}: {}", kind.value, count
            )
