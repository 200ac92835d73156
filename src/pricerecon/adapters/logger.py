"""Logging for CSV ingestion and export."""

from __future__ import annotations

from pathlib import Path

import loguru
from loguru import logger


class IngestLogger:
    """Handles all logging for file ingestion and export."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def row_skipped(self, file_name: str, row_number: int, reason: str) -> None:
        """Log a source row that could not be parsed."""
        self._logger.bind(file=file_name, row=row_number, reason=reason).warning(
            "Skipping {} row {}: {}", file_name, row_number, reason
        )

    def file_loaded(self, file_name: str, loaded: int, skipped: int) -> None:
        """Log a source file loaded."""
        self._logger.bind(file=file_name, loaded=loaded, skipped=skipped).info(
            "Loaded {} lines from {} ({} skipped)", loaded, file_name, skipped
        )

    def file_written(self, path: Path, record_count: int) -> None:
        """Log an output file written."""
        self._logger.bind(path=str(path), records=record_count).info(
            "Wrote {} records to {}", record_count, path
        )
