"""Logging for reference table resolution."""

from __future__ import annotations

import loguru
from loguru import logger


class ResolverLogger:
    """Handles all logging for the reference resolver."""

    def __init__(self, logger_instance: loguru.Logger = logger) -> None:
        """Initialize logger.

        Args:
            logger_instance: Logger instance to use (defaults to loguru.logger)
        """
        self._logger = logger_instance

    def tables_loaded(self, discount_keys: int, tax_categories: int) -> None:
        """Log reference tables indexed."""
        self._logger.bind(
            discount_keys=discount_keys, tax_categories=tax_categories
        ).debug(
            "Reference tables indexed: {} discount keys, {} tax categories",
            discount_keys,
            tax_categories,
        )

    def ambiguous_discount(
        self,
        category: str,
        period: int,
        candidate_codes: list[str],
        chosen_code: str,
        tie_break: str,
    ) -> None:
        """Log several discount rules matching one category and period."""
        self._logger.bind(
            category=category,
            period=period,
            candidates=candidate_codes,
            chosen=chosen_code,
        ).warning(
            "{} discount rules match {}/{}; using {} ({})",
            len(candidate_codes),
            category,
            period,
            chosen_code,
            tie_break,
        )
