"""Exception hierarchy for setup and ingestion failures."""

from __future__ import annotations


class PriceReconError(Exception):
    """Base error for pricerecon."""


class ReferenceDataError(PriceReconError):
    """Discount or tax reference table is unusable."""


class IngestError(PriceReconError):
    """Source file missing or lacking required columns."""
