"""Discount and tax lookups with missing-means-zero defaults."""

from pricerecon.reference.resolver import AmbiguousDiscount, ReferenceResolver

__all__ = ["AmbiguousDiscount", "ReferenceResolver"]
