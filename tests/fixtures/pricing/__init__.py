"""Builders for sales lines and reference tables used across tests."""

from tests.fixtures.pricing.builders import (
    create_discount_rule,
    create_line,
    create_tax_rate,
    worked_example_lines,
    worked_example_reference,
)

__all__ = [
    "create_discount_rule",
    "create_line",
    "create_tax_rate",
    "worked_example_lines",
    "worked_example_reference",
]
