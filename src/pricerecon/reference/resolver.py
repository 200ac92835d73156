"""Reference resolver for discount and tax rates.

Exposes:
- ReferenceResolver.resolve_discount(category, period, coupon_status) -> rate
- ReferenceResolver.resolve_tax(category) -> rate

Missing matches resolve to a zero rate. All tie-breaking happens when the
resolver is built, so lookups are plain dictionary reads and the instance
can be shared across worker threads.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from pricerecon.core.config import TieBreakRule
from pricerecon.core.errors import ReferenceDataError
from pricerecon.core.models import CouponStatus, DiscountRule, TaxRate
from pricerecon.core.money import HUNDRED, ZERO, pct_to_rate
from pricerecon.reference.logger import ResolverLogger


@dataclass(frozen=True, slots=True)
class AmbiguousDiscount:
    """A category/period matched by more than one discount rule."""

    product_category: str
    period: int
    candidates: tuple[DiscountRule, ...]
    chosen: DiscountRule


def _pick_rule(candidates: list[DiscountRule], tie_break: TieBreakRule) -> DiscountRule:
    # sorted() is stable, so input order settles any remaining ties
    by_code = sorted(candidates, key=lambda rule: rule.coupon_code)
    if tie_break is TieBreakRule.HIGHEST_DISCOUNT:
        return sorted(by_code, key=lambda rule: rule.discount_pct, reverse=True)[0]
    if tie_break is TieBreakRule.LOWEST_DISCOUNT:
        return sorted(by_code, key=lambda rule: rule.discount_pct)[0]
    return by_code[0]


def _check_pct(value: Decimal, what: str) -> None:
    if value < ZERO or value > HUNDRED:
        raise ReferenceDataError(f"{what} must be between 0 and 100, got {value}")


class ReferenceResolver:
    """Maps (category, period) to a discount rate and category to a tax rate."""

    def __init__(
        self,
        discount_rules: Iterable[DiscountRule],
        tax_rates: Iterable[TaxRate],
        tie_break: TieBreakRule = TieBreakRule.LOWEST_COUPON_CODE,
        resolver_logger: ResolverLogger | None = None,
    ) -> None:
        """Index the reference tables.

        Args:
            discount_rules: Discount schedule rows
            tax_rates: GST rows, at most one rate per category
            tie_break: Rule for choosing among several matching discounts
            resolver_logger: Logger override (mainly for tests)

        Raises:
            ReferenceDataError: On percentages outside 0-100, periods outside
                1-12, or conflicting tax rates for one category.
        """
        self._logger = resolver_logger or ResolverLogger()
        self._tie_break = tie_break

        grouped: dict[tuple[str, int], list[DiscountRule]] = defaultdict(list)
        for rule in discount_rules:
            _check_pct(
                rule.discount_pct,
                f"Discount for {rule.product_category}/{rule.coupon_code}",
            )
            if not 1 <= rule.period <= 12:
                raise ReferenceDataError(
                    f"Discount period must be a month 1-12, got {rule.period}"
                )
            grouped[(rule.product_category, rule.period)].append(rule)

        self._discounts: dict[tuple[str, int], DiscountRule] = {}
        ambiguous: list[AmbiguousDiscount] = []
        for (category, period), candidates in grouped.items():
            chosen = _pick_rule(candidates, tie_break)
            self._discounts[(category, period)] = chosen
            if len(candidates) > 1:
                ambiguous.append(
                    AmbiguousDiscount(
                        product_category=category,
                        period=period,
                        candidates=tuple(candidates),
                        chosen=chosen,
                    )
                )
                self._logger.ambiguous_discount(
                    category,
                    period,
                    [rule.coupon_code for rule in candidates],
                    chosen.coupon_code,
                    tie_break.value,
                )
        self._ambiguous = tuple(ambiguous)

        self._taxes: dict[str, Decimal] = {}
        for tax in tax_rates:
            _check_pct(tax.gst_pct, f"GST for {tax.product_category}")
            existing = self._taxes.get(tax.product_category)
            if existing is not None and existing != tax.gst_pct:
                raise ReferenceDataError(
                    f"Conflicting GST for {tax.product_category}: "
                    f"{existing} and {tax.gst_pct}"
                )
            self._taxes[tax.product_category] = tax.gst_pct

        self._logger.tables_loaded(len(self._discounts), len(self._taxes))

    @property
    def tie_break(self) -> TieBreakRule:
        return self._tie_break

    @property
    def ambiguous_keys(self) -> tuple[AmbiguousDiscount, ...]:
        """Category/period pairs where the tie-break rule had to choose."""
        return self._ambiguous

    def discount_rule_for(self, category: str, period: int) -> DiscountRule | None:
        return self._discounts.get((category, period))

    def resolve_discount(
        self, category: str, period: int, coupon_status: CouponStatus
    ) -> Decimal:
        """Discount rate in [0, 1]; zero unless a coupon was used and a rule matches."""
        if coupon_status is not CouponStatus.USED:
            return ZERO
        rule = self._discounts.get((category, period))
        if rule is None:
            return ZERO
        return pct_to_rate(rule.discount_pct)

    def resolve_tax(self, category: str) -> Decimal:
        """GST rate in [0, 1]; zero when the category has no rate."""
        pct = self._taxes.get(category)
        if pct is None:
            return ZERO
        return pct_to_rate(pct)
