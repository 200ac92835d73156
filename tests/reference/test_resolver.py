"""Tests for discount and tax resolution."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from pricerecon.core.config import TieBreakRule
from pricerecon.core.errors import ReferenceDataError
from pricerecon.core.models import CouponStatus
from pricerecon.reference.logger import ResolverLogger
from pricerecon.reference.resolver import ReferenceResolver
from tests.fixtures.pricing import create_discount_rule, create_tax_rate


def create_resolver(discounts=None, taxes=None, **kwargs) -> ReferenceResolver:
    kwargs.setdefault("resolver_logger", MagicMock(spec=ResolverLogger))
    return ReferenceResolver(
        discounts if discounts is not None else [create_discount_rule()],
        taxes if taxes is not None else [create_tax_rate()],
        **kwargs,
    )


class TestResolveDiscount:
    """Tests for ReferenceResolver.resolve_discount."""

    def test_used_coupon_with_matching_rule(self) -> None:
        resolver = create_resolver()

        rate = resolver.resolve_discount("Apparel", 1, CouponStatus.USED)

        assert rate == Decimal("0.1")

    @pytest.mark.parametrize("status", [CouponStatus.NOT_USED, CouponStatus.CLICKED])
    def test_coupon_not_used_is_zero(self, status: CouponStatus) -> None:
        resolver = create_resolver()

        assert resolver.resolve_discount("Apparel", 1, status) == Decimal("0")

    def test_no_matching_period_is_zero(self) -> None:
        resolver = create_resolver()

        assert resolver.resolve_discount("Apparel", 2, CouponStatus.USED) == 0

    def test_no_matching_category_is_zero(self) -> None:
        resolver = create_resolver()

        assert resolver.resolve_discount("Android", 1, CouponStatus.USED) == 0

    def test_empty_schedule_is_zero(self) -> None:
        resolver = create_resolver(discounts=[])

        assert resolver.resolve_discount("Apparel", 1, CouponStatus.USED) == 0


class TestTieBreak:
    """Tests for choosing among several matching discount rules."""

    def _rules(self) -> list:
        return [
            create_discount_rule(coupon_code="SALE30", discount_pct="30"),
            create_discount_rule(coupon_code="SALE10", discount_pct="10"),
            create_discount_rule(coupon_code="SALE20", discount_pct="20"),
        ]

    def test_default_picks_lowest_coupon_code(self) -> None:
        resolver = create_resolver(discounts=self._rules())

        rate = resolver.resolve_discount("Apparel", 1, CouponStatus.USED)

        assert rate == Decimal("0.1")
        assert resolver.discount_rule_for("Apparel", 1).coupon_code == "SALE10"

    def test_highest_discount(self) -> None:
        resolver = create_resolver(
            discounts=self._rules(), tie_break=TieBreakRule.HIGHEST_DISCOUNT
        )

        assert resolver.resolve_discount("Apparel", 1, CouponStatus.USED) == Decimal(
            "0.3"
        )

    def test_lowest_discount(self) -> None:
        resolver = create_resolver(
            discounts=self._rules(), tie_break=TieBreakRule.LOWEST_DISCOUNT
        )

        assert resolver.resolve_discount("Apparel", 1, CouponStatus.USED) == Decimal(
            "0.1"
        )

    def test_choice_does_not_depend_on_input_order(self) -> None:
        forward = create_resolver(discounts=self._rules())
        backward = create_resolver(discounts=list(reversed(self._rules())))

        assert forward.discount_rule_for("Apparel", 1) == backward.discount_rule_for(
            "Apparel", 1
        )

    def test_ambiguous_keys_are_recorded_and_logged(self) -> None:
        # Setup
        mock_logger = MagicMock(spec=ResolverLogger)

        # Act
        resolver = create_resolver(
            discounts=self._rules() + [create_discount_rule(period=2)],
            resolver_logger=mock_logger,
        )

        # Assert - only January is ambiguous
        assert len(resolver.ambiguous_keys) == 1
        entry = resolver.ambiguous_keys[0]
        assert (entry.product_category, entry.period) == ("Apparel", 1)
        assert len(entry.candidates) == 3
        assert entry.chosen.coupon_code == "SALE10"
        mock_logger.ambiguous_discount.assert_called_once()


class TestResolveTax:
    """Tests for ReferenceResolver.resolve_tax."""

    def test_known_category(self) -> None:
        resolver = create_resolver()

        assert resolver.resolve_tax("Apparel") == Decimal("0.18")

    def test_missing_category_is_zero(self) -> None:
        resolver = create_resolver()

        assert resolver.resolve_tax("Gift Cards") == Decimal("0")

    def test_duplicate_identical_rate_is_accepted(self) -> None:
        resolver = create_resolver(taxes=[create_tax_rate(), create_tax_rate()])

        assert resolver.resolve_tax("Apparel") == Decimal("0.18")

    def test_conflicting_rates_raise(self) -> None:
        with pytest.raises(ReferenceDataError, match="Conflicting GST"):
            create_resolver(
                taxes=[create_tax_rate(gst_pct="18"), create_tax_rate(gst_pct="10")]
            )


class TestReferenceValidation:
    """Tests for reference table validation."""

    def test_discount_above_hundred_raises(self) -> None:
        with pytest.raises(ReferenceDataError):
            create_resolver(discounts=[create_discount_rule(discount_pct="120")])

    def test_negative_tax_raises(self) -> None:
        with pytest.raises(ReferenceDataError):
            create_resolver(taxes=[create_tax_rate(gst_pct="-5")])

    def test_period_out_of_range_raises(self) -> None:
        with pytest.raises(ReferenceDataError, match="month"):
            create_resolver(discounts=[create_discount_rule(period=13)])
