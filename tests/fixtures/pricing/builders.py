"""Sales line and reference table builders.

The worked example is two Apparel lines on one transaction in January:
a 2 x 10.00 line with a used coupon and a 1 x 5.00 line without one,
a 10% January Apparel coupon and 18% Apparel GST.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pricerecon.core.models import CouponStatus, DiscountRule, LineItem, TaxRate


def create_line(
    transaction_id: str = "T1",
    *,
    quantity: int = 1,
    unit_price: str = "10.00",
    delivery_charge: str = "6.00",
    category: str = "Apparel",
    coupon_status: CouponStatus = CouponStatus.NOT_USED,
    transaction_date: date = date(2019, 1, 15),
    sku: str = "GGOEGAAX0081",
    location: str = "Chicago",
    customer_id: str = "17850",
    description: str = "Google Tee",
) -> LineItem:
    """Create a LineItem for testing."""
    return LineItem(
        customer_id=customer_id,
        transaction_id=transaction_id,
        transaction_date=transaction_date,
        product_category=category,
        product_description=description,
        product_sku=sku,
        quantity=quantity,
        unit_price=Decimal(unit_price),
        delivery_charge=Decimal(delivery_charge),
        coupon_status=coupon_status,
        location=location,
    )


def create_discount_rule(
    category: str = "Apparel",
    period: int = 1,
    coupon_code: str = "SALE10",
    discount_pct: str = "10",
) -> DiscountRule:
    """Create a DiscountRule for testing."""
    return DiscountRule(
        product_category=category,
        period=period,
        coupon_code=coupon_code,
        discount_pct=Decimal(discount_pct),
    )


def create_tax_rate(category: str = "Apparel", gst_pct: str = "18") -> TaxRate:
    """Create a TaxRate for testing."""
    return TaxRate(product_category=category, gst_pct=Decimal(gst_pct))


def worked_example_lines(line_b_delivery: str = "6.00") -> list[LineItem]:
    return [
        create_line(
            "T1",
            quantity=2,
            unit_price="10.00",
            delivery_charge="6.00",
            coupon_status=CouponStatus.USED,
            sku="GGOEGAAX0081",
        ),
        create_line(
            "T1",
            quantity=1,
            unit_price="5.00",
            delivery_charge=line_b_delivery,
            coupon_status=CouponStatus.NOT_USED,
            sku="GGOEGAAX0104",
        ),
    ]


def worked_example_reference() -> tuple[list[DiscountRule], list[TaxRate]]:
    return [create_discount_rule()], [create_tax_rate()]
