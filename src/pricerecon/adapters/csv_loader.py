"""CSV loaders for sales lines, discount schedule, tax table and customers."""

from __future__ import annotations

import calendar
import csv
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from pricerecon.adapters.logger import IngestLogger
from pricerecon.core.errors import IngestError
from pricerecon.core.models import CouponStatus, DiscountRule, LineItem, TaxRate
from pricerecon.core.money import to_decimal

_DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%Y-%m-%d %H:%M:%S", "%m/%d/%Y %H:%M")

_MONTHS: dict[str, int] = {}
for _number in range(1, 13):
    _MONTHS[calendar.month_name[_number].lower()] = _number
    _MONTHS[calendar.month_abbr[_number].lower()] = _number


def parse_date(raw: str) -> date:
    text = raw.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised date: {raw!r}")


def parse_month(raw: str) -> int:
    """Parse "Jan", "January" or "1" to a month number."""
    text = raw.strip().lower()
    if text in _MONTHS:
        return _MONTHS[text]
    try:
        month = int(text)
    except ValueError:
        raise ValueError(f"Unrecognised month: {raw!r}") from None
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range: {raw!r}")
    return month


def parse_quantity(raw: str) -> int:
    value = to_decimal(raw)
    if value != value.to_integral_value():
        raise ValueError(f"Quantity is not a whole number: {raw!r}")
    return int(value)


def parse_pct(raw: str) -> Decimal:
    """Parse a percentage written as "18%" or "18"."""
    return to_decimal(raw.strip().rstrip("%"))


def _read_rows(
    path: Path, required: set[str]
) -> tuple[set[str], list[dict[str, str]]]:
    if not path.exists():
        raise IngestError(f"File not found: {path}")
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        header = {name.strip() for name in reader.fieldnames or []}
        missing = required - header
        if missing:
            raise IngestError(f"{path.name} missing columns: {sorted(missing)}")
        rows = [
            {key.strip(): (value or "").strip() for key, value in row.items() if key}
            for row in reader
        ]
    return header, rows


class CustomersCSVLoader:
    """Loads customer locations keyed by customer id."""

    REQUIRED = {"CustomerID", "Location"}

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> dict[str, str]:
        return {
            row["CustomerID"]: row["Location"]
            for row in _read_rows(self._path, self.REQUIRED)[1]
        }


class DiscountCSVLoader:
    """Loads the monthly coupon discount schedule."""

    REQUIRED = {"Month", "Product_Category", "Coupon_Code", "Discount_pct"}

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> list[DiscountRule]:
        rules: list[DiscountRule] = []
        for row_number, row in enumerate(_read_rows(self._path, self.REQUIRED)[1], 2):
            try:
                rules.append(
                    DiscountRule(
                        product_category=row["Product_Category"],
                        period=parse_month(row["Month"]),
                        coupon_code=row["Coupon_Code"],
                        discount_pct=parse_pct(row["Discount_pct"]),
                    )
                )
            except ValueError as e:
                raise IngestError(f"{self._path.name} row {row_number}: {e}") from e
        return rules


class TaxCSVLoader:
    """Loads GST percentages by product category."""

    REQUIRED = {"Product_Category", "GST"}

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> list[TaxRate]:
        rates: list[TaxRate] = []
        for row_number, row in enumerate(_read_rows(self._path, self.REQUIRED)[1], 2):
            try:
                rates.append(
                    TaxRate(
                        product_category=row["Product_Category"],
                        gst_pct=parse_pct(row["GST"]),
                    )
                )
            except ValueError as e:
                raise IngestError(f"{self._path.name} row {row_number}: {e}") from e
        return rates


class SalesCSVLoader:
    """Loads raw sales lines.

    Rows that cannot be parsed are skipped and recorded in `errors`.
    Quantity and price range checks are left to the reconciler so that
    out-of-range lines are reported alongside their invoice.
    """

    REQUIRED = {
        "CustomerID",
        "Transaction_ID",
        "Transaction_Date",
        "Product_SKU",
        "Product_Description",
        "Product_Category",
        "Quantity",
        "Delivery_Charges",
        "Coupon_Status",
    }
    PRICE_COLUMNS = ("Unit_Price", "Avg_Price")

    def __init__(
        self,
        path: Path,
        customer_locations: dict[str, str] | None = None,
        ingest_logger: IngestLogger | None = None,
    ) -> None:
        """Initialize loader.

        Args:
            path: Sales CSV path
            customer_locations: Customer id -> location, used when the sales
                file has no Location column or leaves it blank
            ingest_logger: Logger override
        """
        self._path = path
        self._customer_locations = customer_locations or {}
        self._logger = ingest_logger or IngestLogger()
        self.errors: list[str] = []

    def load(self) -> list[LineItem]:
        header, rows = _read_rows(self._path, self.REQUIRED)
        price_column = self._price_column(header)
        self.errors = []

        lines: list[LineItem] = []
        for row_number, row in enumerate(rows, 2):
            try:
                lines.append(self._parse_row(row, price_column))
            except ValueError as e:
                message = f"row {row_number}: {e}"
                self._logger.row_skipped(self._path.name, row_number, str(e))
                self.errors.append(message)

        self._logger.file_loaded(self._path.name, len(lines), len(self.errors))
        return lines

    def _price_column(self, header: set[str]) -> str:
        for column in self.PRICE_COLUMNS:
            if column in header:
                return column
        raise IngestError(
            f"{self._path.name} missing a unit price column: {list(self.PRICE_COLUMNS)}"
        )

    def _parse_row(self, row: dict[str, str], price_column: str) -> LineItem:
        customer_id = row["CustomerID"]
        location = row.get("Location") or self._customer_locations.get(customer_id, "")
        if not row["Transaction_ID"]:
            raise ValueError("missing Transaction_ID")
        return LineItem(
            customer_id=customer_id,
            transaction_id=row["Transaction_ID"],
            transaction_date=parse_date(row["Transaction_Date"]),
            product_category=row["Product_Category"],
            product_description=row["Product_Description"],
            product_sku=row["Product_SKU"],
            quantity=parse_quantity(row["Quantity"]),
            unit_price=to_decimal(row[price_column]),
            delivery_charge=to_decimal(row["Delivery_Charges"] or "0"),
            coupon_status=CouponStatus.parse(row["Coupon_Status"]),
            location=location,
        )


@dataclass
class SourceTables:
    """Everything one reconciliation pass reads."""

    lines: list[LineItem]
    discount_rules: list[DiscountRule]
    tax_rates: list[TaxRate]
    errors: list[str] = field(default_factory=list)


def load_sources(
    sales_path: Path,
    discounts_path: Path,
    tax_path: Path,
    customers_path: Path | None = None,
) -> SourceTables:
    """Load all source tables from CSV files."""
    locations = CustomersCSVLoader(customers_path).load() if customers_path else {}
    sales_loader = SalesCSVLoader(sales_path, customer_locations=locations)
    lines = sales_loader.load()
    return SourceTables(
        lines=lines,
        discount_rules=DiscountCSVLoader(discounts_path).load(),
        tax_rates=TaxCSVLoader(tax_path).load(),
        errors=list(sales_loader.errors),
    )
