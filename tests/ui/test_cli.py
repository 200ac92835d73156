"""Tests for the pricerecon CLI."""

from __future__ import annotations

from collections.abc import Iterator
import csv
import json
from pathlib import Path
import sys

from loguru import logger
import pytest
from typer.testing import CliRunner

from pricerecon.ui.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_log_sink() -> Iterator[None]:
    """The CLI replaces loguru sinks with the runner's stderr; put a live one back."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def source_files(tmp_path: Path) -> dict[str, Path]:
    sales = tmp_path / "sales.csv"
    sales.write_text(
        "CustomerID,Transaction_ID,Transaction_Date,Product_SKU,Product_Description,"
        "Product_Category,Quantity,Avg_Price,Delivery_Charges,Coupon_Status\n"
        "17850,T1,1/15/2019,GGOEGAAX0081,Google Tee,Apparel,2,10.00,6.00,Used\n"
        "17850,T1,1/15/2019,GGOEGAAX0104,Google Cap,Apparel,1,5.00,8.00,Not Used\n"
        "12345,T2,1/15/2019,GGOEYOLR018699,YouTube Decal,Office,1,0.50,6.00,Used\n"
    )
    discounts = tmp_path / "discounts.csv"
    discounts.write_text(
        "Month,Product_Category,Coupon_Code,Discount_pct\nJan,Apparel,SALE10,10\n"
    )
    tax = tmp_path / "tax.csv"
    tax.write_text("Product_Category,GST\nApparel,18%\n")
    customers = tmp_path / "customers.csv"
    customers.write_text("CustomerID,Location\n17850,Chicago\n12345,New Jersey\n")
    return {"sales": sales, "discounts": discounts, "tax": tax, "customers": customers}


def _source_args(files: dict[str, Path]) -> list[str]:
    return [
        "--sales",
        str(files["sales"]),
        "--discounts",
        str(files["discounts"]),
        "--tax",
        str(files["tax"]),
        "--customers",
        str(files["customers"]),
    ]


class TestReconcileCommand:
    def test_writes_invoice_csv(
        self, tmp_path: Path, source_files: dict[str, Path]
    ) -> None:
        out = tmp_path / "invoices.csv"

        result = runner.invoke(
            app, ["reconcile", *_source_args(source_files), "--out", str(out)]
        )

        assert result.exit_code == 0, result.output
        with open(out, newline="") as f:
            rows = {row["transaction_id"]: row for row in csv.DictReader(f)}
        assert rows["T1"]["final_price"] == "35.14"
        assert rows["T1"]["is_consistent"] == "False"
        assert rows["T2"]["final_price"] == "6.50"
        assert "Invoices: 2" in result.output

    def test_missing_file_exits_non_zero(
        self, tmp_path: Path, source_files: dict[str, Path]
    ) -> None:
        source_files["tax"] = tmp_path / "nope.csv"

        result = runner.invoke(app, ["reconcile", *_source_args(source_files)])

        assert result.exit_code == 1


class TestScanCommand:
    def test_writes_anomaly_json(
        self, tmp_path: Path, source_files: dict[str, Path]
    ) -> None:
        out = tmp_path / "anomalies.json"

        result = runner.invoke(
            app, ["scan", *_source_args(source_files), "--out", str(out)]
        )

        assert result.exit_code == 0, result.output
        kinds = {(r["kind"], r["subject"]) for r in json.loads(out.read_text())}
        assert ("invoice_inconsistency", "T1") in kinds
        assert ("delivery_ratio_outlier", "T2") in kinds
        assert "Anomalies" in result.output

    def test_threshold_option(
        self, tmp_path: Path, source_files: dict[str, Path]
    ) -> None:
        out = tmp_path / "anomalies.json"

        result = runner.invoke(
            app,
            [
                "scan",
                *_source_args(source_files),
                "--threshold",
                "30",
                "--out",
                str(out),
            ],
        )

        assert result.exit_code == 0, result.output
        ratio_subjects = sorted(
            r["subject"]
            for r in json.loads(out.read_text())
            if r["kind"] == "delivery_ratio_outlier"
        )
        # T1 delivery 8.00 on base 25.00 is 32%
        assert ratio_subjects == ["T1", "T2"]

    def test_negative_threshold_exits_non_zero(
        self, tmp_path: Path, source_files: dict[str, Path]
    ) -> None:
        out = tmp_path / "anomalies.json"

        result = runner.invoke(
            app,
            [
                "scan",
                *_source_args(source_files),
                "--threshold=-5",
                "--out",
                str(out),
            ],
        )

        assert result.exit_code == 1
        assert not out.exists()
