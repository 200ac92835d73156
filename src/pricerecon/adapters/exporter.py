"""Export canonical invoices and anomaly records for reporting consumers."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import csv
import json
from pathlib import Path

from pricerecon.adapters.logger import IngestLogger
from pricerecon.core.models import AnomalyRecord, Invoice

INVOICE_COLUMNS = [
    "transaction_id",
    "customer_id",
    "period",
    "line_count",
    "total_quantity",
    "product_categories",
    "base_price",
    "discount_effect",
    "tax_effect",
    "price_after_discount",
    "price_after_tax",
    "delivery_charge",
    "final_price",
    "is_consistent",
]


def write_invoices_csv(
    invoices: Sequence[Invoice],
    path: Path,
    precision: int = 2,
    ingest_logger: IngestLogger | None = None,
) -> Path:
    """Write one row per invoice with monetary fields rounded to `precision`."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=INVOICE_COLUMNS)
        writer.writeheader()
        for invoice in invoices:
            writer.writerow(invoice.to_dict(precision))
    (ingest_logger or IngestLogger()).file_written(path, len(invoices))
    return path


def write_anomalies_json(
    records: Iterable[AnomalyRecord],
    path: Path,
    ingest_logger: IngestLogger | None = None,
) -> Path:
    """Write anomaly records as a JSON array, sorted by kind then subject."""
    ordered = sorted(records, key=AnomalyRecord.sort_key)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([r.to_dict() for r in ordered], indent=2) + "\n")
    (ingest_logger or IngestLogger()).file_written(path, len(ordered))
    return path
