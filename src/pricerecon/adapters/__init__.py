"""CSV ingestion and report export."""

from pricerecon.adapters.csv_loader import (
    CustomersCSVLoader,
    DiscountCSVLoader,
    SalesCSVLoader,
    SourceTables,
    TaxCSVLoader,
    load_sources,
)
from pricerecon.adapters.exporter import write_anomalies_json, write_invoices_csv

__all__ = [
    "CustomersCSVLoader",
    "DiscountCSVLoader",
    "SalesCSVLoader",
    "SourceTables",
    "TaxCSVLoader",
    "load_sources",
    "write_anomalies_json",
    "write_invoices_csv",
]
