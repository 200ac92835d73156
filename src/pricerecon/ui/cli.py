"""Command-line entry points for reconciliation and anomaly scanning."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from pathlib import Path
import sys

from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table
import typer

from pricerecon.adapters.csv_loader import SourceTables, load_sources
from pricerecon.adapters.exporter import write_anomalies_json, write_invoices_csv
from pricerecon.anomalies.scanner import AnomalyReport, scan_all
from pricerecon.core.config import ReconcileConfig, apply_overrides, load_config
from pricerecon.core.errors import PriceReconError
from pricerecon.core.money import quantize
from pricerecon.reconciliation.reconciler import (
    InvoiceReconciler,
    ReconciliationResult,
)
from pricerecon.reference.resolver import ReferenceResolver

# Load environment variables from .env
load_dotenv()

app = typer.Typer(
    help="pricerecon: invoice pricing reconciliation and anomaly scanning.",
    no_args_is_help=True,
)

_console = Console()


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} [{level}] {name}: {message}",
        level="DEBUG" if verbose else "INFO",
    )


def _build_config(
    config_path: Path | None,
    workers: int | None,
    threshold: str | None = None,
) -> ReconcileConfig:
    config = load_config(config_path)
    if workers is not None:
        if workers < 1:
            raise typer.BadParameter("--workers must be >= 1")
        config = replace(config, max_workers=workers)
    if threshold is not None:
        config = apply_overrides(config, {"ratio_threshold_pct": threshold})
    return config


def _run(
    sales: Path,
    discounts: Path,
    tax: Path,
    customers: Path | None,
    config: ReconcileConfig,
) -> tuple[SourceTables, ReferenceResolver, ReconciliationResult]:
    tables = load_sources(sales, discounts, tax, customers)
    resolver = ReferenceResolver(
        tables.discount_rules, tables.tax_rates, tie_break=config.discount_tie_break
    )
    result = InvoiceReconciler(resolver, config).reconcile(tables.lines)
    return tables, resolver, result


def _print_invoice_summary(result: ReconciliationResult, precision: int) -> None:
    total_final = sum((invoice.final_price for invoice in result.invoices), Decimal(0))
    inconsistent = sum(1 for invoice in result.invoices if not invoice.is_consistent)
    _console.print("\n[bold]Reconciliation:[/bold]")
    _console.print(f"  Invoices: {len(result.invoices)}")
    _console.print(f"  Rejected lines: {len(result.rejected)}")
    _console.print(f"  Inconsistent delivery charges: {inconsistent}")
    _console.print(f"  Total final price: {quantize(total_final, precision)}")


def _print_anomaly_table(report: AnomalyReport) -> None:
    table = Table(title="Anomalies", show_lines=True)
    table.add_column("Kind", style="cyan")
    table.add_column("Count", justify="right")
    for kind, count in sorted(report.counts().items(), key=lambda kv: kv[0].value):
        table.add_row(kind.value, str(count))
    _console.print(table)


@app.command("reconcile")
def reconcile_cmd(
    sales: Path = typer.Option(..., help="Sales line-item CSV"),
    discounts: Path = typer.Option(..., help="Discount coupon schedule CSV"),
    tax: Path = typer.Option(..., help="GST by product category CSV"),
    customers: Path | None = typer.Option(
        None, help="Optional customers CSV supplying line locations"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="Optional YAML config file"
    ),
    out: Path = typer.Option(Path("invoices.csv"), help="Invoice CSV output path"),
    workers: int | None = typer.Option(None, help="Reconciliation worker threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Reconcile sales lines into canonical invoices and write them to CSV."""
    _configure_logging(verbose)
    try:
        config = _build_config(config_path, workers)
        _, _, result = _run(sales, discounts, tax, customers, config)
    except (PriceReconError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(code=1) from e

    write_invoices_csv(result.invoices, out, config.currency_precision)
    _print_invoice_summary(result, config.currency_precision)


@app.command("scan")
def scan_cmd(
    sales: Path = typer.Option(..., help="Sales line-item CSV"),
    discounts: Path = typer.Option(..., help="Discount coupon schedule CSV"),
    tax: Path = typer.Option(..., help="GST by product category CSV"),
    customers: Path | None = typer.Option(
        None, help="Optional customers CSV supplying line locations"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="Optional YAML config file"
    ),
    threshold: str | None = typer.Option(
        None, help="Delivery-to-base-price ratio threshold in percent"
    ),
    out: Path | None = typer.Option(None, help="Optional anomaly JSON output path"),
    workers: int | None = typer.Option(None, help="Reconciliation worker threads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Reconcile, then run every anomaly scan and summarize the findings."""
    _configure_logging(verbose)
    try:
        config = _build_config(config_path, workers, threshold)
        tables, resolver, result = _run(sales, discounts, tax, customers, config)
    except (PriceReconError, ValueError) as e:
        logger.error("{}", e)
        raise typer.Exit(code=1) from e

    report = scan_all(result, tables.lines, resolver, config)
    _print_invoice_summary(result, config.currency_precision)
    _print_anomaly_table(report)
    if out is not None:
        write_anomalies_json(report.records, out)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
