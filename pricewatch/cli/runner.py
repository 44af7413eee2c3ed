# pricewatch/cli/runner.py

"""Headless CLI commands: batch upserts and price-history lookups."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from pricewatch.filters.product_validator import ProductValidator
from pricewatch.models.upsert_result import UpsertResponse
from pricewatch.services.upsert_orchestrator import (
    BatchSummary,
    UpsertOrchestrator,
)
from pricewatch.storage.scrape_loader import (
    ScrapeFileError,
    load_scraped_products,
)
from pricewatch.storage.sqlite_gateway import SQLiteProductGateway

logger = logging.getLogger("pricewatch.cli")

# Stderr console for status messages so stdout stays clean for tables
_err = Console(stderr=True)

_RESPONSE_STYLES: dict[UpsertResponse, str] = {
    UpsertResponse.NEW_PRODUCT: "cyan",
    UpsertResponse.PRICE_CHANGED: "yellow",
    UpsertResponse.INFO_CHANGED: "magenta",
    UpsertResponse.ALREADY_UP_TO_DATE: "dim",
    UpsertResponse.FAILED: "red",
}


def _print_summary(summary: BatchSummary, dropped: int) -> None:
    """Render a Rich table of upsert outcomes to stdout."""
    table = Table(
        title="Upsert Summary",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Outcome", style="bold")
    table.add_column("Products", justify="right")

    for response in UpsertResponse:
        table.add_row(
            f"[{_RESPONSE_STYLES[response]}]{response.value}[/]",
            str(summary.count(response)),
        )
    table.add_row("[dim]invalid (skipped)[/dim]", str(dropped))

    Console().print(table)


async def run_upsert_file(
    filepath: Path, db_path: Path | None = None,
) -> int:
    """Upsert every product in a scrape result file (0=ok, 1=fail)."""
    try:
        scraped = load_scraped_products(filepath)
    except ScrapeFileError as exc:
        logger.error("%s", exc)
        _err.print(f"[red]{exc}[/red]")
        return 1

    products, dropped = ProductValidator.validate(scraped)
    if not products:
        _err.print("[yellow]No valid products to upsert.[/yellow]")
        return 1 if dropped else 0

    _err.print(
        f"[bold]Upserting:[/bold] {len(products)} products "
        f"[dim]from {filepath.name}[/dim]"
    )

    gateway = SQLiteProductGateway(db_path=db_path)
    try:
        orchestrator = UpsertOrchestrator(gateway)
        summary = await orchestrator.upsert_many(products)
    finally:
        gateway.close()

    _print_summary(summary, dropped)

    if summary.failed_ids:
        _err.print(
            f"[red]{len(summary.failed_ids)} upserts failed: "
            f"{', '.join(summary.failed_ids)}[/red]"
        )
        return 1

    _err.print(f"[green]✓ {summary.total} products processed[/green]")
    return 0


def run_show_history(
    product_id: str, db_path: Path | None = None,
) -> int:
    """Print one product's stored price history (0=ok, 1=unknown)."""
    gateway = SQLiteProductGateway(db_path=db_path)
    try:
        product = gateway.get_product(product_id)
    finally:
        gateway.close()

    if product is None:
        _err.print(f"[yellow]Unknown product id: {product_id}[/yellow]")
        return 1

    table = Table(
        title=f"{product.name} ({product.id})",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Date")
    table.add_column("Price", justify="right", style="green")

    for idx, dp in enumerate(product.price_history, 1):
        table.add_row(
            str(idx),
            dp.date.strftime("%Y-%m-%d %H:%M"),
            f"$ {dp.price}",
        )

    Console().print(table)
    _err.print(
        f"[dim]Categories: {', '.join(product.category or []) or '-'}"
        f" | last checked {product.last_checked:%Y-%m-%d %H:%M}[/dim]"
    )
    return 0
