"""
Command-Line Interface for balancesheet.

Purpose
-------
Provides a CLI for inspecting a balance-sheet document: per-asset
income, portfolio allocations, cash-flow projections and headline
figures, without writing Python code.

Commands
--------
- income: Per-asset monthly/annual income (optionally writing the cache)
- allocate: Value or income allocation by type, sector, country, category
- project: Month-by-month cash-flow projection (cached or uncached)
- summary: Headline figures (net worth, cash flow, coverage)
- validate / config validate: Validate a balance-sheet document
- config settings: Show the effective application settings

Example Usage
-------------
    # Per-asset income, persisting fresh cache entries
    $ balancesheet income sheet.json --write-cache

    # Income allocation by sector
    $ balancesheet allocate sheet.json --metric income --by sector

    # 24-month projection from the snapshot cache
    $ balancesheet project sheet.json --months 24 --cached

    # Show version
    $ balancesheet --version
"""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from .exceptions import BalanceSheetError


# Lazy imports for performance
def _import_rich():
    """Lazy import Rich for better startup time."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table
    return Console(), Table, Panel


def _get_console():
    console, *_ = _import_rich()
    return console


# Version
__version__ = "0.1.0"


def _load(path: Path):
    from .serialization import load_balance_sheet

    try:
        return load_balance_sheet(path)
    except (BalanceSheetError, OSError) as e:
        click.echo(f"Error loading balance sheet: {e}", err=True)
        sys.exit(1)


def _money(x: float) -> str:
    return f"{x:,.2f}"


@click.group()
@click.version_option(version=__version__, prog_name="balancesheet")
@click.option("--quiet", "-q", is_flag=True, help="Suppress tables; print plain totals")
@click.pass_context
def main(ctx: click.Context, quiet: bool) -> None:
    """
    balancesheet - personal balance-sheet income and projection tool.

    Derives income from holdings, aggregates portfolio allocations and
    projects monthly cash flow from a JSON balance-sheet document.

    Use 'balancesheet COMMAND --help' for command-specific help.
    """
    from .config import AppSettings
    from .log import configure_logging

    settings = AppSettings()
    configure_logging(settings.effective_log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = _get_console()


# ---------------------------------------------------------------------------
# income
# ---------------------------------------------------------------------------

@main.command()
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--month", "-m",
    type=click.IntRange(1, 12),
    default=None,
    help="Also show the income paid in this calendar month"
)
@click.option(
    "--write-cache",
    is_flag=True,
    help="Attach fresh cache entries to the holdings and save the document"
)
@click.pass_context
def income(ctx: click.Context, sheet_file: Path, month: Optional[int], write_cache: bool) -> None:
    """
    Show derived income per holding.

    Example:
        balancesheet income sheet.json --month 3
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .cache import CacheWriter, IncomeCache
    from .serialization import save_balance_sheet

    sheet = _load(sheet_file)
    cache = IncomeCache()
    results = [(asset, cache.get_or_compute(asset)) for asset in sheet.assets]
    total_monthly = sum(r.monthly_amount for _, r in results)
    total_annual = sum(r.annual_amount for _, r in results)
    total_month = sum(r.monthly_breakdown.get(month, 0.0) for _, r in results) if month else None

    if console and not quiet:
        from rich.table import Table

        table = Table(title="Asset Income", show_header=True)
        table.add_column("Asset", style="cyan")
        table.add_column("Type")
        table.add_column("Monthly", justify="right", style="green")
        table.add_column("Annual", justify="right")
        if month:
            table.add_column(f"Month {month}", justify="right")
        table.add_column("Cached", justify="center")

        for asset, r in results:
            row = [asset.name, asset.type.value, _money(r.monthly_amount), _money(r.annual_amount)]
            if month:
                row.append(_money(r.monthly_breakdown.get(month, 0.0)))
            row.append("yes" if r.cache_hit else "no")
            table.add_row(*row)

        totals = ["Total", "", _money(total_monthly), _money(total_annual)]
        if month:
            totals.append(_money(total_month))
        totals.append("")
        table.add_row(*totals, style="bold")
        console.print(table)
    else:
        click.echo(f"Monthly asset income: {_money(total_monthly)}")
        click.echo(f"Annual asset income: {_money(total_annual)}")
        if month:
            click.echo(f"Month {month} asset income: {_money(total_month)}")

    if write_cache:
        writer = CacheWriter(cache.store)
        updated = [writer.apply(asset, r) for asset, r in results]
        written = sum(1 for _, r in results if not r.cache_hit)
        save_balance_sheet(replace(sheet, assets=tuple(updated)), sheet_file)
        if not quiet:
            click.echo(f"Cache entries written: {written}")


# ---------------------------------------------------------------------------
# allocate
# ---------------------------------------------------------------------------

_DIMENSIONS = ("type", "sector", "country", "category")


@main.command()
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--metric",
    type=click.Choice(["value", "income"]),
    default="value",
    help="Allocate by current value or by monthly income (default: value)"
)
@click.option(
    "--by",
    "dimension",
    type=click.Choice(list(_DIMENSIONS) + ["all"]),
    default="all",
    help="Allocation dimension (default: all)"
)
@click.option(
    "--positions",
    "positions_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Pre-merged positions (JSON) to aggregate instead of the sheet's holdings"
)
@click.pass_context
def allocate(
    ctx: click.Context,
    sheet_file: Path,
    metric: str,
    dimension: str,
    positions_file: Optional[Path],
) -> None:
    """
    Show portfolio allocations.

    Example:
        balancesheet allocate sheet.json --metric income --by sector
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .asset_income import AssetIncomeCalculator
    from .portfolio import PortfolioAggregator, positions_from_assets
    from .serialization import load_positions

    sheet = _load(sheet_file)
    if positions_file is not None:
        try:
            positions = load_positions(positions_file)
        except BalanceSheetError as e:
            click.echo(f"Error loading positions: {e}", err=True)
            sys.exit(1)
    else:
        positions = positions_from_assets(
            sheet.assets, AssetIncomeCalculator(), sheet.category_assignments
        )
    aggregator = PortfolioAggregator()
    if metric == "value":
        allocation = aggregator.value_allocation(positions, sheet.definitions)
    else:
        allocation = aggregator.income_allocation(positions, sheet.definitions)

    if allocation.is_empty:
        click.echo(f"No {metric} to allocate")
        return

    dims = _DIMENSIONS if dimension == "all" else (dimension,)
    sections = {
        "type": allocation.by_type,
        "sector": allocation.by_sector,
        "country": allocation.by_country,
        "category": allocation.by_category,
    }

    if console and not quiet:
        from rich.table import Table

        console.print(f"[bold]Total {metric}:[/bold] {_money(allocation.total)}")
        for dim in dims:
            table = Table(title=f"By {dim}", show_header=True)
            table.add_column("Name", style="cyan")
            table.add_column(metric.capitalize(), justify="right")
            table.add_column("%", justify="right", style="green")
            for entry in sections[dim]:
                table.add_row(entry.name, _money(entry.value), f"{entry.percentage:.1f}")
            console.print(table)
    else:
        click.echo(f"Total {metric}: {_money(allocation.total)}")
        for dim in dims:
            for entry in sections[dim]:
                click.echo(f"{dim}\t{entry.name}\t{_money(entry.value)}\t{entry.percentage:.1f}%")


# ---------------------------------------------------------------------------
# project
# ---------------------------------------------------------------------------

@main.command()
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--months", "-T",
    type=click.IntRange(min=0),
    default=None,
    help="Projection horizon in months (default: BALANCESHEET_DEFAULT_PROJECTION_MONTHS)"
)
@click.option(
    "--start",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m"]),
    default=None,
    help="First projected month (default: current month)"
)
@click.option(
    "--cached",
    is_flag=True,
    help="Project from a snapshot of pre-aggregated totals"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write rows to this file (.csv or .json)"
)
@click.pass_context
def project(
    ctx: click.Context,
    sheet_file: Path,
    months: Optional[int],
    start,
    cached: bool,
    output: Optional[Path],
) -> None:
    """
    Project monthly cash flow.

    Example:
        balancesheet project sheet.json -T 24 --start 2025-01 --cached
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)
    settings = ctx.obj["settings"]

    from .cache import IncomeCache
    from .projection import ProjectionEngine
    from .serialization import save_projection
    from .summary import build_snapshot

    sheet = _load(sheet_file)
    horizon = settings.default_projection_months if months is None else months
    first = start.date() if start is not None else None

    cache = IncomeCache() if settings.cache_enabled else None
    engine = ProjectionEngine(income_cache=cache)
    try:
        if cached:
            snapshot = build_snapshot(sheet, cache)
            rows = engine.project_snapshot(snapshot, horizon, start=first)
        else:
            rows = engine.project_months(
                sheet.incomes, sheet.expenses, sheet.liabilities, sheet.assets,
                horizon, start=first,
            )
    except BalanceSheetError as e:
        click.echo(f"Error during projection: {e}", err=True)
        sys.exit(1)

    if console and not quiet:
        from rich.table import Table

        table = Table(title=f"Cash-Flow Projection ({horizon} months)", show_header=True)
        table.add_column("Month", style="cyan")
        table.add_column("Income", justify="right")
        table.add_column("Expenses", justify="right")
        table.add_column("Liabilities", justify="right")
        table.add_column("Net", justify="right", style="green")
        table.add_column("Cumulative", justify="right")
        for row in rows:
            table.add_row(
                f"{row.year}-{row.month:02d}",
                _money(row.total_income),
                _money(row.total_expenses),
                _money(row.total_liabilities),
                _money(row.net_cash_flow),
                _money(row.cumulative_cash_flow),
            )
        console.print(table)
    else:
        for row in rows:
            click.echo(
                f"{row.year}-{row.month:02d}\t{_money(row.net_cash_flow)}\t"
                f"{_money(row.cumulative_cash_flow)}"
            )

    if output:
        if output.suffix == ".csv":
            output.parent.mkdir(parents=True, exist_ok=True)
            engine.to_frame(rows).to_csv(output)
        else:
            save_projection(rows, output)
        if not quiet:
            click.echo(f"Projection saved to {output}")


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------

@main.command()
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def summary(ctx: click.Context, sheet_file: Path) -> None:
    """
    Show headline figures.

    Example:
        balancesheet summary sheet.json
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .summary import calculate_financial_summary

    sheet = _load(sheet_file)
    s = calculate_financial_summary(sheet)
    lines = [
        ("Total assets", _money(s.total_assets)),
        ("Total liabilities", _money(s.total_liabilities)),
        ("Net worth", _money(s.net_worth)),
        ("Monthly income", _money(s.total_monthly_income)),
        ("Monthly asset income", _money(s.monthly_asset_income)),
        ("Monthly expenses", _money(s.monthly_expenses)),
        ("Monthly liability payments", _money(s.monthly_liability_payments)),
        ("Monthly cash flow", _money(s.monthly_cash_flow)),
        ("Passive income coverage", f"{s.passive_income_coverage * 100:.1f}%"),
        ("Savings rate", f"{s.savings_rate * 100:.1f}%"),
    ]

    if console and not quiet:
        from rich.table import Table

        table = Table(title="Financial Summary", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        for label, value in lines:
            table.add_row(label, value)
        console.print(table)
    else:
        for label, value in lines:
            click.echo(f"{label}: {value}")


# ---------------------------------------------------------------------------
# validate / config
# ---------------------------------------------------------------------------

@main.group()
def config() -> None:
    """
    Configuration management commands.

    Validate balance-sheet documents and inspect settings.
    """
    pass


@config.command("validate")
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, sheet_file: Path) -> None:
    """
    Validate a balance-sheet document.

    Checks that the file is valid JSON and conforms to the expected
    schema, including id uniqueness and definition references.

    Example:
        balancesheet config validate sheet.json
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .serialization import load_balance_sheet

    try:
        sheet = load_balance_sheet(sheet_file)
    except (BalanceSheetError, OSError) as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    counts = (
        f"Assets: {len(sheet.assets)}, definitions: {len(sheet.definitions)}, "
        f"incomes: {len(sheet.incomes)}, expenses: {len(sheet.expenses)}, "
        f"liabilities: {len(sheet.liabilities)}"
    )
    if console and not quiet:
        from rich.panel import Panel

        console.print(Panel(
            f"[bold]Balance Sheet Valid[/bold]\n\n{counts}",
            title="Configuration Summary",
            border_style="green",
        ))
    else:
        click.echo("Configuration is valid")
        click.echo(counts)


@config.command("settings")
@click.pass_context
def config_settings(ctx: click.Context) -> None:
    """Show the effective application settings."""
    settings = ctx.obj["settings"]
    for key, value in settings.model_dump().items():
        click.echo(f"{key}: {value}")


@main.command("validate")
@click.argument("sheet_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def validate(ctx: click.Context, sheet_file: Path) -> None:
    """Validate a balance-sheet document (alias of 'config validate')."""
    ctx.invoke(config_validate, sheet_file=sheet_file)


if __name__ == "__main__":
    main()
