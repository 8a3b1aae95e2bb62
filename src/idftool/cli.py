"""Typer-based CLI entry point."""

from __future__ import annotations

import logging
import math
import numbers
from pathlib import Path
from typing import Any

import pandas as pd
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .core import DistributionFitResult
from .distfit import list_methods
from .distributions import get_distribution, list_distributions
from .regression import IDFFitResult
from .sampling import BootstrapConfig
from .workflows import DEFAULT_RETURN_PERIODS, build_idf_curves, fit_distribution, fit_idf

app = typer.Typer(help="idftool: rainfall frequency analysis and IDF curve fitting.")
console = Console()

CSV_ARGUMENT = typer.Argument(
    ...,
    exists=True,
    readable=True,
    help="CSV file; the first column is used as the row index.",
)
COLUMN_OPTION = typer.Option(
    None,
    "--column",
    "-c",
    help="Column holding the annual maxima (defaults to the first data column).",
    show_default=False,
)
FAMILY_OPTION = typer.Option("gumbel", "--family", "-f", help="Distribution family.")
IDF_FAMILY_OPTION = typer.Option(
    None,
    "--family",
    "-f",
    help="Treat the CSV as annual maxima per duration and fit this family first.",
    show_default=False,
)
METHOD_OPTION = typer.Option("lmoments", "--method", "-m", help="Estimation method.")
PERIOD_OPTION = typer.Option(
    None,
    "--period",
    "-p",
    help="Return period in years (repeat for multiples).",
    show_default=False,
)
CI_OPTION = typer.Option(False, "--ci/--no-ci", help="Add bootstrap confidence bounds.")
RESAMPLES_OPTION = typer.Option(1000, "--resamples", help="Bootstrap resamples.")
LEVEL_OPTION = typer.Option(0.95, "--level", help="Confidence level of the bands.")
SEED_OPTION = typer.Option(
    None, "--seed", help="Seed for bootstrap resampling.", show_default=False
)
WORKERS_OPTION = typer.Option(1, "--workers", help="Threads used for bootstrap refits.")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable verbose output.")
VERSION_OPTION = typer.Option(False, "--version", help="Show version and exit.")


@app.callback(invoke_without_command=True)
def cli_callback(  # noqa: B008
    ctx: typer.Context,
    verbose: bool = VERBOSE_OPTION,
    version: bool = VERSION_OPTION,
) -> None:
    if verbose or version:
        console.print(f"[bold green]idftool {__version__}[/bold green]")
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    if ctx.invoked_subcommand is None and not ctx.resilient_parsing:
        raise typer.Exit()


@app.command()
def registry() -> None:
    """List registered distributions."""
    table = Table(title="Registered Distributions")
    table.add_column("Name")
    table.add_column("Aliases")
    table.add_column("Parameters")
    table.add_column("Description", overflow="fold")
    for name in list_distributions():
        dist = get_distribution(name)
        table.add_row(
            dist.name, ", ".join(dist.aliases), ", ".join(dist.parameters), dist.notes or ""
        )
    console.print(table)


@app.command()
def methods() -> None:
    """List estimation methods."""
    table = Table(title="Estimation Methods")
    table.add_column("Method")
    for name in list_methods():
        table.add_row(name)
    console.print(table)


def _format_metric(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, numbers.Real):
        val = float(value)
        if math.isnan(val) or math.isinf(val):
            return "-"
        return f"{val:.4f}"
    return str(value)


def _print_distribution_fit(result: DistributionFitResult) -> None:
    family, method = result.info
    if result.parameters is None:
        console.print(f"[yellow]{family}/{method}: no valid solution for this sample.[/yellow]")
        return
    params = Table(title=f"Parameters ({family}, {method})")
    for name in result.parameters.names:
        params.add_column(name, justify="right")
    params.add_row(*(_format_metric(value) for value in result.parameters.values.values()))
    console.print(params)

    frame = result.to_frame()
    levels = Table(title="Return Levels", expand=True)
    levels.add_column("T", justify="right", no_wrap=True)
    for column in frame.columns:
        levels.add_column(str(column), justify="right", no_wrap=True)
    for period, row in frame.iterrows():
        levels.add_row(_format_metric(period), *(_format_metric(v) for v in row.to_numpy()))
    console.print(levels)

    if result.goodness is not None:
        gof = Table(title="Goodness of Fit")
        gof.add_column("Metric")
        gof.add_column("Value", justify="right")
        for name, value in result.goodness.to_dict().items():
            gof.add_row(name, _format_metric(value))
        console.print(gof)


@app.command("fit-distribution")
def fit_distribution_command(  # noqa: B008
    csv_file: Path = CSV_ARGUMENT,
    column: str | None = COLUMN_OPTION,
    family: str = FAMILY_OPTION,
    method: str = METHOD_OPTION,
    periods: list[float] | None = PERIOD_OPTION,
    ci: bool = CI_OPTION,
    resamples: int = RESAMPLES_OPTION,
    level: float = LEVEL_OPTION,
    seed: int | None = SEED_OPTION,
    workers: int = WORKERS_OPTION,
) -> None:
    """Fit a distribution to one column of annual maxima."""
    data = pd.read_csv(csv_file, index_col=0)
    try:
        name = column if column is not None else data.columns[0]
        sample = data[name].dropna().to_numpy(dtype=float)
        bootstrap = (
            BootstrapConfig(
                resamples=resamples, confidence_level=level, workers=workers, random_state=seed
            )
            if ci
            else None
        )
        result = fit_distribution(
            sample,
            family,
            method,
            tuple(periods) if periods else DEFAULT_RETURN_PERIODS,
            bootstrap=bootstrap,
        )
    except (KeyError, ValueError, IndexError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    _print_distribution_fit(result)


def _print_idf_fit(result: IDFFitResult) -> None:
    frame = result.to_frame()
    table = Table(title="IDF Coefficients  I = A / (B + D)^C", expand=True)
    table.add_column("T", justify="right", no_wrap=True)
    for column in frame.columns:
        table.add_column(str(column), justify="right", no_wrap=True)
    for period, row in frame.iterrows():
        table.add_row(_format_metric(period), *(_format_metric(v) for v in row.to_numpy()))
    console.print(table)
    for period, message in result.failures.items():
        console.print(f"[yellow]T={_format_metric(period)} skipped:[/yellow] {message}")


@app.command("fit-idf")
def fit_idf_command(  # noqa: B008
    csv_file: Path = CSV_ARGUMENT,
    family: str | None = IDF_FAMILY_OPTION,
    method: str = METHOD_OPTION,
    periods: list[float] | None = PERIOD_OPTION,
    level: float = LEVEL_OPTION,
) -> None:
    """Fit IDF curves to a duration x return-period intensity table.

    With ``--family`` the CSV instead holds annual maxima (one column per
    duration) and the intensity table is built from per-duration fits.
    """
    data = pd.read_csv(csv_file, index_col=0)
    try:
        if family is None:
            result = fit_idf(
                data,
                return_periods=tuple(periods) if periods else None,
                confidence_level=level,
            )
        else:
            curves = build_idf_curves(
                data,
                family,
                method,
                tuple(periods) if periods else DEFAULT_RETURN_PERIODS,
                confidence_level=level,
            )
            for duration, message in curves.failures.items():
                console.print(f"[yellow]D={_format_metric(duration)} skipped:[/yellow] {message}")
            result = curves.idf
    except (KeyError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    _print_idf_fit(result)


def main_entry() -> None:
    app()


def main() -> None:  # pragma: no cover - console entry
    main_entry()
