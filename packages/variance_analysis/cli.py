# ruff: noqa: I001
"""CLI for the ``variance_analysis`` package.

A Typer console interface around :func:`variance_analysis.api.analyze_csv`.
Environment variables (notably ``ANTHROPIC_API_KEY``) are loaded from a local
``.env`` with ``python-dotenv`` before any command runs; business logic lives
in ``variance_analysis.api`` and the stage modules.
"""

from __future__ import annotations

import csv
import json
import os
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from typer.models import OptionInfo

from .aggregation import group_drivers_by_category
from .commentary import format_amount, format_percent, format_variance
from .logging_setup import configure_logging
from .models import (
    AnalysisConfig,
    AnalysisResult,
    CommentaryMode,
    EnhancementSettings,
    MarketScope,
    Severity,
    SourceKind,
)

console = Console()
err_console = Console(stderr=True)


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_concurrency() -> int:
    """Resolve enhancement concurrency from ``VARIANCE_ANALYSIS_CONCURRENCY``.

    Caps to 16 to stay gentle on API rate limits and falls back to the
    settings default when unset or invalid.
    """

    env_val = os.getenv("VARIANCE_ANALYSIS_CONCURRENCY")
    try:
        workers = int(env_val) if env_val else None
    except ValueError:
        workers = None
    if workers is not None and workers > 0:
        return min(workers, 16)
    return EnhancementSettings().concurrency


def build_config(
    *,
    market: str,
    commentary: str,
    comments: int,
    model: str | None,
) -> AnalysisConfig:
    """Translate CLI option values into an :class:`AnalysisConfig`.

    Raises ``ValueError`` for unknown market or commentary selectors.
    """

    try:
        mode = CommentaryMode(commentary.strip().lower())
    except ValueError:
        raise ValueError(
            f"unknown commentary mode: {commentary!r} (expected ai, factual or none)"
        ) from None
    enhancement = EnhancementSettings(
        model=model or os.getenv("VARIANCE_ANALYSIS_MODEL") or EnhancementSettings().model,
        concurrency=_resolve_concurrency(),
    )
    return AnalysisConfig(
        market_scope=MarketScope.parse(market),
        comment_count=comments,
        commentary_mode=mode,
        enhancement=enhancement,
    )


def _severity_style(severity: Severity) -> str:
    return "red" if severity is Severity.UNFAVORABLE else "green"


def _variance_style(variance: float) -> str:
    return "red" if variance >= 0 else "green"


def _styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


def render_report(result: AnalysisResult, out: Console) -> None:
    """Print the category table, driver breakdown and commentary.

    Every value read from the export is markup-escaped before it reaches rich.
    """

    totals = result.totals
    out.print(
        f"[bold]Spend variance[/bold] ({result.market_scope}) "
        f"rows={result.row_count} in_scope={result.filtered_row_count}"
    )
    out.print(
        f"Prior {format_amount(totals.prior_amount)}  "
        f"Current {format_amount(totals.current_amount)}  Variance "
        + _styled(
            f"{format_variance(totals.variance_amount)} "
            f"({format_percent(totals.variance_percent)})",
            _variance_style(totals.variance_amount),
        )
    )

    table = Table(title="Variance by Spend Category")
    table.add_column("Spend Category")
    table.add_column("Prior", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Variance ($)", justify="right")
    table.add_column("Variance (%)", justify="right")
    for c in result.categories:
        style = _variance_style(c.variance_amount)
        table.add_row(
            escape(c.name),
            format_amount(c.prior_amount),
            format_amount(c.current_amount),
            _styled(format_variance(c.variance_amount), style),
            _styled(format_percent(c.variance_percent), style),
        )
    out.print(table)

    drivers = Table(title="Variance Drivers")
    drivers.add_column("Category / Cost Center")
    drivers.add_column("Supplier")
    drivers.add_column("Department")
    drivers.add_column("Variance", justify="right")
    for category, group in group_drivers_by_category(result.drivers):
        group_total = sum(d.variance_amount for d in group)
        drivers.add_row(
            f"[bold]{escape(category)}[/bold] ({len(group)})",
            "",
            "",
            _styled(format_variance(group_total), _variance_style(group_total)),
        )
        for d in group:
            drivers.add_row(
                f"  {escape(d.cost_center)}",
                escape(d.supplier),
                escape(d.department or "-"),
                _styled(format_variance(d.variance_amount), _variance_style(d.variance_amount)),
            )
    out.print(drivers)

    if not result.commentary:
        return
    out.print("[bold]Commentary[/bold]")
    for item in result.commentary:
        title = _styled(escape(item.title), _severity_style(item.severity))
        out.print(f"{title} [dim]({item.source_kind})[/dim]")
        out.print(f"  {escape(item.factual_sentence)}")
        if item.source_kind is SourceKind.FACTUAL_PLUS_NARRATIVE and item.narrative_sentence:
            out.print(f"  {escape(item.narrative_sentence)}")


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Spend variance analysis from a CSV export, with optional narrative commentary "
        "from the Anthropic Messages API. Loads ANTHROPIC_API_KEY from a local .env."
    ),
)

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults).
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--csv-path",
    help="Path to a spend export CSV",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


@app.command("analyze")
def analyze_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    market: str = typer.Option("all", help="Market scope: all, jp or non-jp."),
    commentary: str = typer.Option("ai", help="Commentary mode: ai, factual or none."),
    comments: int = typer.Option(3, min=1, help="Maximum number of commentary items."),
    model: str | None = typer.Option(
        None, help="Override the model (falls back to VARIANCE_ANALYSIS_MODEL)."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result bundle as JSON."),
) -> None:
    """Aggregate a spend export and print variance figures and commentary."""

    from .api import analyze_csv

    try:
        config = build_config(market=market, commentary=commentary, comments=comments, model=model)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if config.commentary_mode is CommentaryMode.AI and not os.getenv("ANTHROPIC_API_KEY"):
        err_console.print(
            "[yellow]ANTHROPIC_API_KEY is not set; falling back to factual commentary.[/yellow]"
        )
        config = config.model_copy(update={"commentary_mode": CommentaryMode.FACTUAL})

    try:
        result = analyze_csv(csv_path, config)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {escape(str(csv_path))}")
        raise typer.Exit(1) from None
    except PermissionError:
        err_console.print(f"[red]Error:[/red] Permission denied: {escape(str(csv_path))}")
        raise typer.Exit(1) from None
    except (csv.Error, UnicodeDecodeError, TypeError) as e:
        err_console.print(f"[red]Error:[/red] Failed to parse CSV: {escape(str(e))}")
        raise typer.Exit(1) from e

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_report(result, console)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    *,
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to VARIANCE_ANALYSIS_LOG_LEVEL, then WARNING)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding
    variables already set) and configures package logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    app()
