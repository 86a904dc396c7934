"""Typer CLI for the k6 load-testing service.

Commands:
  summarize  Summarise a k6 JSON output file
  script     Print the k6 script generated for a test config
  run        Run k6 for a test config and store the summary
  serve      Start the HTTP API
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path  # noqa: TC003 Typer evaluates type hints at runtime
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from loadtest.config import LoadTestSettings
from loadtest.models import TestConfig
from loadtest.runner import K6Runner
from loadtest.script import generate_k6_script
from loadtest.storage import ResultStore
from loadtest_core.aggregator import summarize_file
from loadtest_core.models import SummaryResult  # noqa: TC001

app = typer.Typer(
    name="loadtest",
    help="Run k6 load tests and summarise their results",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """k6 load-test runner and summariser."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(path: Path) -> TestConfig:
    if not path.exists():
        console.print(f"[red]Config not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return TestConfig.model_validate_json(path.read_bytes())
    except ValidationError as exc:
        console.print(f"[red]Invalid test config {path}:[/red]\n{exc}")
        raise typer.Exit(1) from None


def _summary_table(summary: SummaryResult, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Total requests", str(summary.total_requests))
    table.add_row("Requests/sec", str(summary.total_requests_rate))
    table.add_row("Failed (checks)", str(summary.failed_count))
    table.add_row("Failed (transport)", str(summary.transport_failed_count))
    table.add_row("Succeeded", str(summary.success_count))
    table.add_row("Error rate", f"{summary.error_rate}%")
    table.add_row("Success rate", f"{summary.success_rate}%")
    table.add_row("Avg duration", f"{summary.avg_duration} ms")
    table.add_row("Min / max", f"{summary.min_duration} / {summary.max_duration} ms")
    table.add_row("p50 / p95 / p99", f"{summary.p50} / {summary.p95} / {summary.p99} ms")
    table.add_row("TTFB", f"{summary.ttfb} ms")
    for code, count in sorted(summary.status_codes.items()):
        table.add_row(f"HTTP {code}", str(count))
    return table


@app.command()
def summarize(
    result_file: Annotated[Path, typer.Argument(help="k6 --out json file")],
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Summarise a k6 JSON output file."""
    if not result_file.exists():
        console.print(f"[red]File not found: {result_file}[/red]")
        raise typer.Exit(1)

    summary = summarize_file(result_file, routing=LoadTestSettings().routing)
    if format == "json":
        typer.echo(summary.model_dump_json(by_alias=True, indent=2))
    else:
        console.print(_summary_table(summary, result_file.name))


@app.command()
def script(
    config_file: Annotated[Path, typer.Argument(help="Test config JSON")],
) -> None:
    """Print the k6 script generated for a test config."""
    typer.echo(generate_k6_script(_load_config(config_file)), nl=False)


@app.command()
def run(
    config_file: Annotated[Path, typer.Argument(help="Test config JSON")],
) -> None:
    """Run k6 for a test config and store the summary."""
    settings = LoadTestSettings()
    store = ResultStore(results_dir=settings.results_dir, scripts_dir=settings.scripts_dir)
    store.ensure_dirs()
    runner = K6Runner(settings, store)

    config = _load_config(config_file)
    test_id = runner.prepare(config)
    console.print(f"Running test [bold]{test_id}[/bold] against {config.url}")

    stored = asyncio.run(runner.execute(test_id, config))
    if stored is None:
        console.print("[red]No summary produced; see log output[/red]")
        raise typer.Exit(1)

    console.print(_summary_table(stored.result(), f"Test {test_id}"))
    console.print(f"[green]✓[/green] Summary saved to {store.summary_path(test_id)}")


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address")] = None,
    port: Annotated[int | None, typer.Option(help="Bind port")] = None,
) -> None:
    """Start the HTTP API."""
    import uvicorn

    from loadtest.api import create_app

    settings = LoadTestSettings()
    console.print(
        f"k6 Load Testing Server running on http://{host or settings.host}:{port or settings.port}"
    )
    uvicorn.run(create_app(settings), host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":
    app()
