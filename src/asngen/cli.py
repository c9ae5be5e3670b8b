"""
ASN generator command line.

Generate ASNs, inspect registration statistics and bump counters after a
backup restore without going through the web API.
"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from asngen.app import App
from asngen.config import Config
from asngen.core.modules.asn.format import get_format_description
from asngen.errors import ConfigurationDriftError, UserError
from asngen.logging import setup_logging

T = TypeVar("T")

app = typer.Typer(
    name="asngen",
    help="Generate alphanumeric serial numbers (ASNs)",
    no_args_is_help=True,
)

console = Console()


def _load_config() -> Config:
    config = Config()
    setup_logging(config.debug)
    return config


def _run(operation: Callable[[App], Awaitable[T]]) -> T:
    """Run `operation` against a started App and exit cleanly on user errors."""
    config = _load_config()

    async def runner() -> T:
        asn_app = App(config)
        async with asn_app.lifespan():
            return await operation(asn_app)

    try:
        return asyncio.run(runner())
    except (UserError, ConfigurationDriftError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def serve() -> None:
    """Start the web API."""
    from asngen.web.runner import run_server  # noqa: PLC0415

    config = _load_config()
    run_server(App(config), config)


@app.command()
def generate(
    count: int = typer.Option(1, "--count", "-c", min=1, help="Number of ASNs to generate"),
    namespace: int | None = typer.Option(None, "--namespace", "-n", help="Managed namespace to generate in"),
    json_output: bool = typer.Option(False, "--json", help="Output ASNs as JSON"),
) -> None:
    """
    Generate one or more ASNs.

    Examples:
        asngen generate                 # One ASN in an automatically chosen namespace
        asngen generate -c 10           # Ten ASNs
        asngen generate -n 955          # One ASN in additional managed namespace 955
    """
    metadata: dict[str, Any] = {"client": "cli"}

    async def operation(asn_app: App) -> list[Any]:
        if namespace is not None:
            return [await asn_app.generate_asn(metadata, namespace) for _ in range(count)]
        return await asn_app.generate_asns(count, metadata)

    generated = _run(operation)
    if json_output:
        console.print_json(json.dumps([item.model_dump() for item in generated]))
        return
    for item in generated:
        console.print(item.asn)


@app.command()
def stats(
    namespace: int | None = typer.Option(None, "--namespace", "-n", help="Only show this namespace"),
) -> None:
    """Show timing statistics between registrations."""
    all_stats = _run(lambda asn_app: asn_app.get_stats(namespace))

    table = Table(title="Registration statistics")
    table.add_column("Namespace", justify="right", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Avg gap (ms)", justify="right")
    table.add_column("SD (ms)", justify="right")
    table.add_column("Min (ms)", justify="right")
    table.add_column("Max (ms)", justify="right")
    for item in all_stats:
        table.add_row(
            str(item.namespace),
            str(item.count),
            f"{item.avg:.5g}",
            f"{item.sd:.5g}",
            f"{item.min:.5g}",
            f"{item.max:.5g}",
        )
    console.print(table)


@app.command("recommend-bump")
def recommend_bump(
    hours: float = typer.Option(..., "--hours", min=0, help="Hours between the backup and now"),
    sigma: float = typer.Option(3, "--sigma", help="Confidence in standard deviations"),
    namespace: int | None = typer.Option(None, "--namespace", "-n", help="Only consider this namespace"),
) -> None:
    """Suggest a bump delta for a restored backup."""
    recommendation = _run(lambda asn_app: asn_app.recommend_bump(hours, sigma, namespace))
    console.print(
        f"Highest hourly rate at {recommendation.sigma:g} sigma: [bold]{recommendation.hourly_rate:.2f}[/bold]"
    )
    console.print(
        f"Recommended delta for {recommendation.hours:g}h: [bold green]{recommendation.delta_counter}[/bold green]"
    )
    console.print("[dim]Heuristic assuming normally distributed registration gaps.[/dim]")


@app.command()
def bump(
    delta: int = typer.Argument(..., min=1, help="Amount to advance the counters by"),
    namespace: int | None = typer.Option(None, "--namespace", "-n", help="Only bump this namespace"),
    bumped_by: str | None = typer.Option(None, "--by", help="Who performs the bump"),
    reason: str | None = typer.Option(None, "--reason", help="Why the bump is performed"),
) -> None:
    """
    Advance counters so no ASN handed out before a backup restore is reused.

    Examples:
        asngen bump 500 --reason "restored backup from monday"
        asngen bump 50 -n 955 --by alice
    """
    results = _run(lambda asn_app: asn_app.bump(delta, namespace, bumped_by, reason))

    table = Table(title=f"Bumped by {delta}")
    table.add_column("Namespace", justify="right", style="cyan")
    table.add_column("Previous counter", justify="right")
    table.add_column("Bump ASN")
    table.add_column("Next ASN", style="green")
    for result in results:
        table.add_row(str(result.namespace), str(result.previous_counter), result.asn.asn, result.next_asn)
    console.print(table)


@app.command("format")
def format_command() -> None:
    """Describe the configured ASN format."""
    console.print(get_format_description(_load_config()))
