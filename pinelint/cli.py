"""pinelint CLI - lint Pine strategies, scaffold new ones, validate manifests."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich.console import Console

from pinelint.services.config import resolve_config
from pinelint.services.discovery import resolve_paths
from pinelint.services.manifest import validate_strategies
from pinelint.services.pine_lint import PineLinter
from pinelint.services.scaffold import create_strategy
from pinelint.utils.errors import ScaffoldError
from pinelint.utils.formatting import format_json, format_text

app = typer.Typer(
    name="pinelint",
    help="Static checks for Pine Script trading strategies.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

# Summaries go to stderr so text/JSON findings on stdout stay machine-readable
console = Console(stderr=True)

_FORMATS = ("text", "json")


@app.callback()
def callback(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level: debug|info|warning|error"),
    ] = os.getenv("PINELINT_LOG_LEVEL", "warning"),
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-V", help="Enable verbose logging"),
    ] = False,
) -> None:
    """pinelint - Pine Script linter and strategy tooling."""
    effective_level = "debug" if verbose else log_level
    level = getattr(logging, effective_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def lint(
    patterns: Annotated[
        List[str],
        typer.Argument(help="Files or glob patterns, e.g. 'strategies/**/*.pine'"),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (text, json)"),
    ] = "text",
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Override file (.json/.yaml)"),
    ] = None,
    root: Annotated[
        Path,
        typer.Option("--root", help="Directory globs and .pinelintrc are resolved from"),
    ] = Path("."),
) -> None:
    """Lint Pine Script files. Exits 1 when any file has an ERROR finding.

    Examples
    --------
    pinelint lint strategies/es-orb/strategy.pine
    pinelint lint "strategies/**/*.pine" --format json
    """
    if output_format not in _FORMATS:
        console.print(f"[red]Invalid format '{output_format}'.[/red] Choose from: text, json")
        raise typer.Exit(2)

    config, warnings = resolve_config(root, config_path)
    for warning in warnings:
        console.print(f"[yellow]config:[/yellow] {warning}")

    files = resolve_paths(patterns, root)
    if not files:
        console.print("[yellow]No files matched.[/yellow]")
        return

    run = PineLinter(config).lint_paths(files)

    if output_format == "json":
        typer.echo(format_json(run.reports))
    else:
        text = format_text(run.reports)
        if text:
            typer.echo(text)
        console.print(
            f"[bold]{len(run.reports)} file(s)[/bold]  "
            f"[red]{run.total_errors} error(s)[/red]  "
            f"[yellow]{run.total_warnings} warning(s)[/yellow]"
        )

    if not run.passed:
        raise typer.Exit(1)


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Strategy name: lowercase letters, digits, hyphens")],
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing files")] = False,
    root: Annotated[Path, typer.Option("--root", help="Project root")] = Path("."),
) -> None:
    """Scaffold strategies/<name>/ with strategy.pine, manifest.json and README.md."""
    try:
        strategy_dir = create_strategy(name, root, force=force)
    except ScaffoldError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]Created[/green] {strategy_dir}")
    console.print("Next steps:")
    console.print(f"- Edit {strategy_dir / 'strategy.pine'} to add your custom signals.")
    console.print(f"- Update {strategy_dir / 'manifest.json'} with live symbols/timeframes.")
    console.print("- Run pinelint lint and pinelint manifests to validate.")


@app.command()
def manifests(
    root: Annotated[Path, typer.Option("--root", help="Project root containing strategies/")] = Path("."),
) -> None:
    """Validate manifest.json, README.md and strategy.pine in every strategy directory."""
    failures = validate_strategies(root)
    if failures:
        for name, errors in failures.items():
            console.print(f"[red]Strategy {name} manifest validation failed:[/red]")
            for err in errors:
                console.print(f"  - {err}")
        raise typer.Exit(1)
    console.print("[green]All strategy manifests are valid.[/green]")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port")] = int(os.getenv("PORT", 3000)),
) -> None:
    """Run the HTTP/WebSocket lint service."""
    import uvicorn

    uvicorn.run("pinelint.server:app", host=host, port=port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
