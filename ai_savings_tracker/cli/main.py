"""
CLI interface for AI Savings Tracker.

Provides command-line access to savings reports and runtime configuration.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler

from ai_savings_tracker.config.loader import (
    ProviderSettings,
    TrackerPaths,
    write_default_pricing_config,
)
from ai_savings_tracker.core.merge import build_provider_patch
from ai_savings_tracker.core.report import render_text_report, report_to_dict
from ai_savings_tracker.core.savings import generate_savings_report
from ai_savings_tracker.storage.config_store import apply_config_patch

app = typer.Typer()
console = Console()
err_console = Console(stderr=True)

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging to stderr so report output stays parseable."""
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _paths(ctx: typer.Context) -> TrackerPaths:
    if isinstance(ctx.obj, TrackerPaths):
        return ctx.obj
    return TrackerPaths.from_env()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        help="Agent runtime home directory (default: $AI_SAVINGS_HOME or ~/.openclaw)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress"),
    debug: bool = typer.Option(False, "--debug", help="Log skipped files and lines"),
):
    """AI Savings Tracker CLI."""
    setup_logging(verbose=verbose, debug=debug)
    ctx.obj = TrackerPaths(home.expanduser()) if home else TrackerPaths.from_env()
    if ctx.invoked_subcommand is None:
        console.print("AI Savings Tracker - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Create the savings pricing file if it doesn't exist."""
    paths = _paths(ctx)
    try:
        if write_default_pricing_config(paths.pricing_path):
            console.print(f"[green]✓[/] Savings pricing written to {paths.pricing_path}")
        else:
            console.print(f"[green]✓[/] Savings pricing already present at {paths.pricing_path}")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error writing pricing file:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def report(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print a machine-readable JSON report"
    )
):
    """
    Report token usage and savings since the last report.

    Each run scans only session log entries recorded after the previous
    run and adds them to the lifetime totals.
    """
    paths = _paths(ctx)
    try:
        result = generate_savings_report(paths)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if json_output:
        typer.echo(json.dumps(report_to_dict(result), indent=2))
    else:
        console.print()
        console.print(render_text_report(result), markup=False, highlight=False)
        console.print()
    sys.exit(EXIT_CODE_PASS)


@app.command()
def configure(
    ctx: typer.Context,
    api_key: str = typer.Option(
        ...,
        "--api-key",
        "-k",
        envvar="AI_SAVINGS_API_KEY",
        help="API key for the provider"
    ),
    provider_id: str = typer.Option(
        "sansa-ai",
        "--provider-id",
        help="Provider identifier in the runtime config"
    ),
    base_url: str = typer.Option(
        "https://api.sansaml.com/v1",
        "--base-url",
        help="Provider API base URL"
    ),
    model_id: str = typer.Option(
        "sansa-auto",
        "--model",
        "-m",
        help="Model to make the default"
    ),
    alias: str = typer.Option(
        "Sansa",
        "--alias",
        help="Display alias for the default model"
    )
):
    """
    Register the provider in the runtime config and make its model the default.

    Unrelated config keys are preserved and the previous file is backed up.
    """
    paths = _paths(ctx)
    try:
        settings = ProviderSettings(
            api_key=api_key.strip(),
            provider_id=provider_id,
            base_url=base_url,
            model_id=model_id,
            model_name=f"{model_id} (Custom Provider)",
            alias=alias
        )
        outcome = apply_config_patch(paths.config_path, build_provider_patch(settings))
        console.print(f"[green]✓[/] Provider configured in {paths.config_path}")
        if outcome.backup_path:
            console.print(f"  Previous config saved to {outcome.backup_path}")

        write_default_pricing_config(paths.pricing_path)
        console.print("[green]✓[/] Savings pricing ready")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def merge(
    ctx: typer.Context,
    patch_file: Path = typer.Argument(..., help="YAML or JSON patch document"),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file to patch (default: <home>/openclaw.json)"
    )
):
    """Deep-merge a patch document into the runtime config, with a backup."""
    config_path = config or _paths(ctx).config_path
    try:
        with open(patch_file, 'r', encoding='utf-8') as f:
            patch = yaml.safe_load(f)
        if not isinstance(patch, dict):
            raise ValueError("Patch document must contain a mapping")

        outcome = apply_config_patch(config_path, patch)
        console.print(f"[green]✓[/] Merged {patch_file} into {config_path}")
        if outcome.backup_path:
            console.print(f"  Previous config saved to {outcome.backup_path}")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


if __name__ == "__main__":
    app()
