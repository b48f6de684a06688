"""
Command-line interface for the tool version tracker.

Provides commands for fetching the latest tool versions and inspecting
the registry and the persisted version document.
"""

import logging
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

# Load environment variables from .env file (if it exists)
load_dotenv()

from . import __version__
from .config import config
from .exceptions import ConfigError, PersistenceFailure, RegistryError
from .fetcher import STATUS_CARRIED, STATUS_FAILED, STATUS_FETCHED, run_pipeline
from .persister import load_version_document
from .sources.registry import get_tool_sources, is_supported

# Configure logging
logging.basicConfig(
    level=config.get("logging.level", "INFO"),
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)

STATUS_STYLES = {
    STATUS_FETCHED: ("✓", "green"),
    STATUS_CARRIED: ("~", "yellow"),
    STATUS_FAILED: ("✗", "red"),
}


def setup_file_logging() -> None:
    """Set up file logging if enabled."""
    if config.get("logging.file_enabled", False):
        log_file = config.logs_dir / "toolversions.log"
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(config.get("logging.format")))
        logging.getLogger().addHandler(file_handler)


@click.group()
@click.version_option(version=__version__, prog_name="toolversions")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """Tool Versions - Track the latest releases of DevOps tools."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    setup_file_logging()


@cli.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: configured path or TOOLVERSIONS_OUTPUT_PATH)",
)
@click.option(
    "--carry-forward/--drop-on-failure",
    default=None,
    help="Keep the previous version of tools whose fetch fails",
)
@click.option("-c", "--concurrency", type=click.IntRange(min=1), help="Maximum simultaneous requests")
def fetch(output: Optional[Path], carry_forward: Optional[bool], concurrency: Optional[int]) -> None:
    """
    Fetch the latest version of every tracked tool and save them.

    Individual tool failures are reported but do not fail the command.
    """
    try:
        result = run_pipeline(output_path=output, carry_forward=carry_forward, max_concurrency=concurrency)
    except (RegistryError, ConfigError) as e:
        raise click.ClickException(str(e)) from e
    except PersistenceFailure as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1) from e

    for outcome in result.outcomes:
        symbol, color = STATUS_STYLES.get(outcome.status, ("⚠", "yellow"))
        if outcome.status == STATUS_FETCHED:
            line = f"{symbol} {outcome.tool_id}: {outcome.version}"
        elif outcome.status == STATUS_CARRIED:
            line = f"{symbol} {outcome.tool_id}: {outcome.version} (kept, {outcome.error})"
        elif outcome.status == STATUS_FAILED:
            line = f"{symbol} {outcome.tool_id}: {outcome.error}"
        else:
            line = f"{symbol} Skipping {outcome.tool_id} ({outcome.error})"
        click.echo(click.style(line, fg=color))

    click.echo()
    click.echo(click.style(str(result), fg="green" if result.failed == 0 else "yellow"))
    click.echo(f"Saved tool versions to {output or config.output_path}")


@cli.command()
def sources() -> None:
    """List the tracked tools and their version sources."""
    try:
        tool_sources = get_tool_sources(config)
    except RegistryError as e:
        raise click.ClickException(str(e))

    for source in tool_sources:
        supported = is_supported(source.source_type)
        status = click.style("supported", fg="green") if supported else click.style("not implemented", fg="yellow")
        click.echo(f"{source.id:<15} {source.source_type.value:<15} {source.locator}  [{status}]")


@cli.command()
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Version document to read (default: configured path)",
)
def show(output: Optional[Path]) -> None:
    """Show the currently saved tool versions."""
    path = output or config.output_path
    versions = load_version_document(path)
    if not versions:
        click.echo(f"No tool versions saved at {path}")
        return

    for tool_id in sorted(versions):
        info = versions[tool_id]
        date = info.release_date or "unknown date"
        click.echo(f"{tool_id:<15} {info.version:<20} {date}")
        if info.url:
            click.echo(f"{'':<15} {info.url}")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
