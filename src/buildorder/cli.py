"""
buildorder CLI - Command Line Interface for CoH3 build orders

Provides commands for:
- Enriching decoded replay JSON with unit and building names
- Resolving single blueprint ids
- Listing command filter presets
- Generating a default configuration file
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from buildorder import __version__
from buildorder.commands.filters import filter_from_settings
from buildorder.commands.taxonomy import FILTER_PRESETS, definition_of
from buildorder.core.config import generate_default_config, load_config, setup_logging
from buildorder.core.errors import ConfigError, FilterConfigError, ReferenceDataError, ReplayFormatError
from buildorder.core.models import Player, load_replay
from buildorder.entity.tracker import format_timestamp
from buildorder.lookup.resolver import BlueprintResolver, parse_pbgid
from buildorder.pipeline.enrichment import EnrichmentPipeline

app = typer.Typer(
    name="buildorder",
    help="Company of Heroes 3 build orders from decoded replays",
    add_completion=False,
)
console = Console()

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

_state = {"verbose": False}


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]buildorder[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable verbose output"),
) -> None:
    """buildorder - CoH3 replay build order enrichment"""
    _state["verbose"] = verbose
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def enrich(
    replay_path: Path = typer.Argument(
        ...,
        help="Decoded replay JSON produced by the replay decoder",
        exists=True,
        dir_okay=False,
        resolve_path=True,
    ),
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Directory holding sbps.json, ebps.json and locales/ (overrides config)",
    ),
    preset: Optional[list[str]] = typer.Option(
        None, "--preset", "-p", help="Filter preset to include (repeatable)"
    ),
    kind: Optional[list[str]] = typer.Option(
        None, "--kind", "-k", help="Command kind to include (repeatable)"
    ),
    category: Optional[list[str]] = typer.Option(
        None, "--category", "-c", help="Command category to include (repeatable)"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the enriched replay JSON to this file"
    ),
    no_tracking: bool = typer.Option(
        False, "--no-tracking", help="Disable building inference from production activity"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", help="Configuration file (.yaml, .toml or .json)"
    ),
) -> None:
    """
    Enrich a decoded replay and show each player's build order.

    Filter options replace the configured filter; with no filter anywhere
    the build preset is used.
    """
    try:
        config = load_config(config_file)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if _state["verbose"]:
        config.logging.level = "DEBUG"
    setup_logging(config.logging)

    if data_dir is not None:
        config.data.data_dir = str(data_dir)
    if no_tracking:
        config.tracking.enabled = False
    if preset or kind or category:
        config.filter.presets = list(preset or [])
        config.filter.kinds = list(kind or [])
        config.filter.categories = list(category or [])

    try:
        command_filter = filter_from_settings(
            config.filter.presets, config.filter.kinds, config.filter.categories
        )
        replay = load_replay(replay_path)
    except (FilterConfigError, ReplayFormatError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    pipeline = EnrichmentPipeline.from_config(config, command_filter=command_filter)
    if pipeline.is_passthrough:
        console.print(
            f"[yellow]Warning:[/yellow] no reference data in {config.data.data_dir}; names are not resolved"
        )
    pipeline.enrich_replay(replay)

    info_table = Table(title="Replay Information", show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")
    info_table.add_row("Map", replay.map_name or "-")
    info_table.add_row("Duration", replay.duration_str)
    info_table.add_row("Players", str(len(replay.players)))
    info_table.add_row("Filter", ", ".join(k.value for k in pipeline.command_filter.included_kinds()))
    console.print(info_table)
    console.print()

    for player in replay.players:
        _display_build_order(player)

    if output:
        output.write_text(json.dumps(replay.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"\n[green]Enriched replay written to:[/green] {output}")


def _display_build_order(player: Player) -> None:
    """Display one player's filtered build order."""
    table = Table(title=f"{player.player_name or player.player_id} ({player.faction_name})")
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Command", style="magenta")
    table.add_column("Name", style="green")

    for cmd in player.build_commands:
        name = cmd.building_name or cmd.unit_name or ""
        table.add_row(format_timestamp(cmd.timestamp), cmd.command_type or cmd.command_kind.value, name)

    if not player.build_commands:
        console.print(f"[yellow]{player.player_name or player.player_id}: no commands pass the filter[/yellow]")
        return
    console.print(table)


@app.command()
def resolve(
    pbgid: str = typer.Argument(..., help="Blueprint id (PBGID) to look up"),
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", "-d", help="Reference data directory"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Configuration file"),
) -> None:
    """
    Look up a single blueprint id.

    Searches squads, then entities, then the battlegroup and upgrade tables.
    """
    if parse_pbgid(pbgid) is None:
        console.print(f"[red]Error:[/red] {pbgid!r} is not a valid blueprint id")
        raise typer.Exit(1)

    try:
        config = load_config(config_file)
        directory = data_dir or Path(config.data.data_dir)
        resolver = BlueprintResolver.from_directory(directory, config.data.locale)
    except (ConfigError, ReferenceDataError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    info = resolver.resolve(pbgid)
    if info is not None:
        lines = [
            f"[cyan]Name:[/cyan] {info.name}",
            f"[cyan]Faction:[/cyan] {info.faction}",
            f"[cyan]Category:[/cyan] {info.category}",
        ]
        if info.description:
            lines.append(f"[cyan]Description:[/cyan] {info.description}")
        console.print(Panel("\n".join(lines), title=f"[bold blue]Blueprint {pbgid}[/bold blue]", expand=False))
        return

    battlegroup = resolver.battlegroup_name(pbgid)
    upgrade = resolver.upgrade_name(pbgid)
    if battlegroup:
        console.print(f"[cyan]Battlegroup:[/cyan] {battlegroup}")
    if upgrade:
        console.print(f"[cyan]Upgrade:[/cyan] {upgrade}")
    if not battlegroup and not upgrade:
        console.print(f"[yellow]No blueprint found for {pbgid}[/yellow]")
        raise typer.Exit(1)


@app.command()
def presets() -> None:
    """List the command filter presets."""
    table = Table(title="Filter Presets")
    table.add_column("Preset", style="cyan")
    table.add_column("Description")
    table.add_column("Command kinds", style="green")

    for name, p in FILTER_PRESETS.items():
        table.add_row(name, p.description, ", ".join(k.value for k in p.include))
    console.print(table)

    kinds = Table(title="Command Kinds")
    kinds.add_column("Kind", style="cyan")
    kinds.add_column("Category", style="magenta")
    kinds.add_column("Description")
    for name in FILTER_PRESETS["all"].include:
        d = definition_of(name)
        kinds.add_row(d.kind.value, d.category.value, d.description)
    console.print(kinds)


@app.command("init-config")
def init_config(
    path: Path = typer.Argument(..., help="Where to write the config (.yaml, .yml or .json)"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file"),
) -> None:
    """Write a default configuration file."""
    if path.exists() and not force:
        console.print(f"[red]Error:[/red] {path} already exists (use --force to overwrite)")
        raise typer.Exit(1)
    try:
        generate_default_config(path)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    console.print(f"[green]Default configuration written to:[/green] {path}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
