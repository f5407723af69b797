"""
Roundsight CLI - Command Line Interface for Round-Level Performance Scoring

Provides commands for:
- Aggregated stats for a player over a match history
- Ability scores and role classification
- Full player profiles (JSON / CSV export)
- Re-rating every round of a match history
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from roundsight import __version__
from roundsight.core.config import LoggingConfig, RoundsightConfig, load_config
from roundsight.core.constants import SideFilter
from roundsight.core.schemas import HistoryEntry, load_history
from roundsight.analysis.rating import MatchRater, get_rating_style, get_rating_tier
from roundsight.engine import PerformanceEngine
from roundsight.export import (
    export_profiles_to_csv,
    export_to_json,
    profile_to_dict,
    stats_to_dict,
)

app = typer.Typer(
    name="roundsight",
    help="CS2 round-level performance reconstruction and scoring",
    add_completion=False,
)
console = Console()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format=LoggingConfig.format
)
logger = logging.getLogger(__name__)

HISTORY_ARGUMENT = typer.Argument(
    ...,
    help="JSON file with the match history: a list of {match, stats} entries",
    exists=True,
    dir_okay=False,
    resolve_path=True,
)
PLAYER_OPTION = typer.Option(..., "--player", "-p", help="Player id, Steam ID or display name")
SIDE_OPTION = typer.Option(SideFilter.ALL, "--side", "-s", help="Side filter: ALL, CT or T")


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Apply the configured level and format to the root logger."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else config.level)
    formatter = logging.Formatter(config.format)
    for handler in root.handlers:
        handler.setFormatter(formatter)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]Roundsight[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output"
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file (.yaml, .toml or .json)",
        dir_okay=False,
    ),
) -> None:
    """Roundsight - CS2 Round-Level Performance Scoring"""
    config = load_config(config_file)
    configure_logging(config.logging, verbose)
    ctx.obj = config


def _config(ctx: typer.Context) -> RoundsightConfig:
    return ctx.obj if isinstance(ctx.obj, RoundsightConfig) else RoundsightConfig()


def _load(path: Path) -> list[HistoryEntry]:
    """Read and validate a history file, exiting with a message on bad input."""
    try:
        payload = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Error reading {path.name}:[/red] {e}")
        raise typer.Exit(1)

    if isinstance(payload, dict):
        payload = [payload]

    try:
        history = load_history(payload)
    except ValidationError as e:
        console.print(f"[red]Invalid match history:[/red] {e.error_count()} validation error(s)")
        console.print(str(e))
        raise typer.Exit(1)

    logger.debug(f"Loaded {len(history)} matches from {path}")
    return history


def _rating_text(rating: float) -> str:
    style = get_rating_style(rating)
    return f"[{style}]{rating:.2f}[/{style}]"


@app.command()
def stats(
    ctx: typer.Context,
    history_file: Path = HISTORY_ARGUMENT,
    player: str = PLAYER_OPTION,
    side: SideFilter = SIDE_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show aggregated stats and derived rates for a player."""
    config = _config(ctx)
    engine = PerformanceEngine(config)
    result = engine.query_stats(player, _load(history_file), side)

    if as_json:
        console.print_json(
            export_to_json(
                stats_to_dict(result, config.export.float_precision),
                indent=config.export.json_indent,
            )
        )
        return

    table = Table(title=f"Stats: {player} ({side})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Rounds", str(result.rounds_played))
    table.add_row("K / D / A", f"{result.kills} / {result.deaths} / {result.assists}")
    table.add_row("Rating", _rating_text(result.rating))
    table.add_row("ADR", f"{result.adr:.1f}")
    table.add_row("KPR", f"{result.kpr:.2f}")
    table.add_row("K/D", f"{result.kd_ratio:.2f}")
    table.add_row("KAST", f"{result.kast_pct:.1f}%")
    table.add_row("WPA avg", f"{result.wpa_avg:.3f}")
    table.add_row("Multi-kill rate", f"{result.multi_kill_rate:.1f}%")
    console.print(table)


@app.command()
def scores(
    ctx: typer.Context,
    history_file: Path = HISTORY_ARGUMENT,
    player: str = PLAYER_OPTION,
    side: SideFilter = SIDE_OPTION,
) -> None:
    """Show the seven ability scores for a player."""
    engine = PerformanceEngine(_config(ctx))
    result = engine.query_scores(player, _load(history_file), side)

    table = Table(title=f"Ability Scores: {player} ({side})")
    table.add_column("Ability", style="cyan")
    table.add_column("Score", justify="right")
    for name, value in result.as_features().items():
        table.add_row(name.capitalize(), f"{value:.0f}")
    console.print(table)

    if result.is_utility_broken:
        console.print(
            "[yellow]Warning:[/yellow] flash telemetry looks incomplete, "
            "utility score excludes blind time"
        )


@app.command()
def role(
    ctx: typer.Context,
    history_file: Path = HISTORY_ARGUMENT,
    player: str = PLAYER_OPTION,
    side: SideFilter = SIDE_OPTION,
) -> None:
    """Classify a player's role archetype."""
    engine = PerformanceEngine(_config(ctx))
    history = _load(history_file)
    player_stats = engine.query_stats(player, history, side)
    archetype = engine.query_role(engine.score(player_stats), player_stats)

    console.print(
        Panel(
            archetype.description,
            title=f"[bold]{archetype.name}[/bold] ({archetype.category})",
            expand=False,
        )
    )


@app.command()
def profile(
    ctx: typer.Context,
    history_file: Path = HISTORY_ARGUMENT,
    player: str = PLAYER_OPTION,
    side: SideFilter = SIDE_OPTION,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file (format detected from extension: .json, .csv)"
    ),
) -> None:
    """Build the full player profile: ratings, rates, scores and role."""
    config = _config(ctx)
    engine = PerformanceEngine(config)
    result = engine.build_player_profile(player, _load(history_file), side)
    precision = config.export.float_precision

    if output is not None:
        suffix = output.suffix.lower()
        if suffix == ".csv":
            export_profiles_to_csv([result], output, precision)
        elif suffix == ".json":
            export_to_json(
                profile_to_dict(result, precision),
                output,
                indent=config.export.json_indent,
                include_metadata=True,
            )
        else:
            console.print(f"[red]Unsupported output format:[/red] {suffix}")
            raise typer.Exit(1)
        console.print(f"[green]Profile written to[/green] {output}")
        return

    overall = result.overall
    table = Table(title=f"Profile: {player} ({result.side_filter})", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Rating", f"{_rating_text(overall.rating)} ({get_rating_tier(overall.rating)})")
    table.add_row("CT / T rating", f"{overall.ct_rating:.2f} / {overall.t_rating:.2f}")
    table.add_row("Rounds", str(result.stats.rounds_played))
    table.add_row("ADR", f"{result.stats.adr:.1f}")
    table.add_row("KAST", f"{result.stats.kast_pct:.1f}%")
    for name, value in result.scores.as_features().items():
        table.add_row(name.capitalize(), f"{value:.0f}")
    table.add_row("Role", f"{result.role.name} ({result.role.category})")
    console.print(table)


@app.command()
def rate(
    ctx: typer.Context,
    history_file: Path = HISTORY_ARGUMENT,
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the re-rated history to this JSON file"
    ),
) -> None:
    """Recompute the per-round rating of every round in a match history."""
    config = _config(ctx)
    rater = MatchRater(config.rating)
    history = _load(history_file)

    rated = [
        entry.model_copy(update={"match": rater.rate_match(entry.match)}) for entry in history
    ]

    table = Table(title="Re-rated matches")
    table.add_column("Match", style="cyan")
    table.add_column("Map")
    table.add_column("Rounds", justify="right")
    for entry in rated:
        table.add_row(entry.match.id, entry.match.map_id or "-", str(len(entry.match.rounds)))
    console.print(table)

    if output is not None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in rated]
        output.write_text(json.dumps(payload, indent=config.export.json_indent))
        console.print(f"[green]Rated history written to[/green] {output}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
