"""Command line helpers for DraftForge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from .app import DraftApp
from .config import DraftForgeConfig
from .diagnostics import DraftSimulator
from .domain.resolver import AlgorithmPick, QueuedPick, SkippedPick
from .loaders import LeagueDefinition, load_league_from_json, validate_league_file

console = Console()


def run_preview() -> None:
    parser = argparse.ArgumentParser(description="DraftForge pick preview")
    parser.add_argument("league", help="Path to league JSON file")
    parser.add_argument("team", help="Team identifier to preview")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)
    sys.exit(asyncio.run(_preview(Path(args.league), args.team)))


def run_simulate() -> None:
    parser = argparse.ArgumentParser(description="DraftForge auto-draft simulator")
    parser.add_argument("league", help="Path to league JSON file")
    parser.add_argument("--picks", type=int, default=100, help="Maximum number of turns to simulate")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    _configure_logging(args.verbose)
    sys.exit(asyncio.run(_simulate(Path(args.league), args.picks)))


def run_validate() -> None:
    parser = argparse.ArgumentParser(description="DraftForge league validator")
    parser.add_argument("league", help="Path to league JSON file for validation")
    args = parser.parse_args()

    errors = validate_league_file(Path(args.league))
    if errors:
        console.print("League errors:", style="red")
        for err in errors:
            console.print(f"- {err}")
        sys.exit(1)
    console.print("League is valid ✅")


async def _preview(path: Path, team_id: str) -> int:
    app, league = await _bootstrap(path)
    try:
        if league.team(team_id) is None:
            console.print(f"Unknown team '{team_id}'.", style="red")
            return 1

        decision = await app.auto_draft.preview(team_id)
        balance = await app.pool_store.team_balance(team_id)
        console.print(f"[bold]{league.team(team_id).name}[/bold] balance: {balance}")
        if isinstance(decision, SkippedPick):
            console.print(f"Next pick would be skipped: {decision.reason}", style="yellow")
        elif isinstance(decision, QueuedPick):
            console.print(f"Next pick from queue: {decision.card.name} (cost {decision.card.cost})")
        elif isinstance(decision, AlgorithmPick):
            console.print(
                f"Next pick by auto-draft: {decision.card.name} (cost {decision.card.cost}, "
                f"{decision.details.selected_source})"
            )

        table = Table(show_header=True, header_style="bold")
        table.add_column("#")
        table.add_column("Card")
        table.add_column("Colors")
        table.add_column("Rating")
        table.add_column("Cost")
        table.add_column("Source")
        entries = await app.queues.materialized_queue(team_id, depth=app.config.draft.queue_preview_depth)
        for entry in entries:
            table.add_row(
                str(entry.position),
                entry.card.name,
                "".join(color.value for color in entry.card.colors) or "C",
                f"{entry.card.rating:g}",
                str(entry.card.cost),
                entry.source,
            )
        console.print(table)
        return 0
    finally:
        await app.close()


async def _simulate(path: Path, picks: int) -> int:
    app, league = await _bootstrap(path)
    try:
        result = await DraftSimulator(app).run(picks)
    finally:
        await app.close()

    console.print(f"Simulated {result.turns} turns: {len(result.picks)} picks, {len(result.skips)} skips.")
    table = Table(show_header=True, header_style="bold")
    table.add_column("Team")
    table.add_column("Picks")
    table.add_column("Spent")
    table.add_column("Cards")
    for team in league.teams:
        roster = result.roster(team.team_id)
        table.add_row(
            team.name,
            str(len(roster)),
            str(result.spent[team.team_id]),
            ", ".join(pick.card.name for pick in roster),
        )
    console.print(table)
    for source, count in sorted(result.sources.items()):
        console.print(f"  {source}: {count}")
    return 0


async def _bootstrap(path: Path) -> tuple[DraftApp, LeagueDefinition]:
    app = DraftApp(DraftForgeConfig.from_env())
    await app.init_backend()
    league = await load_league_from_json(app, path)
    return app, league


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
