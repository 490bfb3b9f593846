"""Command-line entrypoint.

Example:
    $ hoops-sim season --seed 7
    $ hoops-sim game --strategy perimeter --events 15
    $ hoops-sim serve --port 8000
"""

from __future__ import annotations

import random
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .app import build_default_teams, build_league
from .config import get_settings
from .engine import simulate_game
from .league import LeagueController
from .logging import setup_logging
from .models import STATUS_REGULAR_SEASON, StandingRow

console = Console()

app = typer.Typer(
    name="hoops-sim",
    help="Basketball league season and game simulator",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-V", help="Enable debug logging"),
    ] = False,
) -> None:
    """Simulate a small basketball league from the terminal."""
    settings = get_settings()
    setup_logging(level="DEBUG" if verbose else settings.log_level, log_dir=settings.log_dir)


def _standings_table(rows: list[StandingRow], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Pos", justify="right")
    table.add_column("Team", style="cyan")
    table.add_column("W", justify="right")
    table.add_column("L", justify="right")
    table.add_column("T", justify="right")
    table.add_column("PF", justify="right")
    table.add_column("PA", justify="right")
    table.add_column("Diff", justify="right", style="green")
    for row in rows:
        name = f"{row.team.name} *" if row.team.is_user_team else row.team.name
        table.add_row(
            str(row.rank),
            name,
            str(row.wins),
            str(row.losses),
            str(row.ties),
            str(row.points_for),
            str(row.points_against),
            f"{row.point_diff:+d}",
        )
    return table


@app.command("season")
def season(
    seed: Annotated[int | None, typer.Option("--seed", "-s", help="Random seed")] = None,
    strategy: Annotated[
        str | None,
        typer.Option("--strategy", help="Coach strategy for the user team: perimeter, post or midrange"),
    ] = None,
    workers: Annotated[int, typer.Option("--workers", "-w", help="Parallel AI games per week")] = 1,
) -> None:
    """Simulate a full season and the final."""
    settings = get_settings()
    controller = LeagueController(build_league("cli", settings, seed=seed), settings, seed=seed)
    league = controller.league
    controller.generate_schedule()

    while True:
        upcoming = controller.next_user_fixture()
        if upcoming is not None and upcoming.week == league.current_week:
            controller.simulate_user_game(strategy=strategy)
        controller.simulate_remaining_ai_games(max_workers=workers)
        controller.advance_week()
        if league.status != STATUS_REGULAR_SEASON:
            break

    console.print(_standings_table(controller.standings(), "Regular Season Standings"))

    final = controller.generate_playoffs()
    if final.is_user_game:
        controller.simulate_user_game(strategy=strategy)
    else:
        controller.simulate_remaining_ai_games(max_workers=workers)
    controller.advance_week()

    home = league.team(final.home_team_id)
    away = league.team(final.away_team_id)
    champion = league.team(league.champion_team_id) if league.champion_team_id is not None else None
    console.print(
        Panel(
            f"{home.name} {final.home_score} - {final.away_score} {away.name}\n"
            f"[bold]Champion:[/bold] {champion.name if champion else 'none'}",
            title=f"Final (week {final.week})",
        )
    )


@app.command("game")
def game(
    seed: Annotated[int | None, typer.Option("--seed", "-s", help="Random seed")] = None,
    strategy: Annotated[str | None, typer.Option("--strategy", help="Home coach strategy")] = None,
    events: Annotated[int, typer.Option("--events", "-n", help="Play-by-play lines to show")] = 10,
) -> None:
    """Simulate one exhibition game between the first two default teams."""
    teams = build_default_teams(seed)
    home, away = teams[0], teams[1]
    try:
        result = simulate_game(home, away, settings=get_settings(), strategy=strategy, rng=random.Random(seed))
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    table = Table(title="Play-by-play")
    table.add_column("Q", justify="right")
    table.add_column("Clock")
    table.add_column("Team")
    table.add_column("Play")
    table.add_column("Pts", justify="right")
    for event in result.events[-events:] if events > 0 else []:
        table.add_row(str(event.quarter), event.clock, event.team, event.description, str(event.points or ""))
    console.print(table)

    winner = result.winner_team
    console.print(
        Panel(
            f"{home.name} {result.home_score} - {result.away_score} {away.name}\n"
            f"[bold]Winner:[/bold] {winner.name if winner else 'tie'}",
            title="Final",
        )
    )


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port")] = 8000,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    console.print(f"Serving on http://{host}:{port}")
    uvicorn.run("hoops_sim.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
