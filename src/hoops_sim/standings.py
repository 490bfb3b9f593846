from __future__ import annotations

from typing import Iterable

from .models import Fixture, StandingRow, Team


def _sort_key(row: StandingRow) -> tuple[int, int, int, int, str, int]:
    return (-row.wins, row.losses, -row.point_diff, -row.points_for, row.team.name, row.team.team_id)


def compute_standings(teams: Iterable[Team], fixtures: Iterable[Fixture]) -> list[StandingRow]:
    """Rank teams from completed fixtures only.

    Ordering is wins descending, then losses ascending, then point
    differential and points scored. Name and id settle anything left so the
    result does not depend on input order. Manual adjustments recorded on a
    team are added to its fixture record.
    """
    rows = {
        team.team_id: StandingRow(team=team, wins=team.adjusted_wins, losses=team.adjusted_losses)
        for team in teams
    }
    for fixture in fixtures:
        if not fixture.is_completed or fixture.home_score is None or fixture.away_score is None:
            continue
        home = rows.get(fixture.home_team_id)
        away = rows.get(fixture.away_team_id)
        if home is None or away is None:
            continue
        home.register_game(fixture.home_score, fixture.away_score)
        away.register_game(fixture.away_score, fixture.home_score)

    ordered = sorted(rows.values(), key=_sort_key)
    for rank, row in enumerate(ordered, start=1):
        row.rank = rank
    return ordered


def apply_records(rows: Iterable[StandingRow]) -> None:
    for row in rows:
        row.team.wins = row.wins
        row.team.losses = row.losses


def format_standings(rows: Iterable[StandingRow]) -> str:
    lines = ["Pos Team               W  L  T   PF   PA   Diff"]
    for row in rows:
        lines.append(
            f"{row.rank:>3} {row.team.name:<17} {row.wins:>2} {row.losses:>2} {row.ties:>2}"
            f" {row.points_for:>4} {row.points_against:>4} {row.point_diff:>+6}"
        )
    return "\n".join(lines)
