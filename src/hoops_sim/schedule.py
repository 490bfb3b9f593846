from __future__ import annotations

from collections import deque
from datetime import date, timedelta
from typing import Iterable

from .errors import AlreadyExists, PreconditionFailed
from .logging import get_logger
from .models import (
    PHASE_PLAYOFF,
    STATUS_PLAYOFFS,
    Fixture,
    League,
    Team,
)
from .standings import compute_standings

logger = get_logger(__name__)


def build_round_robin_weeks(teams: Iterable[Team]) -> list[list[tuple[Team, Team]]]:
    """Pair every team with every other once, one game per team per week.

    The first team is the pivot and the rest move one seat around it each
    week. Seat *i* meets seat N-1-*i*, and every second week flips home and away.
    """
    entrants = list(teams)
    size = len(entrants)
    if size < 2:
        raise ValueError("A schedule needs at least two teams.")
    if size % 2:
        raise ValueError("Odd team counts are not supported; add a team or drop one.")

    pivot = entrants[0]
    ring = deque(entrants[1:])
    weeks: list[list[tuple[Team, Team]]] = []
    for week_idx in range(size - 1):
        seats = [pivot, *ring]
        pairs = [(seats[seat], seats[size - 1 - seat]) for seat in range(size // 2)]
        if week_idx % 2:
            pairs = [(away, home) for home, away in pairs]
        weeks.append(pairs)
        ring.rotate(1)
    return weeks


def week_date(season_start: date, week: int, days_between_weeks: int = 7) -> date:
    return season_start + timedelta(days=(week - 1) * days_between_weeks)


def generate_fixtures(league: League, days_between_weeks: int = 7) -> list[Fixture]:
    """Fill an empty league with its regular-season fixtures."""
    if league.fixtures:
        raise AlreadyExists("Schedule already exists for this league; reset it before regenerating.")

    weeks = build_round_robin_weeks(league.teams)
    league.regular_weeks = len(weeks)
    user_team_id = league.user_team().team_id
    fixtures: list[Fixture] = []
    next_id = 1
    for week_no, games in enumerate(weeks, start=1):
        game_day = week_date(league.season_start, week_no, days_between_weeks)
        for home, away in games:
            fixtures.append(
                Fixture(
                    fixture_id=next_id,
                    week=week_no,
                    home_team_id=home.team_id,
                    away_team_id=away.team_id,
                    game_date=game_day,
                    is_user_game=user_team_id in (home.team_id, away.team_id),
                )
            )
            next_id += 1

    league.fixtures = fixtures
    league.current_week = 1
    logger.info(
        "Generated {} fixtures over {} weeks for league owned by {}",
        len(fixtures),
        league.regular_weeks,
        league.owner_id,
    )
    return fixtures


def generate_playoff_fixture(league: League, days_between_weeks: int = 7) -> Fixture:
    """Create the final between the top two teams once the regular season is done."""
    regular = league.regular_fixtures()
    if not regular:
        raise PreconditionFailed("No regular-season schedule exists yet.")
    pending = [f for f in regular if not f.is_completed]
    if pending:
        raise PreconditionFailed(
            f"Regular season is not finished: {len(pending)} game(s) still to play."
        )
    if league.playoff_fixture() is not None:
        raise AlreadyExists("Playoffs have already been generated for this league.")

    standings = compute_standings(league.teams, league.fixtures)
    top_seed, second_seed = standings[0].team, standings[1].team
    playoff_week = league.regular_weeks + 1
    fixture = Fixture(
        fixture_id=max(f.fixture_id for f in league.fixtures) + 1,
        week=playoff_week,
        home_team_id=top_seed.team_id,
        away_team_id=second_seed.team_id,
        game_date=week_date(league.season_start, playoff_week, days_between_weeks),
        is_user_game=top_seed.is_user_team or second_seed.is_user_team,
        season_phase=PHASE_PLAYOFF,
    )
    league.fixtures.append(fixture)
    league.current_week = playoff_week
    league.status = STATUS_PLAYOFFS
    logger.info("Playoff final set: {} vs {} in week {}", top_seed.name, second_seed.name, playoff_week)
    return fixture
