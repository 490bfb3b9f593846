from __future__ import annotations

import random
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

from .config import SimSettings, get_settings
from .engine import GameResult, GameSimulator, simulate_game
from .errors import AlreadyCompleted, FixtureNotFound, PreconditionFailed, WeekIncomplete
from .logging import get_logger
from .models import (
    PHASE_PLAYOFF,
    STATUS_COMPLETE,
    STATUS_PLAYOFFS,
    STATUS_READY_FOR_PLAYOFFS,
    STATUS_REGULAR_SEASON,
    Fixture,
    League,
    StandingRow,
)
from .plays import AWAY, HOME
from .schedule import generate_fixtures, generate_playoff_fixture
from .standings import apply_records, compute_standings

logger = get_logger(__name__)

SimulatorFactory = Callable[..., GameSimulator]


class LeagueController:
    """Drives one league through its weeks, the final and completion.

    Every fixture result, whether from an interactive game, a headless sim or
    an external caller, goes through ``record_user_game_result`` so the
    completed-once rule and the standings sync live in one place.
    """

    def __init__(
        self,
        league: League,
        settings: SimSettings | None = None,
        seed: int | None = None,
        simulator_factory: SimulatorFactory | None = None,
    ) -> None:
        self.league = league
        self.settings = settings or get_settings()
        self._rng = random.Random(seed)
        self._simulator_factory = simulator_factory or GameSimulator

    # Schedule

    def generate_schedule(self) -> list[Fixture]:
        return generate_fixtures(self.league, self.settings.days_between_weeks)

    def get_current_week_fixtures(self) -> list[Fixture]:
        return self.league.fixtures_for_week(self.league.current_week)

    def next_user_fixture(self) -> Fixture | None:
        user_id = self.league.user_team().team_id
        pending = [f for f in self.league.fixtures if f.involves(user_id) and not f.is_completed]
        if not pending:
            return None
        return min(pending, key=lambda f: (f.week, f.fixture_id))

    def standings(self) -> list[StandingRow]:
        return compute_standings(self.league.teams, self.league.fixtures)

    # Completion

    def record_user_game_result(self, fixture_id: int, home_score: int, away_score: int) -> Fixture:
        league = self.league
        with league.lock:
            fixture = league.fixture(fixture_id)
            if fixture is None:
                raise FixtureNotFound(f"Fixture {fixture_id} does not exist in this league.")
            if fixture.is_completed:
                raise AlreadyCompleted(f"Fixture {fixture_id} is already completed.")
            if home_score < 0 or away_score < 0:
                raise ValueError("Scores cannot be negative.")
            if fixture.season_phase == PHASE_PLAYOFF and home_score == away_score:
                raise PreconditionFailed("A playoff final cannot end in a tie.")

            fixture.complete(home_score, away_score)
            apply_records(compute_standings(league.teams, league.fixtures))
            if fixture.season_phase == PHASE_PLAYOFF:
                league.champion_team_id = fixture.winner_team_id

        logger.debug(
            "Fixture {} (week {}) completed {}-{}",
            fixture.fixture_id,
            fixture.week,
            home_score,
            away_score,
        )
        return fixture

    # Simulation

    def _play_fixture(self, fixture: Fixture, seed: int, strategy: str | None = None) -> GameResult:
        home = self.league.team(fixture.home_team_id)
        away = self.league.team(fixture.away_team_id)
        if home is None or away is None:
            raise PreconditionFailed(f"Fixture {fixture.fixture_id} references an unknown team.")
        strategy_side = AWAY if away.is_user_team else HOME
        return simulate_game(
            home,
            away,
            settings=self.settings,
            rng=random.Random(seed),
            allow_tie=fixture.season_phase != PHASE_PLAYOFF,
            strategy=strategy,
            strategy_side=strategy_side,
        )

    def _commit(self, fixture: Fixture, result: GameResult) -> bool:
        try:
            self.record_user_game_result(fixture.fixture_id, result.home_score, result.away_score)
        except AlreadyCompleted:
            logger.debug("Fixture {} was completed elsewhere; dropping simulated result", fixture.fixture_id)
            return False
        return True

    def simulate_remaining_ai_games(self, week: int | None = None, max_workers: int = 1) -> list[GameResult]:
        week = self.league.current_week if week is None else week
        user_id = self.league.user_team().team_id
        todo = sorted(
            (f for f in self.league.fixtures_for_week(week) if not f.is_completed and not f.involves(user_id)),
            key=lambda f: f.fixture_id,
        )
        if not todo:
            return []

        # Seeds are drawn in fixture order so worker count never changes results.
        seeds = [self._rng.randrange(2**32) for _ in todo]
        if max_workers > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self._play_fixture, todo, seeds))
        else:
            results = [self._play_fixture(fixture, seed) for fixture, seed in zip(todo, seeds)]

        committed = [result for fixture, result in zip(todo, results) if self._commit(fixture, result)]
        logger.info("Simulated {} AI game(s) in week {}", len(committed), week)
        return committed

    def simulate_user_game(self, fixture_id: int | None = None, strategy: str | None = None) -> GameResult:
        fixture = self._user_fixture(fixture_id)
        result = self._play_fixture(fixture, self._rng.randrange(2**32), strategy=strategy)
        self.record_user_game_result(fixture.fixture_id, result.home_score, result.away_score)
        return result

    def simulate_week(self) -> list[GameResult]:
        return self.simulate_remaining_ai_games(self.league.current_week)

    def new_game(self, fixture_id: int | None = None) -> GameSimulator:
        fixture = self._user_fixture(fixture_id)
        home = self.league.team(fixture.home_team_id)
        away = self.league.team(fixture.away_team_id)

        def _commit_final(result: GameResult) -> None:
            self.record_user_game_result(fixture.fixture_id, result.home_score, result.away_score)

        return self._simulator_factory(
            home,
            away,
            settings=self.settings,
            rng=random.Random(self._rng.randrange(2**32)),
            allow_tie=fixture.season_phase != PHASE_PLAYOFF,
            on_final=_commit_final,
            strategy_side=AWAY if away is not None and away.is_user_team else HOME,
        )

    def _user_fixture(self, fixture_id: int | None) -> Fixture:
        if fixture_id is None:
            fixture = self.next_user_fixture()
            if fixture is None:
                raise PreconditionFailed("The user team has no games left to play.")
        else:
            fixture = self.league.fixture(fixture_id)
            if fixture is None:
                raise FixtureNotFound(f"Fixture {fixture_id} does not exist in this league.")
        if fixture.is_completed:
            raise AlreadyCompleted(f"Fixture {fixture.fixture_id} is already completed.")
        if fixture.week != self.league.current_week:
            raise PreconditionFailed(
                f"Fixture {fixture.fixture_id} is scheduled for week {fixture.week}, "
                f"current week is {self.league.current_week}."
            )
        return fixture

    # Progression

    def advance_week(self) -> int:
        league = self.league
        if not league.fixtures:
            raise PreconditionFailed("No schedule exists yet.")
        if league.status in (STATUS_READY_FOR_PLAYOFFS, STATUS_COMPLETE):
            raise PreconditionFailed(f"Cannot advance the week while the league is {league.status}.")

        pending = [f for f in self.get_current_week_fixtures() if not f.is_completed]
        if pending:
            raise WeekIncomplete(
                f"Week {league.current_week} still has {len(pending)} incomplete game(s)."
            )

        if league.status == STATUS_PLAYOFFS:
            league.status = STATUS_COMPLETE
            champion = league.team(league.champion_team_id) if league.champion_team_id is not None else None
            logger.info("Season complete; champion: {}", champion.name if champion else "unknown")
        elif league.status == STATUS_REGULAR_SEASON and league.current_week >= league.regular_weeks:
            league.status = STATUS_READY_FOR_PLAYOFFS
            logger.info("Regular season finished after week {}", league.current_week)
        else:
            league.current_week += 1
            logger.info("Advanced to week {}", league.current_week)
        return league.current_week

    def generate_playoffs(self) -> Fixture:
        return generate_playoff_fixture(self.league, self.settings.days_between_weeks)
