"""Persistence backends and the per-owner league service.

``LeagueService`` is what the HTTP layer and the CLI talk to. It loads the
owner's league from a ``DataSource``, runs one operation through a
``LeagueController`` and saves the league back.
"""

from __future__ import annotations

import json
import random
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any
from urllib.parse import quote

from .app import build_league, build_mock_roster
from .config import SimSettings, get_settings
from .engine import GameResult
from .errors import AlreadyExists, DataUnavailable, PreconditionFailed, TeamNotFound
from .league import LeagueController
from .logging import get_logger
from .models import SAVE_VERSION, STATUS_REGULAR_SEASON, Fixture, League, Player, StandingRow, Team
from .standings import apply_records, compute_standings

logger = get_logger(__name__)

RECORD_RESULTS = ("win", "loss")


class DataSource(ABC):
    @abstractmethod
    def load_league(self, owner_id: str) -> League | None:
        raise NotImplementedError

    @abstractmethod
    def save_league(self, league: League) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_league(self, owner_id: str) -> bool:
        raise NotImplementedError


class InMemoryDataSource(DataSource):
    def __init__(self) -> None:
        self._leagues: dict[str, League] = {}

    def load_league(self, owner_id: str) -> League | None:
        return self._leagues.get(owner_id)

    def save_league(self, league: League) -> None:
        self._leagues[league.owner_id] = league

    def delete_league(self, owner_id: str) -> bool:
        return self._leagues.pop(owner_id, None) is not None


class JsonFileDataSource(DataSource):
    """One JSON document per owner under ``root``.

    Overwrites keep the previous file as ``<name>.json.bak``. Files written by
    a newer save version are refused rather than partially read.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, owner_id: str) -> Path:
        return self.root / f"league_{quote(owner_id, safe='')}.json"

    def load_league(self, owner_id: str) -> League | None:
        path = self.path_for(owner_id)
        if not path.exists():
            return None
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Failed to read league file {}: {}", path, exc)
            raise DataUnavailable(f"Failed to load league data for {owner_id}.") from exc
        if not isinstance(raw, dict):
            raise DataUnavailable(f"League file for {owner_id} has an invalid format.")

        version = int(raw.get("save_version", 1) or 1)
        if version > SAVE_VERSION:
            raise DataUnavailable(
                f"Unsupported league save version {version}; supported up to {SAVE_VERSION}."
            )
        try:
            return League.from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("League file {} is corrupt: {}", path, exc)
            raise DataUnavailable(f"League data for {owner_id} is corrupt.") from exc

    def save_league(self, league: League) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self._write_json_with_backup(self.path_for(league.owner_id), league.to_dict())
        except OSError as exc:
            logger.error("Failed to save league for {}: {}", league.owner_id, exc)
            raise DataUnavailable(f"Failed to save league data for {league.owner_id}.") from exc

    def delete_league(self, owner_id: str) -> bool:
        path = self.path_for(owner_id)
        existed = path.exists()
        try:
            path.unlink(missing_ok=True)
            path.with_suffix(path.suffix + ".bak").unlink(missing_ok=True)
        except OSError as exc:
            raise DataUnavailable(f"Failed to delete league data for {owner_id}.") from exc
        return existed

    def _write_json_with_backup(self, path: Path, payload: Any, *, with_backup: bool = True) -> None:
        if with_backup and path.exists():
            backup = path.with_suffix(path.suffix + ".bak")
            try:
                shutil.copy2(path, backup)
            except OSError as exc:
                logger.warning("Could not back up {}: {}", path, exc)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


class LeagueService:
    def __init__(
        self,
        source: DataSource | None = None,
        settings: SimSettings | None = None,
        seed: int | None = None,
        mock_rosters: bool = False,
    ) -> None:
        self.source = source or InMemoryDataSource()
        self.settings = settings or get_settings()
        self.mock_rosters = mock_rosters
        self._rng = random.Random(seed)
        self._lock = Lock()

    def _require(self, owner_id: str) -> League:
        league = self.source.load_league(owner_id)
        if league is None:
            raise PreconditionFailed(f"No league found for user {owner_id}; set one up first.")
        return league

    def _controller(self, league: League) -> LeagueController:
        return LeagueController(league, self.settings, seed=self._rng.randrange(2**32))

    def _team(self, league: League, team_id: int) -> Team:
        team = league.team(team_id)
        if team is None:
            raise TeamNotFound(f"Team {team_id} is not part of this league.")
        return team

    # Teams and rosters

    def setup_league(self, owner_id: str) -> League:
        with self._lock:
            if self.source.load_league(owner_id) is not None:
                raise AlreadyExists(f"User {owner_id} already has an active league.")
            league = build_league(owner_id, self.settings, seed=self._rng.randrange(2**32))
            self.source.save_league(league)
        logger.info("Created league for {} with {} teams", owner_id, len(league.teams))
        return league

    def reset_league(self, owner_id: str) -> bool:
        with self._lock:
            removed = self.source.delete_league(owner_id)
        logger.info("Removed league for {}: {}", owner_id, removed)
        return removed

    def get_players_by_team(self, owner_id: str, team_id: int) -> list[Player]:
        with self._lock:
            team = self._team(self._require(owner_id), team_id)
        if not team.roster and self.mock_rosters:
            return build_mock_roster(team.name, team_id=team.team_id)
        return list(team.roster)

    def save_lineup(self, owner_id: str, team_id: int, starters: list[str], bench: list[str]) -> Team:
        with self._lock:
            league = self._require(owner_id)
            team = self._team(league, team_id)
            team.apply_lineup(starters, bench)
            self.source.save_league(league)
        return team

    def get_standings(self, owner_id: str) -> list[StandingRow]:
        with self._lock:
            league = self._require(owner_id)
            return self._controller(league).standings()

    def update_record(self, owner_id: str, team_id: int, result: str) -> Team:
        """Add a manual win or loss to a team.

        The bump is kept on the team and counted by every later standings
        computation, so fixture completions do not wipe it.
        """
        result = result.lower()
        if result not in RECORD_RESULTS:
            raise ValueError(f"Result must be one of {RECORD_RESULTS}, got '{result}'.")
        with self._lock:
            league = self._require(owner_id)
            team = self._team(league, team_id)
            if result == "win":
                team.adjusted_wins += 1
            else:
                team.adjusted_losses += 1
            apply_records(compute_standings(league.teams, league.fixtures))
            self.source.save_league(league)
        return team

    # Schedule

    def generate_schedule(self, owner_id: str) -> list[Fixture]:
        with self._lock:
            league = self._require(owner_id)
            fixtures = self._controller(league).generate_schedule()
            self.source.save_league(league)
        return fixtures

    def get_schedule(self, owner_id: str) -> League:
        with self._lock:
            return self._require(owner_id)

    def reset_schedule(self, owner_id: str) -> League:
        with self._lock:
            league = self._require(owner_id)
            league.fixtures = []
            league.current_week = 1
            league.status = STATUS_REGULAR_SEASON
            league.champion_team_id = None
            for team in league.teams:
                team.wins = team.adjusted_wins
                team.losses = team.adjusted_losses
            self.source.save_league(league)
        logger.info("Schedule reset for {}", owner_id)
        return league

    def get_next_game(self, owner_id: str) -> tuple[League, Fixture | None]:
        with self._lock:
            league = self._require(owner_id)
            return league, self._controller(league).next_user_fixture()

    def complete_game(self, owner_id: str, fixture_id: int, home_score: int, away_score: int) -> Fixture:
        with self._lock:
            league = self._require(owner_id)
            fixture = self._controller(league).record_user_game_result(fixture_id, home_score, away_score)
            self.source.save_league(league)
        return fixture

    def simulate_week(self, owner_id: str, max_workers: int = 1) -> list[GameResult]:
        with self._lock:
            league = self._require(owner_id)
            results = self._controller(league).simulate_remaining_ai_games(max_workers=max_workers)
            self.source.save_league(league)
        return results

    def advance_week(self, owner_id: str) -> League:
        with self._lock:
            league = self._require(owner_id)
            self._controller(league).advance_week()
            self.source.save_league(league)
        return league

    def generate_playoffs(self, owner_id: str) -> Fixture:
        with self._lock:
            league = self._require(owner_id)
            fixture = self._controller(league).generate_playoffs()
            self.source.save_league(league)
        return fixture

    def play_user_game(self, owner_id: str, strategy: str | None = None) -> GameResult:
        with self._lock:
            league = self._require(owner_id)
            result = self._controller(league).simulate_user_game(strategy=strategy)
            self.source.save_league(league)
        return result
