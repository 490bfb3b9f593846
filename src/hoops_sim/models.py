from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from threading import Lock
from typing import Any, ClassVar

from .errors import AlreadyCompleted, InvalidRoster

POSITIONS = ("PG", "SG", "SF", "PF", "C")
GUARD_POSITIONS = {"PG", "SG"}
WING_POSITIONS = {"SF"}
BIG_POSITIONS = {"PF", "C"}
TENDENCIES = ("POST", "THREE_POINT", "MIDRANGE")

PHASE_REGULAR = "REGULAR"
PHASE_PLAYOFF = "PLAYOFF"

STATUS_REGULAR_SEASON = "REGULAR_SEASON"
STATUS_READY_FOR_PLAYOFFS = "READY_FOR_PLAYOFFS"
STATUS_PLAYOFFS = "PLAYOFFS"
STATUS_COMPLETE = "COMPLETE"

SAVE_VERSION = 1


def _clamp_overall(value: int) -> int:
    return max(0, min(99, int(value)))


@dataclass(slots=True)
class Player:
    player_id: int
    name: str
    position: str = "PG"
    overall: int = 50
    tendency: str = "MIDRANGE"
    age: int = 20
    height: int = 185
    is_starter: bool = False

    def __post_init__(self) -> None:
        self.overall = _clamp_overall(self.overall)
        if self.position not in POSITIONS:
            self.position = "PG"
        if self.tendency not in TENDENCIES:
            self.tendency = "MIDRANGE"

    def to_dict(self) -> dict[str, Any]:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "position": self.position,
            "overall": self.overall,
            "tendency": self.tendency,
            "age": self.age,
            "height": self.height,
            "is_starter": self.is_starter,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Player:
        return cls(
            player_id=int(raw.get("player_id", 0)),
            name=str(raw.get("name", "") or ""),
            position=str(raw.get("position", "PG")),
            overall=int(raw.get("overall", 50)),
            tendency=str(raw.get("tendency", "MIDRANGE")),
            age=int(raw.get("age", 20)),
            height=int(raw.get("height", 185)),
            is_starter=bool(raw.get("is_starter", False)),
        )


@dataclass(slots=True)
class Team:
    team_id: int
    name: str
    wins: int = 0
    losses: int = 0
    roster: list[Player] = field(default_factory=list)
    is_user_team: bool = False
    logo: str = "🏀"
    # Manual record bumps on top of what completed fixtures give.
    adjusted_wins: int = 0
    adjusted_losses: int = 0

    STARTERS_SIZE: ClassVar[int] = 5

    def starters(self) -> list[Player]:
        return [p for p in self.roster if p.is_starter]

    def bench(self) -> list[Player]:
        return [p for p in self.roster if not p.is_starter]

    def player_by_name(self, player_name: str) -> Player | None:
        for player in self.roster:
            if player.name == player_name:
                return player
        return None

    def apply_lineup(self, starters: list[str], bench: list[str]) -> None:
        if len(starters) != self.STARTERS_SIZE:
            raise InvalidRoster(
                f"{self.name} lineup needs exactly {self.STARTERS_SIZE} starters, got {len(starters)}."
            )
        overlap = set(starters) & set(bench)
        if overlap:
            raise InvalidRoster(f"Players listed as both starter and bench: {', '.join(sorted(overlap))}.")
        listed = [*starters, *bench]
        if len(set(listed)) != len(listed):
            raise InvalidRoster("Lineup lists the same player more than once.")
        roster_names = {p.name for p in self.roster}
        unknown = [name for name in listed if name not in roster_names]
        if unknown:
            raise InvalidRoster(f"Not on the {self.name} roster: {', '.join(unknown)}.")
        missing = roster_names - set(listed)
        if missing:
            raise InvalidRoster(f"Lineup omits rostered players: {', '.join(sorted(missing))}.")

        chosen = set(starters)
        order = {name: idx for idx, name in enumerate(listed)}
        for player in self.roster:
            player.is_starter = player.name in chosen
        self.roster.sort(key=lambda p: order[p.name])

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "name": self.name,
            "wins": self.wins,
            "losses": self.losses,
            "is_user_team": self.is_user_team,
            "logo": self.logo,
            "adjusted_wins": self.adjusted_wins,
            "adjusted_losses": self.adjusted_losses,
            "roster": [p.to_dict() for p in self.roster],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Team:
        raw_roster = raw.get("roster", [])
        roster = [Player.from_dict(p) for p in raw_roster if isinstance(p, dict)] if isinstance(raw_roster, list) else []
        return cls(
            team_id=int(raw["team_id"]),
            name=str(raw.get("name", "")),
            wins=int(raw.get("wins", 0)),
            losses=int(raw.get("losses", 0)),
            roster=roster,
            is_user_team=bool(raw.get("is_user_team", False)),
            logo=str(raw.get("logo", "🏀")),
            adjusted_wins=int(raw.get("adjusted_wins", 0)),
            adjusted_losses=int(raw.get("adjusted_losses", 0)),
        )


@dataclass(slots=True)
class Fixture:
    fixture_id: int
    week: int
    home_team_id: int
    away_team_id: int
    game_date: date
    is_user_game: bool = False
    season_phase: str = PHASE_REGULAR
    is_completed: bool = False
    home_score: int | None = None
    away_score: int | None = None
    winner_team_id: int | None = None

    def involves(self, team_id: int) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def complete(self, home_score: int, away_score: int) -> None:
        if self.is_completed:
            raise AlreadyCompleted(f"Fixture {self.fixture_id} is already completed.")
        if home_score < 0 or away_score < 0:
            raise ValueError("Scores cannot be negative.")
        if home_score > away_score:
            winner = self.home_team_id
        elif away_score > home_score:
            winner = self.away_team_id
        else:
            winner = None
        self.home_score = int(home_score)
        self.away_score = int(away_score)
        self.winner_team_id = winner
        self.is_completed = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "fixture_id": self.fixture_id,
            "week": self.week,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "game_date": self.game_date.isoformat(),
            "is_user_game": self.is_user_game,
            "season_phase": self.season_phase,
            "is_completed": self.is_completed,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winner_team_id": self.winner_team_id,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Fixture:
        def _opt_int(key: str) -> int | None:
            value = raw.get(key)
            return None if value is None else int(value)

        return cls(
            fixture_id=int(raw["fixture_id"]),
            week=int(raw["week"]),
            home_team_id=int(raw["home_team_id"]),
            away_team_id=int(raw["away_team_id"]),
            game_date=date.fromisoformat(str(raw["game_date"])),
            is_user_game=bool(raw.get("is_user_game", False)),
            season_phase=str(raw.get("season_phase", PHASE_REGULAR)),
            is_completed=bool(raw.get("is_completed", False)),
            home_score=_opt_int("home_score"),
            away_score=_opt_int("away_score"),
            winner_team_id=_opt_int("winner_team_id"),
        )


@dataclass(slots=True)
class StandingRow:
    team: Team
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: int = 0
    points_against: int = 0
    rank: int = 0

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def point_diff(self) -> int:
        return self.points_for - self.points_against

    @property
    def win_pct(self) -> float:
        gp = self.games_played
        if gp <= 0:
            return 0.0
        return (self.wins + 0.5 * self.ties) / gp

    def register_game(self, points_for: int, points_against: int) -> None:
        self.points_for += points_for
        self.points_against += points_against
        if points_for > points_against:
            self.wins += 1
        elif points_for < points_against:
            self.losses += 1
        else:
            self.ties += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "team_id": self.team.team_id,
            "team_name": self.team.name,
            "wins": self.wins,
            "losses": self.losses,
            "ties": self.ties,
            "points_for": self.points_for,
            "points_against": self.points_against,
            "point_diff": self.point_diff,
        }


@dataclass(slots=True)
class League:
    owner_id: str
    teams: list[Team]
    fixtures: list[Fixture] = field(default_factory=list)
    current_week: int = 1
    regular_weeks: int = 0
    status: str = STATUS_REGULAR_SEASON
    champion_team_id: int | None = None
    season_start: date = date(2025, 1, 6)
    lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def __post_init__(self) -> None:
        user_teams = [t for t in self.teams if t.is_user_team]
        if len(user_teams) != 1:
            raise ValueError(f"A league needs exactly one user team, found {len(user_teams)}.")
        if self.regular_weeks <= 0:
            self.regular_weeks = max(1, len(self.teams) - 1)

    def team(self, team_id: int) -> Team | None:
        for team in self.teams:
            if team.team_id == team_id:
                return team
        return None

    def user_team(self) -> Team:
        return next(t for t in self.teams if t.is_user_team)

    def fixture(self, fixture_id: int) -> Fixture | None:
        for fixture in self.fixtures:
            if fixture.fixture_id == fixture_id:
                return fixture
        return None

    def fixtures_for_week(self, week: int) -> list[Fixture]:
        return [f for f in self.fixtures if f.week == week]

    def regular_fixtures(self) -> list[Fixture]:
        return [f for f in self.fixtures if f.season_phase == PHASE_REGULAR]

    def playoff_fixture(self) -> Fixture | None:
        return next((f for f in self.fixtures if f.season_phase == PHASE_PLAYOFF), None)

    def weeks(self) -> dict[int, list[Fixture]]:
        grouped: dict[int, list[Fixture]] = {}
        for fixture in sorted(self.fixtures, key=lambda f: (f.week, f.fixture_id)):
            grouped.setdefault(fixture.week, []).append(fixture)
        return grouped

    def to_dict(self) -> dict[str, Any]:
        return {
            "save_version": SAVE_VERSION,
            "owner_id": self.owner_id,
            "current_week": self.current_week,
            "regular_weeks": self.regular_weeks,
            "status": self.status,
            "champion_team_id": self.champion_team_id,
            "season_start": self.season_start.isoformat(),
            "teams": [t.to_dict() for t in self.teams],
            "fixtures": [f.to_dict() for f in self.fixtures],
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> League:
        champion = raw.get("champion_team_id")
        return cls(
            owner_id=str(raw["owner_id"]),
            teams=[Team.from_dict(t) for t in raw.get("teams", []) if isinstance(t, dict)],
            fixtures=[Fixture.from_dict(f) for f in raw.get("fixtures", []) if isinstance(f, dict)],
            current_week=int(raw.get("current_week", 1)),
            regular_weeks=int(raw.get("regular_weeks", 0)),
            status=str(raw.get("status", STATUS_REGULAR_SEASON)),
            champion_team_id=None if champion is None else int(champion),
            season_start=date.fromisoformat(str(raw.get("season_start", "2025-01-06"))),
        )
