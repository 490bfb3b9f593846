from __future__ import annotations

import random

from .config import DEFAULT_TEAMS, POSITION_HEIGHTS, USER_TEAM_NAME, SimSettings, get_settings
from .models import POSITIONS, TENDENCIES, League, Player, Team
from .names import NameGenerator


def _make_player(
    player_id: int,
    name: str,
    position: str,
    overall: int,
    rng: random.Random,
    is_starter: bool,
) -> Player:
    low, high = POSITION_HEIGHTS[position]
    return Player(
        player_id=player_id,
        name=name,
        position=position,
        overall=overall,
        tendency=rng.choice(TENDENCIES),
        age=rng.randint(20, 34),
        height=rng.randint(low, high),
        is_starter=is_starter,
    )


def _make_roster(team_id: int, rng: random.Random, name_gen: NameGenerator) -> list[Player]:
    # One starter per position, then a bench covering each position again.
    roster: list[Player] = []
    for idx, position in enumerate(POSITIONS):
        roster.append(
            _make_player(team_id * 100 + idx + 1, name_gen.next_name(), position, rng.randint(75, 99), rng, True)
        )
    for idx, position in enumerate(POSITIONS, start=len(POSITIONS)):
        roster.append(
            _make_player(team_id * 100 + idx + 1, name_gen.next_name(), position, rng.randint(70, 85), rng, False)
        )
    return roster


def build_mock_roster(team_name: str, seed: int | None = None, team_id: int = 0) -> list[Player]:
    """Stand-in roster for a team whose real roster is empty."""
    rng = random.Random(f"mock:{team_name}:{seed}")
    name_gen = NameGenerator(seed=rng.randrange(2**32))
    roster: list[Player] = []
    for idx in range(10):
        position = POSITIONS[idx % len(POSITIONS)]
        roster.append(
            _make_player(team_id * 100 + idx + 1, name_gen.next_name(), position, rng.randint(65, 94), rng, idx < 5)
        )
    return roster


def build_default_teams(seed: int | None = None) -> list[Team]:
    rng = random.Random(seed)
    name_gen = NameGenerator(seed=rng.randrange(2**32))
    teams: list[Team] = []
    for team_id, (team_name, logo) in enumerate(DEFAULT_TEAMS, start=1):
        teams.append(
            Team(
                team_id=team_id,
                name=team_name,
                roster=_make_roster(team_id, rng, name_gen),
                is_user_team=team_name == USER_TEAM_NAME,
                logo=logo,
            )
        )
    return teams


def build_league(owner_id: str, settings: SimSettings | None = None, seed: int | None = None) -> League:
    settings = settings or get_settings()
    teams = build_default_teams(seed)
    if settings.league_size > len(teams):
        raise ValueError(
            f"Only {len(teams)} default teams are available; league_size={settings.league_size}."
        )
    return League(
        owner_id=owner_id,
        teams=teams[: settings.league_size],
        season_start=settings.season_start,
    )
