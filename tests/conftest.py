from __future__ import annotations

import pytest

from hoops_sim.app import build_league
from hoops_sim.config import SimSettings, reset_settings
from hoops_sim.league import LeagueController
from hoops_sim.models import League, Team


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("HOOPS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("HOOPS_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings() -> SimSettings:
    return SimSettings()


@pytest.fixture
def league(settings) -> League:
    return build_league("owner-1", settings, seed=3)


@pytest.fixture
def controller(league, settings) -> LeagueController:
    ctl = LeagueController(league, settings, seed=5)
    ctl.generate_schedule()
    return ctl


def make_teams(count: int) -> list[Team]:
    return [Team(team_id=idx, name=f"Team {idx}", is_user_team=idx == 1) for idx in range(1, count + 1)]


def lower_id_wins(fixture) -> tuple[int, int]:
    if fixture.home_team_id < fixture.away_team_id:
        return 100 + fixture.away_team_id, 90
    return 90, 100 + fixture.home_team_id
