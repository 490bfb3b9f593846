from datetime import date, timedelta
from itertools import combinations

import pytest

from conftest import lower_id_wins, make_teams
from hoops_sim.errors import AlreadyExists, PreconditionFailed
from hoops_sim.models import PHASE_PLAYOFF, STATUS_PLAYOFFS, League
from hoops_sim.schedule import build_round_robin_weeks, generate_fixtures, generate_playoff_fixture


@pytest.mark.parametrize("count", [2, 4, 6, 8, 10])
def test_round_robin_pairs_every_team_once(count: int) -> None:
    teams = make_teams(count)
    weeks = build_round_robin_weeks(teams)
    assert len(weeks) == count - 1

    seen: list[frozenset[int]] = []
    for games in weeks:
        assert len(games) == count // 2
        week_ids = [team.team_id for pair in games for team in pair]
        assert len(week_ids) == len(set(week_ids)) == count
        seen.extend(frozenset((home.team_id, away.team_id)) for home, away in games)

    expected = {frozenset(pair) for pair in combinations(range(1, count + 1), 2)}
    assert len(seen) == len(expected)
    assert set(seen) == expected


def test_round_robin_swaps_home_side_between_weeks() -> None:
    weeks = build_round_robin_weeks(make_teams(6))
    first_team_home = [any(home.team_id == 1 for home, _ in games) for games in weeks]
    assert first_team_home[0] is True
    assert first_team_home[1] is False


def test_round_robin_rotates_around_the_first_team() -> None:
    weeks = build_round_robin_weeks(make_teams(4))
    ids = [[(home.team_id, away.team_id) for home, away in games] for games in weeks]
    assert ids == [
        [(1, 4), (2, 3)],
        [(3, 1), (2, 4)],
        [(1, 2), (3, 4)],
    ]


@pytest.mark.parametrize("count", [0, 1, 3, 5])
def test_round_robin_rejects_odd_or_tiny_leagues(count: int) -> None:
    with pytest.raises(ValueError):
        build_round_robin_weeks(make_teams(count))


def test_generate_fixtures_numbers_and_dates() -> None:
    league = League(owner_id="u", teams=make_teams(6), season_start=date(2025, 3, 3))
    fixtures = generate_fixtures(league, days_between_weeks=7)

    assert len(fixtures) == 15
    assert [f.fixture_id for f in fixtures] == list(range(1, 16))
    assert league.regular_weeks == 5
    assert league.current_week == 1
    for fixture in fixtures:
        assert fixture.game_date == date(2025, 3, 3) + timedelta(days=7 * (fixture.week - 1))
        assert fixture.is_user_game == fixture.involves(1)
        assert not fixture.is_completed
    assert sum(1 for f in fixtures if f.is_user_game) == 5


def test_generate_fixtures_twice_is_rejected() -> None:
    league = League(owner_id="u", teams=make_teams(4))
    generate_fixtures(league)
    with pytest.raises(AlreadyExists):
        generate_fixtures(league)
    assert len(league.fixtures) == 6


def test_playoffs_need_a_schedule() -> None:
    league = League(owner_id="u", teams=make_teams(4))
    with pytest.raises(PreconditionFailed):
        generate_playoff_fixture(league)


def test_playoffs_need_every_regular_game() -> None:
    league = League(owner_id="u", teams=make_teams(4))
    generate_fixtures(league)
    for fixture in league.fixtures[:-1]:
        fixture.complete(*lower_id_wins(fixture))
    with pytest.raises(PreconditionFailed):
        generate_playoff_fixture(league)
    assert league.playoff_fixture() is None


def test_playoff_final_hosts_top_seed() -> None:
    league = League(owner_id="u", teams=make_teams(6))
    generate_fixtures(league)
    for fixture in league.fixtures:
        fixture.complete(*lower_id_wins(fixture))

    final = generate_playoff_fixture(league)
    assert final.season_phase == PHASE_PLAYOFF
    assert final.week == 6
    assert final.fixture_id == 16
    assert (final.home_team_id, final.away_team_id) == (1, 2)
    assert final.is_user_game is True
    assert league.current_week == 6
    assert league.status == STATUS_PLAYOFFS

    with pytest.raises(AlreadyExists):
        generate_playoff_fixture(league)
