import random

import pytest

from hoops_sim.app import build_default_teams
from hoops_sim.config import SimSettings
from hoops_sim.engine import (
    TIE,
    GamePhase,
    GameSimulator,
    InstantClock,
    TickSource,
    WallClock,
    simulate_game,
)
from hoops_sim.errors import PreconditionFailed
from hoops_sim.models import Team
from hoops_sim.plays import AWAY, HOME, GameEvent


class ScriptedGenerator:
    """Scores a fixed number of points per event, optionally only in overtime."""

    def __init__(self, points: int = 0, overtime_only: bool = False, regulation: int = 4) -> None:
        self.points = points
        self.overtime_only = overtime_only
        self.regulation = regulation
        self.contexts = []

    def next_event(self, offense, defense, context, side):
        self.contexts.append(context)
        scoring = not self.overtime_only or context.quarter > self.regulation
        return GameEvent(
            sequence=0,
            clock=context.clock,
            quarter=context.quarter,
            description="scripted play",
            team=side,
            points=self.points if scoring else 0,
            player="Scripted Player",
            category="shot",
        )


def _teams(seed: int = 1):
    teams = build_default_teams(seed)
    return teams[0], teams[1]


def _fast(**overrides) -> SimSettings:
    values = {"quarter_seconds": 6, "overtime_seconds": 4, "event_probability": 1.0}
    values.update(overrides)
    return SimSettings(**values)


def test_full_game_ends_with_consistent_result() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=SimSettings(), rng=random.Random(11), headless=True)
    result = sim.play_to_completion()

    assert sim.state.phase == GamePhase.ENDED
    assert sim.state.has_ended
    assert result.home_score >= 0 and result.away_score >= 0
    if result.home_score > result.away_score:
        assert result.winner == HOME
    elif result.away_score > result.home_score:
        assert result.winner == AWAY
    else:
        assert result.winner == TIE
    assert sum(e.points for e in result.events if e.team == HOME) == result.home_score
    assert sum(e.points for e in result.events if e.team == AWAY) == result.away_score
    assert [e.sequence for e in result.events] == list(range(1, len(result.events) + 1))


def test_default_scoring_is_plausible() -> None:
    home, away = _teams()
    totals = []
    for seed in range(6):
        result = simulate_game(home, away, settings=SimSettings(), rng=random.Random(seed))
        totals.extend([result.home_score, result.away_score])
    average = sum(totals) / len(totals)
    assert 60 <= average <= 130


def test_same_seed_replays_identically() -> None:
    home, away = _teams()
    first = simulate_game(home, away, settings=SimSettings(), rng=random.Random(42))
    second = simulate_game(home, away, settings=SimSettings(), rng=random.Random(42))
    assert (first.home_score, first.away_score) == (second.home_score, second.away_score)
    assert [e.description for e in first.events] == [e.description for e in second.events]


def test_quarter_break_and_strategy_interrupt() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=_fast(), generator=ScriptedGenerator())

    sim.run(InstantClock())
    assert sim.state.phase == GamePhase.QUARTER_BREAK
    assert sim.state.quarter == 2
    assert sim.state.time_remaining == 6
    assert not sim.state.awaiting_strategy

    sim.run(InstantClock())
    assert sim.state.phase == GamePhase.QUARTER_BREAK
    assert sim.state.quarter == 3
    assert sim.state.awaiting_strategy
    assert sim.tick() is None

    assert sim.choose_strategy("three_point") == "perimeter"
    assert sim.state.phase == GamePhase.IN_PROGRESS
    assert not sim.state.awaiting_strategy

    sim.run(InstantClock())
    sim.run(InstantClock())
    assert sim.state.phase == GamePhase.ENDED
    assert sim.result is not None
    assert sim.result.strategy == "perimeter"


def test_strategy_only_biases_the_coached_side() -> None:
    home, away = _teams()
    generator = ScriptedGenerator(points=2)
    sim = GameSimulator(home, away, settings=_fast(), generator=generator, headless=True)
    sim.choose_strategy("post")
    sim.play_to_completion()
    for context in generator.contexts:
        assert context.strategy in (None, "post")
    assert any(c.strategy == "post" for c in generator.contexts)
    assert any(c.strategy is None for c in generator.contexts)


def test_headless_game_skips_interrupts() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=_fast(), generator=ScriptedGenerator(), headless=True)
    sim.run(InstantClock())
    assert sim.state.phase == GamePhase.ENDED
    assert sim.state.quarter == 4


def test_unknown_strategy_is_rejected() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=_fast())
    with pytest.raises(ValueError):
        sim.choose_strategy("zone")


def test_pause_and_start_are_idempotent() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=_fast(), generator=ScriptedGenerator())
    sim.pause()
    assert sim.state.phase == GamePhase.NOT_STARTED

    sim.start()
    sim.start()
    assert sim.state.is_playing
    sim.tick()
    sim.pause()
    sim.pause()
    assert sim.state.phase == GamePhase.PAUSED
    assert sim.tick() is None
    assert sim.state.time_remaining == 5

    sim.start()
    assert sim.state.is_playing


def test_instant_clock_limits_ticks() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=SimSettings(), rng=random.Random(3))
    sim.run(InstantClock(max_ticks=25))
    assert sim.state.is_playing
    assert sim.state.time_remaining == SimSettings().quarter_seconds - 25


def test_tick_source_is_abstract() -> None:
    with pytest.raises(TypeError):
        TickSource()


def test_wall_clock_drives_a_short_game() -> None:
    home, away = _teams()
    sim = GameSimulator(
        home,
        away,
        settings=_fast(quarter_seconds=2, quarters=1),
        generator=ScriptedGenerator(points=1),
    )
    result = sim.run(WallClock(interval=0.0))
    assert result is not None
    assert sim.state.has_ended
    assert result.home_score + result.away_score == 2


def test_scoring_flips_possession() -> None:
    home, away = _teams()
    generator = ScriptedGenerator(points=2)
    sim = GameSimulator(home, away, settings=_fast(), generator=generator)
    sim.start()
    sides = []
    for _ in range(4):
        sides.append(sim.tick().team)
    assert sides == [HOME, AWAY, HOME, AWAY]
    assert (sim.state.home_score, sim.state.away_score) == (4, 4)


def test_tie_allowed_in_regular_games() -> None:
    home, away = _teams()
    sim = GameSimulator(home, away, settings=_fast(), generator=ScriptedGenerator(), headless=True)
    result = sim.play_to_completion()
    assert result.winner == TIE
    assert result.overtime_periods == 0


def test_overtime_breaks_ties_when_required() -> None:
    home, away = _teams()
    sim = GameSimulator(
        home,
        away,
        settings=_fast(overtime_seconds=3),
        generator=ScriptedGenerator(points=1, overtime_only=True),
        allow_tie=False,
        headless=True,
    )
    result = sim.play_to_completion()
    assert result.overtime_periods == 1
    assert sim.state.quarter == 5
    # Three overtime ticks, each score hands the ball over.
    assert (result.home_score, result.away_score) == (2, 1)
    assert result.winner == HOME


def test_scoreless_overtime_is_settled_for_the_home_side() -> None:
    home, away = _teams()
    sim = GameSimulator(
        home,
        away,
        settings=_fast(max_overtime_periods=2),
        generator=ScriptedGenerator(),
        allow_tie=False,
        headless=True,
    )
    result = sim.play_to_completion()
    assert sim.state.phase == GamePhase.ENDED
    assert result.overtime_periods == 2
    assert (result.home_score, result.away_score) == (1, 0)
    assert result.winner == HOME
    assert result.events[-1].result == "tiebreak"


def test_empty_roster_plays_with_placeholders() -> None:
    home, _ = _teams()
    empty = Team(team_id=9, name="Empty Five")
    sim = GameSimulator(home, empty, settings=SimSettings(), rng=random.Random(2), allow_tie=False, headless=True)
    result = sim.play_to_completion()
    assert sim.state.phase == GamePhase.ENDED
    assert result.winner != TIE
    assert result.away is empty
    assert empty.roster == []
    assert result.away_score > 0
    away_plays = [e for e in result.events if e.team == AWAY]
    assert away_plays
    assert all(e.player for e in away_plays)


def test_on_final_fires_exactly_once() -> None:
    home, away = _teams()
    seen = []
    sim = GameSimulator(
        home,
        away,
        settings=_fast(),
        generator=ScriptedGenerator(points=3),
        headless=True,
        on_final=seen.append,
    )
    sim.play_to_completion()
    sim.start()
    sim.tick()
    sim.run(InstantClock())
    assert len(seen) == 1
    assert seen[0] is sim.result


def test_abandon_discards_everything() -> None:
    home, away = _teams()
    seen = []
    sim = GameSimulator(home, away, settings=_fast(), generator=ScriptedGenerator(points=2), on_final=seen.append)
    sim.run(InstantClock(max_ticks=3))
    assert sim.events

    sim.abandon()
    assert sim.state.phase == GamePhase.ABANDONED
    assert sim.events == []
    assert (sim.state.home_score, sim.state.away_score) == (0, 0)
    sim.start()
    assert sim.tick() is None
    assert sim.run(InstantClock()) is None
    assert seen == []
    with pytest.raises(PreconditionFailed):
        sim.play_to_completion()
