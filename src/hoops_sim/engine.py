from __future__ import annotations

import dataclasses
import itertools
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from .app import build_mock_roster
from .config import SimSettings, get_settings
from .errors import PreconditionFailed
from .logging import get_logger
from .models import Team
from .plays import (
    AWAY,
    HOME,
    GameEvent,
    PlayContext,
    PlayEventGenerator,
    format_clock,
    normalize_strategy,
    other_side,
)

logger = get_logger(__name__)

TIE = "tie"
TIEBREAK = "tiebreak"


class GamePhase:
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    QUARTER_BREAK = "QUARTER_BREAK"
    ENDED = "ENDED"
    ABANDONED = "ABANDONED"


_RESUMABLE = {GamePhase.NOT_STARTED, GamePhase.PAUSED, GamePhase.QUARTER_BREAK}


@dataclass(slots=True)
class GameState:
    home_score: int = 0
    away_score: int = 0
    quarter: int = 1
    time_remaining: int = 480
    possession: str = HOME
    phase: str = GamePhase.NOT_STARTED
    awaiting_strategy: bool = False
    overtime_periods: int = 0
    last_play: str = ""

    @property
    def is_playing(self) -> bool:
        return self.phase == GamePhase.IN_PROGRESS

    @property
    def has_ended(self) -> bool:
        return self.phase == GamePhase.ENDED

    @property
    def clock(self) -> str:
        return format_clock(self.time_remaining)

    def score_for(self, side: str) -> int:
        return self.home_score if side == HOME else self.away_score


@dataclass(slots=True)
class GameResult:
    home: Team
    away: Team
    home_score: int
    away_score: int
    winner: str
    events: list[GameEvent] = field(default_factory=list)
    overtime_periods: int = 0
    strategy: str | None = None

    @property
    def is_tie(self) -> bool:
        return self.winner == TIE

    @property
    def winner_team(self) -> Team | None:
        if self.winner == HOME:
            return self.home
        if self.winner == AWAY:
            return self.away
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "home_team": self.home.name,
            "away_team": self.away.name,
            "home_score": self.home_score,
            "away_score": self.away_score,
            "winner": self.winner,
            "overtime_periods": self.overtime_periods,
            "strategy": self.strategy,
            "events": [e.to_dict() for e in self.events],
        }


def _playable(team: Team) -> Team:
    """Return ``team``, or a copy with placeholder players if its roster is empty."""
    if team.roster:
        return team
    logger.warning("{} has no players; using a placeholder roster", team.name)
    return dataclasses.replace(team, roster=build_mock_roster(team.name, team_id=team.team_id))


class TickSource(ABC):
    """Yields once per simulated second."""

    @abstractmethod
    def ticks(self) -> Iterator[int]:
        raise NotImplementedError


class InstantClock(TickSource):
    def __init__(self, max_ticks: int | None = None) -> None:
        self.max_ticks = max_ticks

    def ticks(self) -> Iterator[int]:
        if self.max_ticks is None:
            return itertools.count()
        return iter(range(self.max_ticks))


class WallClock(TickSource):
    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval

    def ticks(self) -> Iterator[int]:
        for n in itertools.count():
            yield n
            time.sleep(self.interval)


class GameSimulator:
    """Quarter-by-quarter state machine for one game.

    The simulator never drives itself: callers tick it directly or hand it a
    ``TickSource`` through ``run``. In headless mode quarter breaks resume
    automatically and no strategy interrupt is raised.
    """

    def __init__(
        self,
        home: Team,
        away: Team,
        settings: SimSettings | None = None,
        rng: random.Random | None = None,
        generator: PlayEventGenerator | None = None,
        allow_tie: bool = True,
        headless: bool = False,
        on_final: Callable[[GameResult], Any] | None = None,
        strategy_side: str = HOME,
    ) -> None:
        self.home = home
        self.away = away
        self._lineups = {HOME: _playable(home), AWAY: _playable(away)}
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()
        self.generator = generator or PlayEventGenerator(self.settings, self._rng)
        self.allow_tie = allow_tie
        self.headless = headless
        self.on_final = on_final
        self.strategy_side = strategy_side
        self.strategy: str | None = None
        self.state = GameState(time_remaining=self.settings.quarter_seconds)
        self.events: list[GameEvent] = []
        self.result: GameResult | None = None
        self._final_emitted = False

    def start(self) -> None:
        if self.state.phase not in _RESUMABLE:
            return
        self.state.awaiting_strategy = False
        self.state.phase = GamePhase.IN_PROGRESS

    def pause(self) -> None:
        if self.state.phase == GamePhase.IN_PROGRESS:
            self.state.phase = GamePhase.PAUSED

    def choose_strategy(self, strategy: str, resume: bool = True) -> str:
        if self.state.phase in (GamePhase.ENDED, GamePhase.ABANDONED):
            raise PreconditionFailed("Cannot change strategy after the game is over.")
        self.strategy = normalize_strategy(strategy)
        self.state.awaiting_strategy = False
        if resume and self.state.phase == GamePhase.QUARTER_BREAK:
            self.state.phase = GamePhase.IN_PROGRESS
        return self.strategy

    def abandon(self) -> None:
        if self.state.phase == GamePhase.ENDED:
            return
        self.events = []
        self.state = GameState(
            time_remaining=self.settings.quarter_seconds,
            phase=GamePhase.ABANDONED,
        )
        logger.debug("Abandoned game {} vs {}", self.home.name, self.away.name)

    def tick(self) -> GameEvent | None:
        state = self.state
        if state.phase != GamePhase.IN_PROGRESS:
            return None

        state.time_remaining = max(0, state.time_remaining - 1)
        event = None
        if self._rng.random() < self.settings.event_probability:
            event = self._apply(self._draw_event())
        if state.time_remaining == 0:
            self._end_period()
        return event

    def run(self, clock: TickSource | None = None) -> GameResult | None:
        clock = clock or InstantClock()
        self.start()
        for _ in clock.ticks():
            if self.state.phase != GamePhase.IN_PROGRESS:
                break
            self.tick()
            if self.state.phase != GamePhase.IN_PROGRESS:
                break
        return self.result

    def play_to_completion(self) -> GameResult:
        if self.state.phase == GamePhase.ABANDONED:
            raise PreconditionFailed("An abandoned game cannot be completed.")
        self.headless = True
        while self.state.phase != GamePhase.ENDED:
            self.start()
            self.tick()
        assert self.result is not None
        return self.result

    def _draw_event(self) -> GameEvent:
        offense_side = self.state.possession
        offense = self._lineups[offense_side]
        defense = self._lineups[other_side(offense_side)]
        context = PlayContext(
            quarter=self.state.quarter,
            time_remaining=self.state.time_remaining,
            margin=self.state.score_for(offense_side) - self.state.score_for(other_side(offense_side)),
            strategy=self.strategy if offense_side == self.strategy_side else None,
            regulation_quarters=self.settings.quarters,
        )
        return self.generator.next_event(offense, defense, context, offense_side)

    def _apply(self, event: GameEvent) -> GameEvent:
        event = dataclasses.replace(event, sequence=len(self.events) + 1)
        state = self.state
        if event.points > 0 and event.team in (HOME, AWAY):
            if event.team == HOME:
                state.home_score += event.points
            else:
                state.away_score += event.points
            state.possession = other_side(event.team)
        elif event.possession_change:
            state.possession = other_side(state.possession)
        state.last_play = event.description
        self.events.append(event)
        return event

    def _end_period(self) -> None:
        state = self.state
        if state.quarter < self.settings.quarters:
            ended = state.quarter
            state.phase = GamePhase.QUARTER_BREAK
            state.quarter += 1
            state.time_remaining = self.settings.quarter_seconds
            if ended == self.settings.strategy_break_quarter and self.strategy is None and not self.headless:
                state.awaiting_strategy = True
            if self.headless:
                state.phase = GamePhase.IN_PROGRESS
            return

        if state.home_score == state.away_score and not self.allow_tie:
            if state.overtime_periods >= self.settings.max_overtime_periods:
                self._award_tiebreak()
                self._finish()
                return
            state.phase = GamePhase.QUARTER_BREAK
            state.quarter += 1
            state.overtime_periods += 1
            state.time_remaining = self.settings.overtime_seconds
            if self.headless:
                state.phase = GamePhase.IN_PROGRESS
            return

        self._finish()

    def _award_tiebreak(self) -> None:
        # Still level after the last allowed overtime: home side takes it by a point.
        state = self.state
        self._apply(
            GameEvent(
                sequence=0,
                clock=state.clock,
                quarter=state.quarter,
                description=f"{self.home.name} win the tiebreak after {state.overtime_periods} overtime periods",
                team=HOME,
                points=1,
                category=TIEBREAK,
                result="tiebreak",
            )
        )

    def _finish(self) -> None:
        state = self.state
        state.phase = GamePhase.ENDED
        if state.home_score > state.away_score:
            winner = HOME
        elif state.away_score > state.home_score:
            winner = AWAY
        else:
            winner = TIE
        self.result = GameResult(
            home=self.home,
            away=self.away,
            home_score=state.home_score,
            away_score=state.away_score,
            winner=winner,
            events=list(self.events),
            overtime_periods=state.overtime_periods,
            strategy=self.strategy,
        )
        logger.debug(
            "Final: {} {} - {} {}",
            self.home.name,
            state.home_score,
            state.away_score,
            self.away.name,
        )
        if self.on_final is not None and not self._final_emitted:
            self._final_emitted = True
            self.on_final(self.result)


def simulate_game(
    home: Team,
    away: Team,
    settings: SimSettings | None = None,
    rng: random.Random | None = None,
    allow_tie: bool = True,
    strategy: str | None = None,
    strategy_side: str = HOME,
) -> GameResult:
    simulator = GameSimulator(
        home,
        away,
        settings=settings,
        rng=rng,
        allow_tie=allow_tie,
        headless=True,
        strategy_side=strategy_side,
    )
    if strategy:
        simulator.choose_strategy(strategy, resume=False)
    return simulator.play_to_completion()
