"""Weighted play selection and resolution for one possession.

The generator draws a play category from a data table, adjusts the weights
for game context and the coach's strategy, picks an acting player suited to
the play and resolves shots against the player's rating and tendency.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Sequence, TypeVar

from .config import SimSettings, get_settings
from .models import BIG_POSITIONS, GUARD_POSITIONS, Player, Team

T = TypeVar("T")

HOME = "home"
AWAY = "away"
NEUTRAL = "neutral"


def other_side(side: str) -> str:
    return AWAY if side == HOME else HOME


@dataclass(frozen=True, slots=True)
class PlayCategory:
    key: str
    weight: float
    kind: str
    requires_player: bool = True


CATEGORY_WEIGHTS: tuple[PlayCategory, ...] = (
    PlayCategory("three_point", 18, "shot"),
    PlayCategory("midrange", 22, "shot"),
    PlayCategory("layup", 10, "shot"),
    PlayCategory("free_throw", 10, "shot"),
    PlayCategory("turnover", 10, "turnover"),
    PlayCategory("defensive_rebound", 12, "rebound"),
    PlayCategory("offensive_rebound", 8, "rebound"),
    PlayCategory("steal", 6, "steal"),
    PlayCategory("block", 4, "block"),
    PlayCategory("assist", 8, "assist"),
    PlayCategory("foul", 6, "foul"),
    PlayCategory("timeout", 2, "timeout", requires_player=False),
)


@dataclass(frozen=True, slots=True)
class ShotProfile:
    shot_type: str
    base_rate: float
    points: int
    tendency: str
    tendency_bonus: float
    pool: str


SHOT_PROFILES: dict[str, ShotProfile] = {
    "three_point": ShotProfile("3PT", 0.35, 3, "THREE_POINT", 0.10, "shooting"),
    "midrange": ShotProfile("2PT", 0.50, 2, "MIDRANGE", 0.12, "shooting"),
    "layup": ShotProfile("LAYUP", 0.65, 2, "POST", 0.15, "any"),
}

STRATEGIES = ("perimeter", "post", "midrange")
STRATEGY_ALIASES: dict[str, str] = {
    "perimeter": "perimeter",
    "three_point": "perimeter",
    "three": "perimeter",
    "post": "post",
    "inside_post": "post",
    "midrange": "midrange",
    "mid_range": "midrange",
}
STRATEGY_FOCUS: dict[str, str] = {
    "perimeter": "three_point",
    "post": "layup",
    "midrange": "midrange",
}

_MADE_THREE = ("drains a corner three", "hits from beyond the arc", "buries a deep three", "knocks down a catch-and-shoot three")
_REBOUND_DEF = ("secures the defensive board", "grabs the defensive rebound", "cleans up the glass", "pulls down the rebound")
_REBOUND_OFF = ("fights for the offensive rebound", "keeps the possession alive", "grabs the offensive board")
_TURNOVERS = ("turns the ball over", "loses control of the ball", "commits a traveling violation", "throws a bad pass")
_STEALS = ("steals the ball from", "picks off the pass intended for", "strips the ball away from")
_BLOCKS = ("blocks the shot from", "swats away the attempt by", "denies at the rim")
_ASSISTS = ("dishes a beautiful assist", "finds the open man", "sets up the score", "makes a perfect pass")


def normalize_strategy(strategy: str) -> str:
    key = strategy.strip().lower().replace("-", "_").replace(" ", "_")
    if key not in STRATEGY_ALIASES:
        raise ValueError(f"Unknown strategy '{strategy}'. Choose one of: {', '.join(STRATEGIES)}.")
    return STRATEGY_ALIASES[key]


def weighted_choice(items: Sequence[T], weights: Sequence[float], rng: random.Random) -> T:
    if not items:
        raise ValueError("No items available for weighted selection.")
    return rng.choices(list(items), weights=list(weights), k=1)[0]


def format_clock(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True, slots=True)
class GameEvent:
    sequence: int
    clock: str
    quarter: int
    description: str
    team: str
    points: int = 0
    player: str | None = None
    category: str = NEUTRAL
    shot_type: str | None = None
    result: str | None = None
    possession_change: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": self.sequence,
            "clock": self.clock,
            "quarter": self.quarter,
            "description": self.description,
            "team": self.team,
            "points": self.points,
            "player": self.player,
            "category": self.category,
            "shot_type": self.shot_type,
            "result": self.result,
        }


@dataclass(slots=True)
class PlayContext:
    quarter: int = 1
    time_remaining: int = 480
    margin: int = 0
    strategy: str | None = None
    regulation_quarters: int = 4

    @property
    def late_game(self) -> bool:
        return self.quarter >= self.regulation_quarters

    @property
    def crunch_time(self) -> bool:
        return self.late_game and self.time_remaining < 120

    @property
    def close_game(self) -> bool:
        return abs(self.margin) <= 5

    @property
    def clock(self) -> str:
        return format_clock(self.time_remaining)


def category_weights(context: PlayContext, strategy_boost: float = 1.5) -> dict[str, float]:
    weights = {cat.key: float(cat.weight) for cat in CATEGORY_WEIGHTS}
    if context.late_game:
        weights["three_point"] += 5
        weights["steal"] += 3
        if context.close_game:
            weights["foul"] += 2
    if context.crunch_time:
        weights["foul"] += 4
        weights["three_point"] += 3
    if context.strategy:
        focus = STRATEGY_FOCUS.get(context.strategy)
        if focus is not None:
            weights[focus] *= strategy_boost
    return weights


def make_probability(profile: ShotProfile, player: Player) -> float:
    bonus = profile.tendency_bonus if player.tendency == profile.tendency else 0.0
    if profile.shot_type == "LAYUP" and bonus == 0.0 and player.position in BIG_POSITIONS:
        bonus = 0.08
    chance = (profile.base_rate + bonus) * (player.overall / 100)
    return max(0.02, min(0.98, chance))


class PlayEventGenerator:
    def __init__(self, settings: SimSettings | None = None, rng: random.Random | None = None) -> None:
        self.settings = settings or get_settings()
        self._rng = rng or random.Random()
        self._categories = {cat.key: cat for cat in CATEGORY_WEIGHTS}
        self._placeholder_names: dict[tuple[int, int], str] = {}

    def _pool(self, team: Team, pool: str) -> list[Player]:
        roster = team.roster
        if pool == "shooting":
            eligible = [p for p in roster if p.position in GUARD_POSITIONS or p.position == "SF"]
        elif pool == "rebounding":
            eligible = [p for p in roster if p.position in BIG_POSITIONS or p.position == "SF"]
        elif pool == "assist":
            eligible = [p for p in roster if p.position in GUARD_POSITIONS]
        elif pool == "defense":
            eligible = [p for p in roster if p.overall >= 70 and (p.position in BIG_POSITIONS or p.position == "SF")]
        else:
            eligible = list(roster)
        return eligible or list(roster)

    def pick_player(self, team: Team, pool: str = "any") -> Player | None:
        candidates = self._pool(team, pool)
        if not candidates:
            return None
        weights = [
            max(0.05, p.overall / 100) * (1.0 if p.is_starter else self.settings.bench_usage)
            for p in candidates
        ]
        return weighted_choice(candidates, weights, self._rng)

    def display_name(self, player: Player | None, team: Team) -> str:
        team_name = (team.name or "").strip() or "Team"
        if player is None:
            return f"{team_name} Player"
        name = (player.name or "").strip()
        if name:
            return name
        key = (team.team_id, player.player_id)
        if key not in self._placeholder_names:
            self._placeholder_names[key] = f"Player #{self._rng.randint(1, 99)}"
        return self._placeholder_names[key]

    def draw_category(self, context: PlayContext) -> PlayCategory:
        weights = category_weights(context, self.settings.strategy_weight_boost)
        keys = list(weights)
        return self._categories[weighted_choice(keys, [weights[k] for k in keys], self._rng)]

    def next_event(
        self,
        offense: Team | None,
        defense: Team | None,
        context: PlayContext,
        side: str = HOME,
    ) -> GameEvent:
        if offense is None or defense is None or not offense.roster or not defense.roster:
            return GameEvent(
                sequence=0,
                clock=context.clock,
                quarter=context.quarter,
                description="Teams are preparing...",
                team=NEUTRAL,
            )

        category = self.draw_category(context)
        if category.key in SHOT_PROFILES:
            return self._shot(category, SHOT_PROFILES[category.key], offense, context, side)
        if category.key == "free_throw":
            return self._free_throw(category, offense, context, side)
        return self._non_scoring(category, offense, defense, context, side)

    def _shot(
        self,
        category: PlayCategory,
        profile: ShotProfile,
        offense: Team,
        context: PlayContext,
        side: str,
    ) -> GameEvent:
        player = self.pick_player(offense, profile.pool)
        name = self.display_name(player, offense)
        made = player is not None and self._rng.random() < make_probability(profile, player)

        if profile.shot_type == "3PT":
            description = f"{name} {self._rng.choice(_MADE_THREE)}!" if made else f"{name} misses the 3-point attempt"
        else:
            if player is not None and player.tendency == "POST":
                move = "post move"
            elif player is not None and player.tendency == "MIDRANGE":
                move = "midrange jumper"
            elif profile.shot_type == "LAYUP":
                move = "driving layup"
            else:
                move = "pull-up jumper"
            description = f"{name} scores with a {move}!" if made else f"{name} misses the {move}"

        return GameEvent(
            sequence=0,
            clock=context.clock,
            quarter=context.quarter,
            description=description,
            team=side,
            points=profile.points if made else 0,
            player=name,
            category=category.kind,
            shot_type=profile.shot_type,
            result="MADE" if made else "MISSED",
        )

    def _free_throw(self, category: PlayCategory, offense: Team, context: PlayContext, side: str) -> GameEvent:
        player = self.pick_player(offense, "any")
        name = self.display_name(player, offense)
        overall = player.overall if player is not None else 50
        chance = self.settings.free_throw_base + (overall / 100) * self.settings.free_throw_rating_scale
        made = self._rng.random() < min(0.98, chance)
        return GameEvent(
            sequence=0,
            clock=context.clock,
            quarter=context.quarter,
            description=f"{name} sinks the free throw" if made else f"{name} misses the free throw",
            team=side,
            points=1 if made else 0,
            player=name,
            category=category.kind,
            shot_type="FT",
            result="MADE" if made else "MISSED",
        )

    def _non_scoring(
        self,
        category: PlayCategory,
        offense: Team,
        defense: Team,
        context: PlayContext,
        side: str,
    ) -> GameEvent:
        key = category.key
        acting_side = side
        possession_change = False
        rng = self._rng

        if key == "defensive_rebound":
            player = self.pick_player(defense, "rebounding")
            name = self.display_name(player, defense)
            description = f"{name} {rng.choice(_REBOUND_DEF)}"
            acting_side = other_side(side)
            possession_change = True
        elif key == "offensive_rebound":
            player = self.pick_player(offense, "rebounding")
            name = self.display_name(player, offense)
            description = f"{name} {rng.choice(_REBOUND_OFF)}"
        elif key == "turnover":
            player = self.pick_player(offense, "any")
            name = self.display_name(player, offense)
            description = f"{name} {rng.choice(_TURNOVERS)}"
            possession_change = True
        elif key == "steal":
            player = self.pick_player(defense, "defense")
            victim = self.display_name(self.pick_player(offense, "any"), offense)
            name = self.display_name(player, defense)
            description = f"{name} {rng.choice(_STEALS)} {victim}!"
            acting_side = other_side(side)
            possession_change = True
        elif key == "block":
            player = self.pick_player(defense, "defense")
            shooter = self.display_name(self.pick_player(offense, "shooting"), offense)
            name = self.display_name(player, defense)
            verb = rng.choice(_BLOCKS)
            description = f"{name} {verb} {shooter}" if verb.endswith(("from", "by")) else f"{name} {verb}"
            acting_side = other_side(side)
        elif key == "assist":
            player = self.pick_player(offense, "assist")
            name = self.display_name(player, offense)
            description = f"{name} {rng.choice(_ASSISTS)}"
        elif key == "foul":
            player = self.pick_player(defense, "any")
            fouled = self.display_name(self.pick_player(offense, "any"), offense)
            name = self.display_name(player, defense)
            if rng.random() < 0.4:
                description = f"{name} commits a shooting foul on {fouled}"
            else:
                description = f"{name} fouls {fouled}"
            acting_side = other_side(side)
        else:
            player = self.pick_player(offense, "assist")
            name = self.display_name(player, offense)
            description = f"{name} signals timeout for {offense.name or 'the offense'}"

        return GameEvent(
            sequence=0,
            clock=context.clock,
            quarter=context.quarter,
            description=description,
            team=acting_side,
            points=0,
            player=name,
            category=category.kind,
            possession_change=possession_change,
        )
