"""Simulation settings and static league tables."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

USER_TEAM_NAME = "Imagine"

DEFAULT_TEAMS: tuple[tuple[str, str], ...] = (
    ("Imagine", "💫"),
    ("Riverlake Eagles", "🦅"),
    ("Storm Breakers", "⚡"),
    ("Red Dragons", "🐉"),
    ("Wolverines", "🐺"),
    ("Golden Tigers", "🐅"),
)

# Height ranges in centimetres per position.
POSITION_HEIGHTS: dict[str, tuple[int, int]] = {
    "PG": (175, 185),
    "SG": (180, 188),
    "SF": (185, 190),
    "PF": (188, 190),
    "C": (190, 190),
}


class SimSettings(BaseSettings):
    """Tunable simulation values.

    Every field can be overridden with an ``HOOPS_``-prefixed environment
    variable or a ``.env`` file. The defaults produce four 8-minute quarters
    with final scores mostly between 70 and 110 per team.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Game clock
    quarter_seconds: int = Field(default=480, ge=1, description="Seconds per quarter")
    quarters: int = Field(default=4, ge=1, description="Regulation quarters")
    overtime_seconds: int = Field(default=300, ge=1, description="Seconds per overtime period")
    max_overtime_periods: int = Field(
        default=4,
        ge=1,
        description="Overtime periods before a still-tied game goes to the home side",
    )
    strategy_break_quarter: int = Field(
        default=2,
        ge=1,
        description="Quarter after which the coach picks a strategy",
    )

    # Play generation
    event_probability: float = Field(
        default=0.2,
        gt=0.0,
        le=1.0,
        description="Chance that a simulated second produces a play",
    )
    strategy_weight_boost: float = Field(default=1.5, gt=0.0)
    bench_usage: float = Field(default=0.35, gt=0.0, le=1.0)
    free_throw_base: float = Field(default=0.65, ge=0.0, le=1.0)
    free_throw_rating_scale: float = Field(default=0.25, ge=0.0, le=1.0)

    # League
    league_size: int = Field(default=6, ge=2)
    days_between_weeks: int = Field(default=7, ge=1)
    season_start: date = Field(default=date(2025, 1, 6))
    data_dir: str = Field(default="data")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = "logs"

    @field_validator("league_size")
    @classmethod
    def validate_even_league(cls, v: int) -> int:
        if v % 2 == 1:
            raise ValueError("league_size must be even")
        return v

    @field_validator("data_dir", "log_dir")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v or v.isspace():
            raise ValueError("Path cannot be empty or whitespace")
        return v


_settings: SimSettings | None = None


def get_settings() -> SimSettings:
    global _settings
    if _settings is None:
        _settings = SimSettings()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
