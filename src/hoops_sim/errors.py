"""Typed failures surfaced to callers of the league core."""

from __future__ import annotations


class LeagueError(Exception):
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionFailed(LeagueError):
    status_code = 409


class WeekIncomplete(PreconditionFailed):
    pass


class FixtureNotFound(PreconditionFailed):
    status_code = 404


class AlreadyExists(LeagueError):
    status_code = 409


class AlreadyCompleted(LeagueError):
    status_code = 409


class InvalidRoster(LeagueError):
    status_code = 400


class DataUnavailable(LeagueError):
    status_code = 503


class TeamNotFound(PreconditionFailed):
    status_code = 404
