from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import get_settings
from .engine import GameResult
from .errors import LeagueError
from .logging import get_logger
from .models import Fixture, League, Team
from .store import JsonFileDataSource, LeagueService

logger = get_logger(__name__)


class RecordUpdate(BaseModel):
    result: str


class LineupSelection(BaseModel):
    starters: list[str]
    bench: list[str] = []


class GameCompletion(BaseModel):
    user_id: str
    fixture_id: int
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)


class StrategySelection(BaseModel):
    strategy: str | None = None


def _team_summary(team: Team) -> dict[str, Any]:
    return {
        "team_id": team.team_id,
        "name": team.name,
        "wins": team.wins,
        "losses": team.losses,
        "is_user_team": team.is_user_team,
        "logo": team.logo,
    }


def _fixture_payload(league: League, fixture: Fixture) -> dict[str, Any]:
    payload = fixture.to_dict()
    home = league.team(fixture.home_team_id)
    away = league.team(fixture.away_team_id)
    payload["home_team_name"] = home.name if home else None
    payload["away_team_name"] = away.name if away else None
    return payload


def _result_summary(result: GameResult) -> dict[str, Any]:
    return {
        "home_team": result.home.name,
        "away_team": result.away.name,
        "home_score": result.home_score,
        "away_score": result.away_score,
        "winner": result.winner,
        "overtime_periods": result.overtime_periods,
    }


def _league_payload(league: League) -> dict[str, Any]:
    return {
        "owner_id": league.owner_id,
        "current_week": league.current_week,
        "regular_weeks": league.regular_weeks,
        "status": league.status,
        "champion_team_id": league.champion_team_id,
        "teams": [_team_summary(t) for t in league.teams],
    }


def default_service() -> LeagueService:
    settings = get_settings()
    return LeagueService(JsonFileDataSource(settings.data_dir), settings=settings, mock_rosters=True)


def create_app(service: LeagueService | None = None) -> FastAPI:
    service = service or default_service()
    app = FastAPI(title="Hoops League Sim API", version="0.1.0")
    app.state.service = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LeagueError)
    async def league_error_handler(request: Request, exc: LeagueError) -> JSONResponse:
        logger.warning("{} {} failed: {}", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # Teams

    @app.post("/api/teams/setup-user-league/{user_id}")
    def setup_user_league(user_id: str) -> dict[str, Any]:
        league = service.setup_league(user_id)
        return {"success": True, "league": _league_payload(league)}

    @app.get("/api/teams/standings/{user_id}")
    def standings(user_id: str) -> dict[str, Any]:
        rows = service.get_standings(user_id)
        return {"success": True, "standings": [row.to_dict() for row in rows]}

    @app.put("/api/teams/{user_id}/{team_id}/record")
    def update_record(user_id: str, team_id: int, body: RecordUpdate) -> dict[str, Any]:
        try:
            team = service.update_record(user_id, team_id, body.result)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"success": True, "team": _team_summary(team)}

    @app.delete("/api/teams/cleanup-user/{user_id}")
    def cleanup_user(user_id: str) -> dict[str, Any]:
        return {"success": True, "removed": service.reset_league(user_id)}

    # Players

    @app.get("/api/players/team/{user_id}/{team_id}")
    def team_players(user_id: str, team_id: int) -> dict[str, Any]:
        players = service.get_players_by_team(user_id, team_id)
        return {"success": True, "players": [p.to_dict() for p in players]}

    @app.put("/api/players/team/{user_id}/{team_id}/lineup")
    def save_lineup(user_id: str, team_id: int, body: LineupSelection) -> dict[str, Any]:
        team = service.save_lineup(user_id, team_id, body.starters, body.bench)
        return {
            "success": True,
            "starters": [p.name for p in team.starters()],
            "bench": [p.name for p in team.bench()],
        }

    # Schedule

    @app.post("/api/schedule/generate/{user_id}")
    def generate_schedule(user_id: str) -> dict[str, Any]:
        fixtures = service.generate_schedule(user_id)
        return {"success": True, "fixtures": [f.to_dict() for f in fixtures]}

    @app.get("/api/schedule/league/{user_id}")
    def league_schedule(user_id: str) -> dict[str, Any]:
        league = service.get_schedule(user_id)
        weeks = {
            str(week): [_fixture_payload(league, f) for f in fixtures]
            for week, fixtures in league.weeks().items()
        }
        return {
            "success": True,
            "current_week": league.current_week,
            "status": league.status,
            "champion_team_id": league.champion_team_id,
            "weeks": weeks,
        }

    @app.get("/api/schedule/next-game/{user_id}")
    def next_game(user_id: str) -> dict[str, Any]:
        league, fixture = service.get_next_game(user_id)
        if fixture is None:
            return {"success": True, "fixture": None}
        return {"success": True, "fixture": _fixture_payload(league, fixture)}

    @app.post("/api/schedule/complete-game")
    def complete_game(body: GameCompletion) -> dict[str, Any]:
        fixture = service.complete_game(body.user_id, body.fixture_id, body.home_score, body.away_score)
        return {"success": True, "fixture": fixture.to_dict()}

    @app.post("/api/schedule/simulate-week/{user_id}")
    def simulate_week(user_id: str) -> dict[str, Any]:
        results = service.simulate_week(user_id)
        return {"success": True, "results": [_result_summary(r) for r in results]}

    @app.post("/api/schedule/advance-week/{user_id}")
    def advance_week(user_id: str) -> dict[str, Any]:
        league = service.advance_week(user_id)
        return {"success": True, "current_week": league.current_week, "status": league.status}

    @app.post("/api/schedule/generate-playoffs/{user_id}")
    def generate_playoffs(user_id: str) -> dict[str, Any]:
        fixture = service.generate_playoffs(user_id)
        return {"success": True, "fixture": fixture.to_dict()}

    @app.post("/api/schedule/reset/{user_id}")
    def reset_schedule(user_id: str) -> dict[str, Any]:
        league = service.reset_schedule(user_id)
        return {"success": True, "league": _league_payload(league)}

    # Games

    @app.post("/api/games/play/{user_id}")
    def play_game(user_id: str, body: StrategySelection) -> dict[str, Any]:
        try:
            result = service.play_user_game(user_id, body.strategy)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"success": True, "result": result.to_dict()}

    return app


app = create_app()
