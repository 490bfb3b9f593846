import json

import pytest
from fastapi.testclient import TestClient

from hoops_sim.api import create_app
from hoops_sim.store import InMemoryDataSource, JsonFileDataSource, LeagueService


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(LeagueService(InMemoryDataSource(), seed=8)))


def test_health(client) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}


def test_setup_and_players(client) -> None:
    res = client.post("/api/teams/setup-user-league/u1")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert len(body["league"]["teams"]) == 6

    res = client.get("/api/players/team/u1/1")
    players = res.json()["players"]
    assert len(players) == 10
    names = [p["name"] for p in players]

    res = client.put("/api/players/team/u1/1/lineup", json={"starters": names[5:], "bench": names[:5]})
    assert res.status_code == 200
    assert res.json()["starters"] == names[5:]


def test_schedule_game_and_standings(client) -> None:
    client.post("/api/teams/setup-user-league/u1")
    res = client.post("/api/schedule/generate/u1")
    assert len(res.json()["fixtures"]) == 15

    schedule = client.get("/api/schedule/league/u1").json()
    assert schedule["current_week"] == 1
    assert sorted(schedule["weeks"]) == ["1", "2", "3", "4", "5"]

    fixture = client.get("/api/schedule/next-game/u1").json()["fixture"]
    assert fixture["week"] == 1
    assert fixture["home_team_name"]

    res = client.post(
        "/api/schedule/complete-game",
        json={"user_id": "u1", "fixture_id": fixture["fixture_id"], "home_score": 97, "away_score": 90},
    )
    assert res.json()["fixture"]["winner_team_id"] == fixture["home_team_id"]

    res = client.post("/api/schedule/simulate-week/u1")
    assert len(res.json()["results"]) == 2

    res = client.post("/api/schedule/advance-week/u1")
    assert res.json()["current_week"] == 2

    rows = client.get("/api/teams/standings/u1").json()["standings"]
    assert [row["rank"] for row in rows] == [1, 2, 3, 4, 5, 6]
    assert sum(row["wins"] for row in rows) == 3


def test_play_user_game(client) -> None:
    client.post("/api/teams/setup-user-league/u1")
    client.post("/api/schedule/generate/u1")
    res = client.post("/api/games/play/u1", json={"strategy": "post"})
    assert res.status_code == 200
    result = res.json()["result"]
    assert result["strategy"] == "post"
    assert result["events"]

    res = client.post("/api/games/play/u1", json={"strategy": "zone"})
    assert res.status_code == 400


def test_error_mapping(client) -> None:
    res = client.get("/api/teams/standings/ghost")
    assert res.status_code == 409
    assert res.json() == {"success": False, "message": res.json()["message"]}

    client.post("/api/teams/setup-user-league/u1")
    assert client.post("/api/teams/setup-user-league/u1").status_code == 409
    assert client.get("/api/players/team/u1/42").status_code == 404

    res = client.put("/api/players/team/u1/1/lineup", json={"starters": ["Nobody"], "bench": []})
    assert res.status_code == 400
    assert res.json()["success"] is False

    client.post("/api/schedule/generate/u1")
    assert client.post("/api/schedule/generate/u1").status_code == 409
    assert client.post("/api/schedule/generate-playoffs/u1").status_code == 409

    missing = {"user_id": "u1", "fixture_id": 999, "home_score": 1, "away_score": 0}
    assert client.post("/api/schedule/complete-game", json=missing).status_code == 404
    negative = {"user_id": "u1", "fixture_id": 1, "home_score": -1, "away_score": 0}
    assert client.post("/api/schedule/complete-game", json=negative).status_code == 422

    done = {"user_id": "u1", "fixture_id": 1, "home_score": 70, "away_score": 60}
    assert client.post("/api/schedule/complete-game", json=done).status_code == 200
    assert client.post("/api/schedule/complete-game", json=done).status_code == 409
    assert client.post("/api/schedule/advance-week/u1").status_code == 409


def test_record_update_and_cleanup(client) -> None:
    client.post("/api/teams/setup-user-league/u1")
    res = client.put("/api/teams/u1/2/record", json={"result": "win"})
    assert res.json()["team"]["wins"] == 1
    rows = client.get("/api/teams/standings/u1").json()["standings"]
    assert (rows[0]["team_id"], rows[0]["wins"]) == (2, 1)
    assert client.put("/api/teams/u1/2/record", json={"result": "draw"}).status_code == 400

    assert client.delete("/api/teams/cleanup-user/u1").json()["removed"] is True
    assert client.get("/api/teams/standings/u1").status_code == 409


def test_reset_schedule(client) -> None:
    client.post("/api/teams/setup-user-league/u1")
    client.post("/api/schedule/generate/u1")
    res = client.post("/api/schedule/reset/u1")
    assert res.status_code == 200
    assert client.get("/api/schedule/league/u1").json()["weeks"] == {}


def test_unreadable_store_is_service_unavailable(tmp_path) -> None:
    source = JsonFileDataSource(tmp_path)
    client = TestClient(create_app(LeagueService(source, seed=1)))
    source.path_for("u1").write_text(json.dumps({"save_version": 999}), encoding="utf-8")
    res = client.get("/api/teams/standings/u1")
    assert res.status_code == 503
    assert res.json()["success"] is False
