from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.routes import ranking as ranking_routes
from app.main import app
from app.ranking.errors import RankingUnavailableError
from app.ranking.types import RankingRow
from tests.fakes import FakeSessionLocal, make_actor

AUTH_HEADERS = {"Authorization": "Bearer test-token"}


def _patch_common(monkeypatch) -> None:
    async def _fake_resolve(request):
        return make_actor()

    monkeypatch.setattr(ranking_routes, "resolve_request_actor", _fake_resolve)
    monkeypatch.setattr(ranking_routes, "SessionLocal", FakeSessionLocal())
    monkeypatch.setattr(ranking_routes, "get_settings", lambda: SimpleNamespace(ranking_default_limit=50))


def test_ranking_returns_public_fields_only(monkeypatch) -> None:
    _patch_common(monkeypatch)
    season_id = uuid4()
    captured: dict[str, object] = {}

    async def _fake_compute(session, *, actor, season_id, limit):
        captured.update(season_id=season_id, limit=limit)
        return [
            RankingRow(
                rank=1,
                user_id=uuid4(),
                display_name="Ana",
                avatar_url=None,
                card_count=4,
                season_id=season_id,
            )
        ]

    monkeypatch.setattr(ranking_routes, "compute_ranking", _fake_compute)

    response = TestClient(app).get(f"/ranking?season_id={season_id}", headers=AUTH_HEADERS)

    assert response.status_code == 200
    payload = response.json()
    assert payload["season_id"] == str(season_id)
    assert set(payload["entries"][0]) == {"rank", "user_id", "display_name", "avatar_url", "card_count"}
    assert captured == {"season_id": season_id, "limit": 50}


def test_ranking_passes_explicit_limit(monkeypatch) -> None:
    _patch_common(monkeypatch)
    captured: dict[str, object] = {}

    async def _fake_compute(session, *, actor, season_id, limit):
        captured.update(season_id=season_id, limit=limit)
        return []

    monkeypatch.setattr(ranking_routes, "compute_ranking", _fake_compute)

    response = TestClient(app).get("/ranking?limit=5", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"season_id": None, "entries": []}
    assert captured == {"season_id": None, "limit": 5}


def test_ranking_rejects_out_of_range_limit(monkeypatch) -> None:
    _patch_common(monkeypatch)

    response = TestClient(app).get("/ranking?limit=501", headers=AUTH_HEADERS)

    assert response.status_code == 422


def test_ranking_unavailable_maps_to_503(monkeypatch) -> None:
    _patch_common(monkeypatch)

    async def _broken(session, *, actor, season_id, limit):
        raise RankingUnavailableError

    monkeypatch.setattr(ranking_routes, "compute_ranking", _broken)

    response = TestClient(app).get("/ranking", headers=AUTH_HEADERS)

    assert response.status_code == 503
    assert response.json() == {"detail": {"code": "E_RANKING_UNAVAILABLE"}}


def test_ranking_commit_failure_maps_to_503(monkeypatch) -> None:
    _patch_common(monkeypatch)
    monkeypatch.setattr(
        ranking_routes,
        "SessionLocal",
        FakeSessionLocal(commit_error=OperationalError("COMMIT", {}, Exception("connection reset"))),
    )

    async def _fake_compute(session, *, actor, season_id, limit):
        return []

    monkeypatch.setattr(ranking_routes, "compute_ranking", _fake_compute)

    response = TestClient(app).get("/ranking", headers=AUTH_HEADERS)

    assert response.status_code == 503
    assert response.json() == {"detail": {"code": "E_RANKING_UNAVAILABLE"}}


def test_ranking_defaults_to_full_leaderboard(monkeypatch) -> None:
    _patch_common(monkeypatch)
    monkeypatch.setattr(ranking_routes, "get_settings", lambda: SimpleNamespace(ranking_default_limit=None))
    captured: dict[str, object] = {}

    async def _fake_compute(session, *, actor, season_id, limit):
        captured["limit"] = limit
        return []

    monkeypatch.setattr(ranking_routes, "compute_ranking", _fake_compute)

    response = TestClient(app).get("/ranking", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert captured == {"limit": None}
