from __future__ import annotations

from datetime import date, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from app.access.errors import AccessDeniedError
from app.admin import service as admin_service
from app.admin.errors import AdminSeasonNotFoundError, AdminValidationError
from app.core.redemption_codes import is_valid_redemption_code
from tests.fakes import NOW_UTC, FakeSession, make_actor


def _patch_event_store(monkeypatch, *, season, taken_codes: set[str] | None = None) -> dict:
    captured: dict[str, object] = {"checked": []}
    taken = taken_codes or set()

    async def _fake_get_season(session, season_id):
        return season

    async def _fake_code_exists(session, redemption_code: str) -> bool:
        captured["checked"].append(redemption_code)
        return redemption_code in taken

    async def _fake_create(session, *, event):
        event.id = uuid4()
        captured["event"] = event
        return event

    monkeypatch.setattr(admin_service.SeasonsRepo, "get_by_id", _fake_get_season)
    monkeypatch.setattr(admin_service.EventsRepo, "redemption_code_exists", _fake_code_exists)
    monkeypatch.setattr(admin_service.EventsRepo, "create", _fake_create)
    return captured


async def _create_event(actor, season_id, **overrides):
    values = {
        "season_id": season_id,
        "title": " Culto de Jovens ",
        "event_date": date(2026, 3, 7),
        "redemption_deadline": NOW_UTC,
        "card_image_url": "https://cdn.example/c.png",
        "rarity": "epico",
    }
    values.update(overrides)
    return await admin_service.AdminService.create_event(FakeSession(), actor=actor, **values)


@pytest.mark.asyncio
async def test_create_event_generates_unique_code_and_qr_payload(monkeypatch) -> None:
    season = SimpleNamespace(id=uuid4())
    captured = _patch_event_store(monkeypatch, season=season)

    event = await _create_event(make_actor(admin=True), season.id)

    assert is_valid_redemption_code(event.redemption_code)
    assert event.qr_code_data == event.redemption_code
    assert event.title == "Culto de Jovens"
    assert event.rarity == "epico"
    assert event.season_id == season.id
    assert captured["checked"] == [event.redemption_code]


@pytest.mark.asyncio
async def test_create_event_retries_code_collisions(monkeypatch) -> None:
    season = SimpleNamespace(id=uuid4())
    captured = _patch_event_store(monkeypatch, season=season)
    attempts = iter([True, True, False])

    async def _collide_twice(session, redemption_code: str) -> bool:
        captured["checked"].append(redemption_code)
        return next(attempts)

    monkeypatch.setattr(admin_service.EventsRepo, "redemption_code_exists", _collide_twice)

    event = await _create_event(make_actor(admin=True), season.id)

    assert len(captured["checked"]) == 3
    assert event.redemption_code == captured["checked"][-1]


@pytest.mark.asyncio
async def test_create_event_regenerates_code_after_insert_conflict(monkeypatch) -> None:
    season = SimpleNamespace(id=uuid4())
    captured = _patch_event_store(monkeypatch, season=season)
    inserted_codes: list[str] = []

    async def _conflict_once(session, *, event):
        inserted_codes.append(event.redemption_code)
        if len(inserted_codes) == 1:
            raise IntegrityError(
                "INSERT",
                {},
                Exception('duplicate key violates "uq_events_redemption_code"'),
            )
        event.id = uuid4()
        return event

    monkeypatch.setattr(admin_service.EventsRepo, "create", _conflict_once)
    session = FakeSession()

    event = await admin_service.AdminService.create_event(
        session,
        actor=make_actor(admin=True),
        season_id=season.id,
        title="Culto de Jovens",
        event_date=date(2026, 3, 7),
        redemption_deadline=NOW_UTC,
        card_image_url="https://cdn.example/c.png",
    )

    assert len(inserted_codes) == 2
    assert event.redemption_code == inserted_codes[-1]
    assert len(captured["checked"]) == 2
    assert session.savepoints == 2
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_create_event_other_integrity_errors_propagate(monkeypatch) -> None:
    season = SimpleNamespace(id=uuid4())
    _patch_event_store(monkeypatch, season=season)

    async def _broken(session, *, event):
        raise IntegrityError("INSERT", {}, Exception('violates check constraint "ck_events_rarity"'))

    monkeypatch.setattr(admin_service.EventsRepo, "create", _broken)

    with pytest.raises(IntegrityError):
        await _create_event(make_actor(admin=True), season.id)


@pytest.mark.asyncio
async def test_create_event_rejects_naive_deadline(monkeypatch) -> None:
    _patch_event_store(monkeypatch, season=SimpleNamespace(id=uuid4()))

    with pytest.raises(AdminValidationError):
        await _create_event(
            make_actor(admin=True),
            uuid4(),
            redemption_deadline=datetime(2026, 3, 7, 23, 59),
        )


@pytest.mark.asyncio
async def test_create_event_unknown_season(monkeypatch) -> None:
    _patch_event_store(monkeypatch, season=None)

    with pytest.raises(AdminSeasonNotFoundError):
        await _create_event(make_actor(admin=True), uuid4())


@pytest.mark.asyncio
async def test_create_event_requires_admin(monkeypatch) -> None:
    captured = _patch_event_store(monkeypatch, season=SimpleNamespace(id=uuid4()))

    with pytest.raises(AccessDeniedError):
        await _create_event(make_actor(), uuid4())

    assert "event" not in captured


@pytest.mark.asyncio
async def test_create_season_validates_range(monkeypatch) -> None:
    async def _unexpected(session, *, season):
        raise AssertionError("must not insert")

    monkeypatch.setattr(admin_service.SeasonsRepo, "create", _unexpected)

    with pytest.raises(AdminValidationError):
        await admin_service.AdminService.create_season(
            FakeSession(),
            actor=make_actor(admin=True),
            name="2026.1",
            start_date=date(2026, 6, 1),
            end_date=date(2026, 1, 1),
        )


@pytest.mark.asyncio
async def test_create_season_persists(monkeypatch) -> None:
    async def _fake_create(session, *, season):
        season.id = uuid4()
        return season

    monkeypatch.setattr(admin_service.SeasonsRepo, "create", _fake_create)

    season = await admin_service.AdminService.create_season(
        FakeSession(),
        actor=make_actor(admin=True),
        name=" Temporada 2026.1 ",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 6, 30),
        description="  ",
    )

    assert season.name == "Temporada 2026.1"
    assert season.description is None


@pytest.mark.asyncio
async def test_get_stats_fills_every_variant(monkeypatch) -> None:
    def _count(value: int):
        async def _inner(session):
            return value

        return _inner

    async def _by_variant(session):
        return {"comum": 9, "reliquia": 1}

    monkeypatch.setattr(admin_service.SeasonsRepo, "count_all", _count(2))
    monkeypatch.setattr(admin_service.EventsRepo, "count_all", _count(5))
    monkeypatch.setattr(admin_service.ProfilesRepo, "count_all", _count(7))
    monkeypatch.setattr(admin_service.UserCardsRepo, "count_all", _count(10))
    monkeypatch.setattr(admin_service.UserCardsRepo, "count_by_variant", _by_variant)

    stats = await admin_service.AdminService.get_stats(FakeSession(), actor=make_actor(admin=True))

    assert (stats.seasons, stats.events, stats.profiles, stats.user_cards) == (2, 5, 7, 10)
    assert stats.by_variant == {"comum": 9, "edicao_diamante": 0, "holografica": 0, "reliquia": 1}


@pytest.mark.asyncio
async def test_get_stats_requires_admin() -> None:
    with pytest.raises(AccessDeniedError):
        await admin_service.AdminService.get_stats(FakeSession(), actor=make_actor())
