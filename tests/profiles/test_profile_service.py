from __future__ import annotations

from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.access.errors import AuthenticationRequiredError
from app.profiles import service as profile_service
from app.profiles.errors import ProfileNotFoundError, ProfileValidationError
from tests.fakes import NOW_UTC, FakeSession, make_actor


def _profile(user_id, **overrides) -> SimpleNamespace:
    values = {
        "user_id": user_id,
        "display_name": "Ana Souza",
        "avatar_url": "https://cdn.example/a.png",
        "email": "ana@example.com",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _patch_identity_store(monkeypatch, *, created: bool, roles: frozenset[str], profile=None) -> dict:
    calls: dict[str, list] = {"create": [], "grant": []}

    async def _fake_create_once(session, *, user_id, display_name, avatar_url, email):
        calls["create"].append(
            {"user_id": user_id, "display_name": display_name, "avatar_url": avatar_url, "email": email}
        )
        return created

    async def _fake_grant_once(session, *, user_id, role):
        calls["grant"].append((user_id, role))
        return True

    async def _fake_list_roles(session, user_id):
        return roles

    async def _fake_get_by_user_id(session, user_id):
        return profile

    monkeypatch.setattr(profile_service.ProfilesRepo, "create_once", _fake_create_once)
    monkeypatch.setattr(profile_service.UserRolesRepo, "grant_once", _fake_grant_once)
    monkeypatch.setattr(profile_service.UserRolesRepo, "list_roles", _fake_list_roles)
    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id", _fake_get_by_user_id)
    return calls


@pytest.mark.asyncio
async def test_resolve_actor_creates_profile_and_user_role_once(monkeypatch) -> None:
    user_id = uuid4()
    calls = _patch_identity_store(
        monkeypatch,
        created=True,
        roles=frozenset({"user"}),
        profile=_profile(user_id, display_name="Ana Souza"),
    )
    claims = profile_service.IdentityClaims(
        user_id=user_id,
        email="ana@example.com",
        name="  Ana   Souza ",
        picture="https://cdn.example/a.png",
    )

    actor = await profile_service.ProfileService.resolve_actor(FakeSession(), claims=claims)

    assert actor.user_id == user_id
    assert actor.roles == frozenset({"user"})
    assert actor.email == "ana@example.com"
    assert actor.display_name == "Ana Souza"
    assert calls["create"][0]["display_name"] == "Ana Souza"
    assert calls["grant"] == [(user_id, "user")]


@pytest.mark.asyncio
async def test_resolve_actor_never_seeds_display_name_from_email(monkeypatch) -> None:
    user_id = uuid4()
    calls = _patch_identity_store(monkeypatch, created=True, roles=frozenset({"user"}))
    claims = profile_service.IdentityClaims(user_id=user_id, email="secret@example.com")

    await profile_service.ProfileService.resolve_actor(FakeSession(), claims=claims)

    assert calls["create"][0]["display_name"] is None
    assert calls["create"][0]["email"] == "secret@example.com"


@pytest.mark.asyncio
async def test_resolve_actor_for_existing_profile_keeps_roles(monkeypatch) -> None:
    user_id = uuid4()
    calls = _patch_identity_store(
        monkeypatch,
        created=False,
        roles=frozenset({"user", "admin"}),
        profile=_profile(user_id),
    )

    actor = await profile_service.ProfileService.resolve_actor(
        FakeSession(),
        claims=profile_service.IdentityClaims(user_id=user_id),
    )

    assert actor.is_admin
    assert calls["grant"] == []


@pytest.mark.asyncio
async def test_get_own_profile_includes_email_and_totals(monkeypatch) -> None:
    actor = make_actor(email="ana@example.com")

    async def _fake_get_by_user_id(session, user_id):
        return _profile(user_id)

    async def _fake_count_for_user(session, *, user_id):
        return 4

    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id", _fake_get_by_user_id)
    monkeypatch.setattr(profile_service.UserCardsRepo, "count_for_user", _fake_count_for_user)

    snapshot = await profile_service.ProfileService.get_own_profile(FakeSession(), actor=actor)

    assert snapshot.user_id == actor.user_id
    assert snapshot.email == "ana@example.com"
    assert snapshot.total_cards == 4


@pytest.mark.asyncio
async def test_get_own_profile_missing_profile(monkeypatch) -> None:
    async def _fake_get_by_user_id(session, user_id):
        return None

    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id", _fake_get_by_user_id)

    with pytest.raises(ProfileNotFoundError):
        await profile_service.ProfileService.get_own_profile(FakeSession(), actor=make_actor())


@pytest.mark.asyncio
async def test_get_own_profile_requires_actor() -> None:
    with pytest.raises(AuthenticationRequiredError):
        await profile_service.ProfileService.get_own_profile(FakeSession(), actor=None)


@pytest.mark.asyncio
@pytest.mark.parametrize("display_name", ["", "   ", "x" * 65])
async def test_update_own_profile_rejects_bad_display_name(monkeypatch, display_name: str) -> None:
    async def _unexpected(*args, **kwargs):
        raise AssertionError("store must not be touched")

    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id_for_update", _unexpected)

    with pytest.raises(ProfileValidationError):
        await profile_service.ProfileService.update_own_profile(
            FakeSession(),
            actor=make_actor(),
            display_name=display_name,
        )


@pytest.mark.asyncio
async def test_update_own_profile_trims_and_saves(monkeypatch) -> None:
    actor = make_actor()
    stored = _profile(actor.user_id)
    captured: dict[str, object] = {}

    async def _fake_for_update(session, user_id):
        return stored

    async def _fake_update(session, *, profile, display_name, avatar_url, now_utc):
        captured.update(display_name=display_name, avatar_url=avatar_url, now_utc=now_utc)
        profile.display_name = display_name or profile.display_name
        return profile

    async def _fake_get_by_user_id(session, user_id):
        return stored

    async def _fake_count_for_user(session, *, user_id):
        return 0

    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id_for_update", _fake_for_update)
    monkeypatch.setattr(profile_service.ProfilesRepo, "update_public_fields", _fake_update)
    monkeypatch.setattr(profile_service.ProfilesRepo, "get_by_user_id", _fake_get_by_user_id)
    monkeypatch.setattr(profile_service.UserCardsRepo, "count_for_user", _fake_count_for_user)

    snapshot = await profile_service.ProfileService.update_own_profile(
        FakeSession(),
        actor=actor,
        display_name="  Nova   Ana  ",
        now_utc=NOW_UTC,
    )

    assert captured == {"display_name": "Nova Ana", "avatar_url": None, "now_utc": NOW_UTC}
    assert snapshot.display_name == "Nova Ana"
