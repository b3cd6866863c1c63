from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from starlette.requests import Request

from app.access.errors import AuthenticationRequiredError
from app.api import deps
from app.main import app
from tests.fakes import FakeSessionLocal, make_actor

SECRET = "unit-test-secret-unit-test-secret-0001"


def _settings(audience: str | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        auth_jwt_secret=SECRET,
        auth_jwt_algorithm="HS256",
        auth_jwt_audience=audience,
    )


def _token(payload: dict, secret: str = SECRET) -> str:
    return jwt.encode(payload, secret, algorithm="HS256")


def _request(headers: dict[str, str]) -> Request:
    raw_headers = [(key.lower().encode(), value.encode()) for key, value in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw_headers})


def test_decode_identity_claims_reads_optional_claims() -> None:
    user_id = uuid4()
    token = _token({"sub": str(user_id), "email": "ana@example.com", "name": "Ana", "picture": ""})

    claims = deps.decode_identity_claims(token, settings=_settings())

    assert claims.user_id == user_id
    assert claims.email == "ana@example.com"
    assert claims.name == "Ana"
    assert claims.picture is None


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        _token({"sub": str(uuid4())}, secret="another-secret-another-secret-0002"),
        _token({"email": "no-sub@example.com"}),
        _token({"sub": "not-a-uuid"}),
        _token({"sub": str(uuid4()), "exp": datetime.now(timezone.utc) - timedelta(minutes=1)}),
    ],
)
def test_decode_identity_claims_rejects_bad_tokens(token: str) -> None:
    with pytest.raises(AuthenticationRequiredError):
        deps.decode_identity_claims(token, settings=_settings())


def test_decode_identity_claims_checks_audience_when_configured() -> None:
    user_id = uuid4()
    good = _token({"sub": str(user_id), "aud": "cards"})
    bad = _token({"sub": str(user_id), "aud": "other"})

    assert deps.decode_identity_claims(good, settings=_settings("cards")).user_id == user_id
    with pytest.raises(AuthenticationRequiredError):
        deps.decode_identity_claims(bad, settings=_settings("cards"))


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer   abc", "abc"),
        ("Basic Zm9vOmJhcg==", None),
        ("Bearer ", None),
    ],
)
def test_extract_bearer_token(header: str, expected: str | None) -> None:
    assert deps.extract_bearer_token(_request({"Authorization": header})) == expected


def test_extract_bearer_token_missing_header() -> None:
    assert deps.extract_bearer_token(_request({})) is None


@pytest.mark.asyncio
async def test_resolve_request_actor_resolves_profile(monkeypatch) -> None:
    user_id = uuid4()
    expected = make_actor(user_id=user_id)
    captured: dict[str, object] = {}

    async def _fake_resolve_actor(session, *, claims):
        captured["claims"] = claims
        return expected

    monkeypatch.setattr(deps, "get_settings", _settings)
    monkeypatch.setattr(deps, "SessionLocal", FakeSessionLocal())
    monkeypatch.setattr(deps.ProfileService, "resolve_actor", _fake_resolve_actor)

    actor = await deps.resolve_request_actor(
        _request({"Authorization": f"Bearer {_token({'sub': str(user_id), 'name': 'Ana'})}"})
    )

    assert actor is expected
    assert captured["claims"].user_id == user_id


@pytest.mark.asyncio
async def test_resolve_request_actor_rejects_invalid_token(monkeypatch) -> None:
    monkeypatch.setattr(deps, "get_settings", _settings)

    with pytest.raises(HTTPException) as exc_info:
        await deps.resolve_request_actor(_request({"Authorization": "Bearer garbage"}))

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == {"code": "E_UNAUTHORIZED"}


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("post", "/cards/redeem"),
        ("get", "/cards/collection"),
        ("get", "/ranking"),
        ("get", "/profile/me"),
        ("get", "/admin/stats"),
    ],
)
def test_routes_require_bearer_token(method: str, path: str) -> None:
    client = TestClient(app)
    kwargs = {"json": {"code": "ABC-123"}} if method == "post" else {}

    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_UNAUTHORIZED"}}
