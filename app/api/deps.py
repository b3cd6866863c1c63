from __future__ import annotations

from uuid import UUID

import jwt
import structlog
from fastapi import HTTPException, Request

from app.access.errors import AccessError, AuthenticationRequiredError
from app.access.policy import Actor
from app.core.config import Settings, get_settings
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal
from app.profiles.service import IdentityClaims, ProfileService

logger = structlog.get_logger(__name__)


def http_error(status_code: int, code: str, message: str | None = None) -> HTTPException:
    detail: dict[str, str] = {"code": code}
    if message is not None:
        detail["message"] = message
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def access_error_as_http(exc: AccessError) -> HTTPException:
    if isinstance(exc, AuthenticationRequiredError):
        return http_error(401, "E_UNAUTHORIZED")
    return http_error(403, "E_FORBIDDEN")


def extract_bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def decode_identity_claims(token: str, *, settings: Settings | None = None) -> IdentityClaims:
    resolved_settings = settings or get_settings()
    audience = resolved_settings.auth_jwt_audience
    try:
        payload = jwt.decode(
            token,
            resolved_settings.auth_jwt_secret,
            algorithms=[resolved_settings.auth_jwt_algorithm],
            audience=audience,
            options={"require": ["sub"], "verify_aud": audience is not None},
        )
        user_id = UUID(str(payload["sub"]))
    except (jwt.InvalidTokenError, ValueError) as exc:
        raise AuthenticationRequiredError from exc

    def _optional_claim(name: str) -> str | None:
        value = payload.get(name)
        return value if isinstance(value, str) and value else None

    return IdentityClaims(
        user_id=user_id,
        email=_optional_claim("email"),
        name=_optional_claim("name"),
        picture=_optional_claim("picture"),
    )


async def resolve_request_actor(request: Request) -> Actor:
    token = extract_bearer_token(request)
    if token is None:
        raise http_error(401, "E_UNAUTHORIZED")

    try:
        claims = decode_identity_claims(token)
    except AuthenticationRequiredError as exc:
        logger.info("auth_token_rejected", reason=type(exc.__cause__).__name__)
        raise http_error(401, "E_UNAUTHORIZED") from exc

    try:
        async with SessionLocal.begin() as session:
            return await ProfileService.resolve_actor(session, claims=claims)
    except STORE_UNAVAILABLE_ERRORS as exc:
        logger.warning("auth_actor_store_unavailable", error_type=type(exc).__name__)
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
