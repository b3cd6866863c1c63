from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.access.errors import AccessError
from app.api.deps import access_error_as_http, http_error, resolve_request_actor
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal
from app.profiles.errors import ProfileNotFoundError, ProfileValidationError
from app.profiles.service import OwnProfileSnapshot, ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    display_name: str | None = Field(default=None, max_length=256)
    avatar_url: str | None = Field(default=None, max_length=2048)


class OwnProfileResponse(BaseModel):
    user_id: UUID
    display_name: str | None = None
    avatar_url: str | None = None
    email: str | None = None
    total_cards: int = Field(ge=0)
    roles: list[str]


def _as_response(snapshot: OwnProfileSnapshot) -> OwnProfileResponse:
    return OwnProfileResponse(
        user_id=snapshot.user_id,
        display_name=snapshot.display_name,
        avatar_url=snapshot.avatar_url,
        email=snapshot.email,
        total_cards=snapshot.total_cards,
        roles=sorted(snapshot.roles),
    )


@router.get("/me", response_model=OwnProfileResponse)
async def get_my_profile(request: Request) -> OwnProfileResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await ProfileService.get_own_profile(session, actor=actor)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except ProfileNotFoundError as exc:
        raise http_error(404, "E_PROFILE_NOT_FOUND") from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return _as_response(snapshot)


@router.patch("/me", response_model=OwnProfileResponse)
async def update_my_profile(payload: ProfileUpdateRequest, request: Request) -> OwnProfileResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            snapshot = await ProfileService.update_own_profile(
                session,
                actor=actor,
                display_name=payload.display_name,
                avatar_url=payload.avatar_url,
            )
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except ProfileValidationError as exc:
        raise http_error(422, "E_PROFILE_INVALID", "display_name must have 1 to 64 characters") from exc
    except ProfileNotFoundError as exc:
        raise http_error(404, "E_PROFILE_NOT_FOUND") from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return _as_response(snapshot)
