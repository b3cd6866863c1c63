from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, Field

from app.access.errors import AccessError
from app.admin.errors import AdminSeasonNotFoundError, AdminValidationError
from app.admin.service import AdminService
from app.api.deps import access_error_as_http, http_error, resolve_request_actor
from app.cards.types import CardRarity
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal

router = APIRouter(prefix="/admin", tags=["admin"])


class SeasonCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=128)
    description: str | None = None
    start_date: date
    end_date: date
    cover_image_url: str | None = None


class SeasonResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    cover_image_url: str | None = None


class EventCreateRequest(BaseModel):
    season_id: UUID
    title: str = Field(min_length=1, max_length=160)
    theme: str | None = None
    preacher: str | None = None
    event_date: date
    redemption_deadline: datetime
    card_image_url: str = Field(min_length=1, max_length=2048)
    rarity: CardRarity = CardRarity.COMUM


class EventResponse(BaseModel):
    id: UUID
    season_id: UUID
    title: str
    theme: str | None = None
    preacher: str | None = None
    event_date: date
    redemption_deadline: datetime
    card_image_url: str
    rarity: str
    redemption_code: str
    qr_code_data: str | None = None


class AdminStatsResponse(BaseModel):
    seasons: int = Field(ge=0)
    events: int = Field(ge=0)
    profiles: int = Field(ge=0)
    user_cards: int = Field(ge=0)
    by_variant: dict[str, int]


@router.post("/seasons", response_model=SeasonResponse, status_code=status.HTTP_201_CREATED)
async def create_season(payload: SeasonCreateRequest, request: Request) -> SeasonResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            season = await AdminService.create_season(
                session,
                actor=actor,
                name=payload.name,
                description=payload.description,
                start_date=payload.start_date,
                end_date=payload.end_date,
                cover_image_url=payload.cover_image_url,
            )
            response = SeasonResponse(
                id=season.id,
                name=season.name,
                description=season.description,
                start_date=season.start_date,
                end_date=season.end_date,
                cover_image_url=season.cover_image_url,
            )
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except AdminValidationError as exc:
        raise http_error(422, "E_ADMIN_INVALID_SEASON") from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return response


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(payload: EventCreateRequest, request: Request) -> EventResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            event = await AdminService.create_event(
                session,
                actor=actor,
                season_id=payload.season_id,
                title=payload.title,
                theme=payload.theme,
                preacher=payload.preacher,
                event_date=payload.event_date,
                redemption_deadline=payload.redemption_deadline,
                card_image_url=payload.card_image_url,
                rarity=payload.rarity,
            )
            response = EventResponse(
                id=event.id,
                season_id=event.season_id,
                title=event.title,
                theme=event.theme,
                preacher=event.preacher,
                event_date=event.event_date,
                redemption_deadline=event.redemption_deadline,
                card_image_url=event.card_image_url,
                rarity=event.rarity,
                redemption_code=event.redemption_code,
                qr_code_data=event.qr_code_data,
            )
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except AdminSeasonNotFoundError as exc:
        raise http_error(404, "E_ADMIN_SEASON_NOT_FOUND") from exc
    except AdminValidationError as exc:
        raise http_error(422, "E_ADMIN_INVALID_EVENT") from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return response


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(request: Request) -> AdminStatsResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            stats = await AdminService.get_stats(session, actor=actor)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return AdminStatsResponse(
        seasons=stats.seasons,
        events=stats.events,
        profiles=stats.profiles,
        user_cards=stats.user_cards,
        by_variant=stats.by_variant,
    )
