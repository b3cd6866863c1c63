from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.access.errors import AccessError
from app.api.deps import access_error_as_http, http_error, resolve_request_actor
from app.cards.catalog import SeasonSummary, list_season_events, list_seasons
from app.cards.errors import SeasonNotFoundError
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal

router = APIRouter(prefix="/seasons", tags=["seasons"])


class SeasonResponse(BaseModel):
    id: UUID
    name: str
    description: str | None = None
    start_date: date
    end_date: date
    cover_image_url: str | None = None


class SeasonListResponse(BaseModel):
    seasons: list[SeasonResponse]


class SeasonEventResponse(BaseModel):
    id: UUID
    title: str
    theme: str | None = None
    preacher: str | None = None
    event_date: date
    redemption_deadline: datetime
    card_image_url: str
    rarity: str
    redeemed: bool


class SeasonEventsResponse(BaseModel):
    season: SeasonResponse
    total: int = Field(ge=0)
    collected: int = Field(ge=0)
    events: list[SeasonEventResponse]


def _season_as_response(season: SeasonSummary) -> SeasonResponse:
    return SeasonResponse(
        id=season.id,
        name=season.name,
        description=season.description,
        start_date=season.start_date,
        end_date=season.end_date,
        cover_image_url=season.cover_image_url,
    )


@router.get("", response_model=SeasonListResponse)
async def get_seasons(request: Request) -> SeasonListResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            seasons = await list_seasons(session, actor=actor)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc
    return SeasonListResponse(seasons=[_season_as_response(season) for season in seasons])


@router.get("/{season_id}/events", response_model=SeasonEventsResponse)
async def get_season_events(season_id: UUID, request: Request) -> SeasonEventsResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            listing = await list_season_events(session, actor=actor, season_id=season_id)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except SeasonNotFoundError as exc:
        raise http_error(404, "E_SEASON_NOT_FOUND") from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc

    return SeasonEventsResponse(
        season=_season_as_response(listing.season),
        total=len(listing.events),
        collected=listing.collected_count,
        events=[
            SeasonEventResponse(
                id=event.id,
                title=event.title,
                theme=event.theme,
                preacher=event.preacher,
                event_date=event.event_date,
                redemption_deadline=event.redemption_deadline,
                card_image_url=event.card_image_url,
                rarity=event.rarity,
                redeemed=event.redeemed,
            )
            for event in listing.events
        ],
    )
