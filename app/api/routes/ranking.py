from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from app.access.errors import AccessError
from app.api.deps import access_error_as_http, http_error, resolve_request_actor
from app.core.config import get_settings
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal
from app.ranking.errors import RankingUnavailableError
from app.ranking.service import RANKING_MAX_LIMIT, compute_ranking

router = APIRouter(tags=["ranking"])


class RankingEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    user_id: UUID
    display_name: str | None = None
    avatar_url: str | None = None
    card_count: int = Field(ge=1)


class RankingResponse(BaseModel):
    season_id: UUID | None = None
    entries: list[RankingEntryResponse]


@router.get("/ranking", response_model=RankingResponse)
async def get_ranking(
    request: Request,
    season_id: UUID | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=RANKING_MAX_LIMIT),
) -> RankingResponse:
    actor = await resolve_request_actor(request)
    resolved_limit = limit if limit is not None else get_settings().ranking_default_limit
    try:
        async with SessionLocal.begin() as session:
            rows = await compute_ranking(
                session,
                actor=actor,
                season_id=season_id,
                limit=resolved_limit,
            )
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except (RankingUnavailableError, *STORE_UNAVAILABLE_ERRORS) as exc:
        raise http_error(503, "E_RANKING_UNAVAILABLE") from exc

    return RankingResponse(
        season_id=season_id,
        entries=[
            RankingEntryResponse(
                rank=row.rank,
                user_id=row.user_id,
                display_name=row.display_name,
                avatar_url=row.avatar_url,
                card_count=row.card_count,
            )
            for row in rows
        ],
    )
