from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from app.access.errors import AccessError
from app.api.deps import access_error_as_http, http_error, resolve_request_actor
from app.cards.collection import list_collection
from app.cards.service import RedemptionService
from app.cards.types import CardSnapshot, RedemptionOutcome, RedemptionStatus
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.session import SessionLocal

router = APIRouter(prefix="/cards", tags=["cards"])

_FAILURE_HTTP_CODES: dict[RedemptionStatus, tuple[int, str]] = {
    RedemptionStatus.INVALID_FORMAT: (422, "E_REDEEM_INVALID_FORMAT"),
    RedemptionStatus.CODE_NOT_FOUND: (404, "E_REDEEM_CODE_NOT_FOUND"),
    RedemptionStatus.EXPIRED: (410, "E_REDEEM_EXPIRED"),
    RedemptionStatus.STORE_UNAVAILABLE: (503, "E_STORE_UNAVAILABLE"),
}


class RedeemCardRequest(BaseModel):
    # Raw input; QR payloads and lowercase codes are normalized server side.
    code: str = Field(min_length=1, max_length=256)


class CardResponse(BaseModel):
    event_id: UUID
    season_id: UUID | None = None
    title: str
    theme: str | None = None
    preacher: str | None = None
    card_image_url: str
    rarity: str
    variant: str | None = None
    redeemed_at: datetime | None = None


class RedeemCardResponse(BaseModel):
    status: str
    message: str
    code: str | None = None
    card: CardResponse | None = None


class CollectionResponse(BaseModel):
    user_id: UUID
    total: int = Field(ge=0)
    variant_stats: dict[str, int]
    cards: list[CardResponse]


def _card_as_response(card: CardSnapshot) -> CardResponse:
    return CardResponse(
        event_id=card.event_id,
        season_id=card.season_id,
        title=card.title,
        theme=card.theme,
        preacher=card.preacher,
        card_image_url=card.card_image_url,
        rarity=card.rarity,
        variant=card.variant,
        redeemed_at=card.redeemed_at,
    )


def _outcome_as_response(outcome: RedemptionOutcome) -> RedeemCardResponse:
    failure = _FAILURE_HTTP_CODES.get(outcome.status)
    if failure is not None:
        status_code, error_code = failure
        raise http_error(status_code, error_code, outcome.message)
    return RedeemCardResponse(
        status=outcome.status.value,
        message=outcome.message,
        code=outcome.normalized_code,
        card=None if outcome.card is None else _card_as_response(outcome.card),
    )


@router.post("/redeem", response_model=RedeemCardResponse)
async def redeem_card(payload: RedeemCardRequest, request: Request) -> RedeemCardResponse:
    actor = await resolve_request_actor(request)
    try:
        outcome = await RedemptionService.redeem_card(actor=actor, code=payload.code)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    return _outcome_as_response(outcome)


@router.get("/collection", response_model=CollectionResponse)
async def get_collection(request: Request) -> CollectionResponse:
    actor = await resolve_request_actor(request)
    try:
        async with SessionLocal.begin() as session:
            collection = await list_collection(session, actor=actor, user_id=actor.user_id)
    except AccessError as exc:
        raise access_error_as_http(exc) from exc
    except STORE_UNAVAILABLE_ERRORS as exc:
        raise http_error(503, "E_STORE_UNAVAILABLE") from exc

    return CollectionResponse(
        user_id=collection.user_id,
        total=collection.total,
        variant_stats=collection.variant_stats,
        cards=[_card_as_response(card) for card in collection.cards],
    )
