from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import Action, Actor, Resource, authorize
from app.cards.constants import REDEMPTION_MESSAGES
from app.cards.types import CardSnapshot, RedemptionOutcome, RedemptionStatus
from app.cards.variants import RandomSource, draw_variant
from app.core.redemption_codes import CODE_LENGTH, normalize_redemption_code
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.models.events import Event
from app.db.models.user_cards import UserCard
from app.db.repo.events_repo import EventsRepo
from app.db.repo.user_cards_repo import UserCardsRepo
from app.db.session import SessionLocal

logger = structlog.get_logger(__name__)

USER_CARD_UNIQUE_CONSTRAINT = "uq_user_cards_user_event"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _outcome(
    status: RedemptionStatus,
    *,
    normalized_code: str | None = None,
    card: CardSnapshot | None = None,
    user_card_id: UUID | None = None,
) -> RedemptionOutcome:
    return RedemptionOutcome(
        status=status,
        message=REDEMPTION_MESSAGES[status],
        normalized_code=normalized_code,
        card=card,
        user_card_id=user_card_id,
    )


def build_card_snapshot(*, event: Event, user_card: UserCard | None) -> CardSnapshot:
    return CardSnapshot(
        event_id=event.id,
        title=event.title,
        card_image_url=event.card_image_url,
        rarity=event.rarity,
        variant=None if user_card is None else user_card.variant,
        redeemed_at=None if user_card is None else user_card.redeemed_at,
        season_id=event.season_id,
        theme=event.theme,
        preacher=event.preacher,
    )


def _is_user_card_duplicate(exc: IntegrityError) -> bool:
    return USER_CARD_UNIQUE_CONSTRAINT in str(exc.orig)


class RedemptionService:
    @staticmethod
    async def _already_redeemed(
        session: AsyncSession,
        *,
        user_id: UUID,
        event: Event,
        normalized_code: str,
    ) -> RedemptionOutcome | None:
        existing = await UserCardsRepo.get_by_user_and_event(
            session,
            user_id=user_id,
            event_id=event.id,
        )
        if existing is None:
            return None
        return _outcome(
            RedemptionStatus.ALREADY_REDEEMED,
            normalized_code=normalized_code,
            card=build_card_snapshot(event=event, user_card=existing),
            user_card_id=existing.id,
        )

    @staticmethod
    async def _insert_user_card(
        session: AsyncSession,
        *,
        user_id: UUID,
        event: Event,
        variant: str,
        now_utc: datetime,
    ) -> UserCard | None:
        try:
            async with session.begin_nested():
                return await UserCardsRepo.create_once(
                    session,
                    user_id=user_id,
                    event_id=event.id,
                    variant=variant,
                    redeemed_at=now_utc,
                )
        except IntegrityError as exc:
            if not _is_user_card_duplicate(exc):
                raise
            return None

    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        actor: Actor | None,
        code: str,
        now_utc: datetime | None = None,
        rng: RandomSource | None = None,
    ) -> RedemptionOutcome:
        """Runs one redemption attempt inside the caller's transaction.

        Order matters: format, lookup, deadline, existing ownership, draw,
        conditional insert. A lost insert race is reported as ALREADY_REDEEMED.
        """
        actor = authorize(actor, Resource.EVENT, Action.READ)
        authorize(actor, Resource.USER_CARD, Action.WRITE, owner_id=actor.user_id)
        now_utc = _as_utc(now_utc or datetime.now(timezone.utc))

        normalized_code = normalize_redemption_code(code)
        if len(normalized_code) != CODE_LENGTH:
            return _outcome(RedemptionStatus.INVALID_FORMAT, normalized_code=normalized_code)

        event = await EventsRepo.get_by_redemption_code(session, normalized_code)
        if event is None:
            return _outcome(RedemptionStatus.CODE_NOT_FOUND, normalized_code=normalized_code)

        if now_utc > _as_utc(event.redemption_deadline):
            return _outcome(RedemptionStatus.EXPIRED, normalized_code=normalized_code)

        already_redeemed = await RedemptionService._already_redeemed(
            session,
            user_id=actor.user_id,
            event=event,
            normalized_code=normalized_code,
        )
        if already_redeemed is not None:
            return already_redeemed

        variant = draw_variant(rng)
        user_card = await RedemptionService._insert_user_card(
            session,
            user_id=actor.user_id,
            event=event,
            variant=variant.value,
            now_utc=now_utc,
        )
        if user_card is None:
            raced = await RedemptionService._already_redeemed(
                session,
                user_id=actor.user_id,
                event=event,
                normalized_code=normalized_code,
            )
            if raced is not None:
                logger.info(
                    "card_redeem_insert_conflict",
                    user_id=str(actor.user_id),
                    event_id=str(event.id),
                )
                return raced
            # Conflict reported but the winner is not visible yet.
            return _outcome(
                RedemptionStatus.ALREADY_REDEEMED,
                normalized_code=normalized_code,
                card=build_card_snapshot(event=event, user_card=None),
            )

        return _outcome(
            RedemptionStatus.SUCCESS,
            normalized_code=normalized_code,
            card=build_card_snapshot(event=event, user_card=user_card),
            user_card_id=user_card.id,
        )

    @staticmethod
    async def redeem_card(
        *,
        actor: Actor | None,
        code: str,
        now_utc: datetime | None = None,
        rng: RandomSource | None = None,
    ) -> RedemptionOutcome:
        """Owns the transaction; store failures, commit included, become STORE_UNAVAILABLE."""
        now_utc = _as_utc(now_utc or datetime.now(timezone.utc))
        try:
            async with SessionLocal.begin() as session:
                outcome = await RedemptionService.redeem(
                    session,
                    actor=actor,
                    code=code,
                    now_utc=now_utc,
                    rng=rng,
                )
        except STORE_UNAVAILABLE_ERRORS as exc:
            logger.warning(
                "card_redeem_store_unavailable",
                user_id=None if actor is None else str(actor.user_id),
                error_type=type(exc).__name__,
            )
            outcome = _outcome(
                RedemptionStatus.STORE_UNAVAILABLE,
                normalized_code=normalize_redemption_code(code),
            )

        logger.info(
            "card_redeem_outcome",
            user_id=None if actor is None else str(actor.user_id),
            status=outcome.status.value,
            event_id=None if outcome.card is None else str(outcome.card.event_id),
            variant=None if outcome.card is None else outcome.card.variant,
        )
        return outcome
