from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import Action, Actor, Resource, authorize
from app.admin.errors import AdminSeasonNotFoundError, AdminValidationError
from app.cards.collection import empty_variant_stats
from app.cards.types import CardRarity
from app.core.redemption_codes import generate_unique_redemption_code
from app.db.models.events import Event
from app.db.models.seasons import Season
from app.db.repo.events_repo import EventsRepo
from app.db.repo.profiles_repo import ProfilesRepo
from app.db.repo.seasons_repo import SeasonsRepo
from app.db.repo.user_cards_repo import UserCardsRepo

logger = structlog.get_logger(__name__)

CODE_GENERATION_MAX_ATTEMPTS = 50
EVENT_INSERT_MAX_ATTEMPTS = 3
EVENT_CODE_UNIQUE_CONSTRAINT = "uq_events_redemption_code"


@dataclass(slots=True)
class AdminStats:
    seasons: int
    events: int
    profiles: int
    user_cards: int
    by_variant: dict[str, int]


def _required_text(value: str, *, max_length: int) -> str:
    cleaned = value.strip()
    if not cleaned or len(cleaned) > max_length:
        raise AdminValidationError
    return cleaned


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class AdminService:
    @staticmethod
    async def create_season(
        session: AsyncSession,
        *,
        actor: Actor | None,
        name: str,
        start_date: date,
        end_date: date,
        description: str | None = None,
        cover_image_url: str | None = None,
    ) -> Season:
        actor = authorize(actor, Resource.SEASON, Action.WRITE)
        if end_date < start_date:
            raise AdminValidationError

        season = await SeasonsRepo.create(
            session,
            season=Season(
                name=_required_text(name, max_length=128),
                description=_optional_text(description),
                start_date=start_date,
                end_date=end_date,
                cover_image_url=_optional_text(cover_image_url),
            ),
        )
        logger.info("admin_season_created", season_id=str(season.id), admin_user_id=str(actor.user_id))
        return season

    @staticmethod
    async def create_event(
        session: AsyncSession,
        *,
        actor: Actor | None,
        season_id: UUID,
        title: str,
        event_date: date,
        redemption_deadline: datetime,
        card_image_url: str,
        rarity: CardRarity = CardRarity.COMUM,
        theme: str | None = None,
        preacher: str | None = None,
    ) -> Event:
        actor = authorize(actor, Resource.EVENT, Action.WRITE)
        if redemption_deadline.tzinfo is None or redemption_deadline.utcoffset() is None:
            raise AdminValidationError

        season = await SeasonsRepo.get_by_id(session, season_id)
        if season is None:
            raise AdminSeasonNotFoundError

        clean_title = _required_text(title, max_length=160)
        clean_image_url = _required_text(card_image_url, max_length=2048)
        rarity_value = CardRarity(rarity).value

        async def code_exists(candidate: str) -> bool:
            return await EventsRepo.redemption_code_exists(session, candidate)

        event: Event | None = None
        for _ in range(EVENT_INSERT_MAX_ATTEMPTS):
            code = await generate_unique_redemption_code(
                code_exists,
                max_attempts=CODE_GENERATION_MAX_ATTEMPTS,
            )
            try:
                async with session.begin_nested():
                    event = await EventsRepo.create(
                        session,
                        event=Event(
                            season_id=season.id,
                            title=clean_title,
                            theme=_optional_text(theme),
                            preacher=_optional_text(preacher),
                            event_date=event_date,
                            redemption_deadline=redemption_deadline,
                            card_image_url=clean_image_url,
                            rarity=rarity_value,
                            redemption_code=code,
                            qr_code_data=code,
                        ),
                    )
            except IntegrityError as exc:
                # Another writer took the code between the check and the insert.
                if EVENT_CODE_UNIQUE_CONSTRAINT not in str(exc.orig):
                    raise
                logger.info("admin_event_code_collision", season_id=str(season.id))
                continue
            break
        if event is None:
            raise RuntimeError("Unable to insert event with a unique redemption code")

        logger.info(
            "admin_event_created",
            event_id=str(event.id),
            season_id=str(season.id),
            rarity=event.rarity,
            admin_user_id=str(actor.user_id),
        )
        return event

    @staticmethod
    async def get_stats(session: AsyncSession, *, actor: Actor | None) -> AdminStats:
        authorize(actor, Resource.STATS, Action.READ)

        by_variant = empty_variant_stats()
        for variant, count in (await UserCardsRepo.count_by_variant(session)).items():
            by_variant[variant] = count

        return AdminStats(
            seasons=await SeasonsRepo.count_all(session),
            events=await EventsRepo.count_all(session),
            profiles=await ProfilesRepo.count_all(session),
            user_cards=await UserCardsRepo.count_all(session),
            by_variant=by_variant,
        )
