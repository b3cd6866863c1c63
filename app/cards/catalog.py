from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import Action, Actor, Resource, authorize
from app.cards.errors import SeasonNotFoundError
from app.db.repo.events_repo import EventsRepo
from app.db.repo.seasons_repo import SeasonsRepo
from app.db.repo.user_cards_repo import UserCardsRepo


@dataclass(slots=True)
class SeasonSummary:
    id: UUID
    name: str
    description: str | None
    start_date: date
    end_date: date
    cover_image_url: str | None


@dataclass(slots=True)
class SeasonEventEntry:
    # Redemption codes never leave the admin surface.
    id: UUID
    title: str
    theme: str | None
    preacher: str | None
    event_date: date
    redemption_deadline: datetime
    card_image_url: str
    rarity: str
    redeemed: bool


@dataclass(slots=True)
class SeasonEvents:
    season: SeasonSummary
    events: tuple[SeasonEventEntry, ...]

    @property
    def collected_count(self) -> int:
        return sum(1 for event in self.events if event.redeemed)


def _season_summary(season) -> SeasonSummary:
    return SeasonSummary(
        id=season.id,
        name=season.name,
        description=season.description,
        start_date=season.start_date,
        end_date=season.end_date,
        cover_image_url=season.cover_image_url,
    )


async def list_seasons(session: AsyncSession, *, actor: Actor | None) -> list[SeasonSummary]:
    authorize(actor, Resource.SEASON, Action.READ)
    seasons = await SeasonsRepo.list_newest_first(session)
    return [_season_summary(season) for season in seasons]


async def list_season_events(
    session: AsyncSession,
    *,
    actor: Actor | None,
    season_id: UUID,
) -> SeasonEvents:
    """Events of one season, newest first, flagged with the caller's own redemptions."""
    actor = authorize(actor, Resource.SEASON, Action.READ)
    authorize(actor, Resource.EVENT, Action.READ)
    authorize(actor, Resource.USER_CARD, Action.READ, owner_id=actor.user_id)

    season = await SeasonsRepo.get_by_id(session, season_id)
    if season is None:
        raise SeasonNotFoundError

    events = await EventsRepo.list_for_season(session, season_id, newest_first=True)
    owned = await UserCardsRepo.list_owned_event_ids(
        session,
        user_id=actor.user_id,
        event_ids=[event.id for event in events],
    )
    return SeasonEvents(
        season=_season_summary(season),
        events=tuple(
            SeasonEventEntry(
                id=event.id,
                title=event.title,
                theme=event.theme,
                preacher=event.preacher,
                event_date=event.event_date,
                redemption_deadline=event.redemption_deadline,
                card_image_url=event.card_image_url,
                rarity=event.rarity,
                redeemed=event.id in owned,
            )
            for event in events
        ),
    )
