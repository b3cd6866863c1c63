from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.events import Event


class EventsRepo:
    @staticmethod
    async def get_by_redemption_code(session: AsyncSession, redemption_code: str) -> Event | None:
        stmt = select(Event).where(Event.redemption_code == redemption_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def redemption_code_exists(session: AsyncSession, redemption_code: str) -> bool:
        stmt = select(Event.id).where(Event.redemption_code == redemption_code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def list_for_season(
        session: AsyncSession,
        season_id: UUID,
        *,
        newest_first: bool = False,
    ) -> list[Event]:
        event_date_order = Event.event_date.desc() if newest_first else Event.event_date.asc()
        stmt = (
            select(Event)
            .where(Event.season_id == season_id)
            .order_by(event_date_order, Event.title.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, event: Event) -> Event:
        session.add(event)
        await session.flush()
        return event

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Event.id)))
        return int(result.scalar_one() or 0)
