from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.seasons import Season


class SeasonsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, season_id: UUID) -> Season | None:
        return await session.get(Season, season_id)

    @staticmethod
    async def list_newest_first(session: AsyncSession) -> list[Season]:
        stmt = select(Season).order_by(Season.start_date.desc(), Season.name.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, season: Season) -> Season:
        session.add(season)
        await session.flush()
        return season

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Season.id)))
        return int(result.scalar_one() or 0)
