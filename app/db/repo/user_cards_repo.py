from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.events import Event
from app.db.models.user_cards import UserCard


class UserCardsRepo:
    @staticmethod
    async def get_by_user_and_event(
        session: AsyncSession,
        *,
        user_id: UUID,
        event_id: UUID,
    ) -> UserCard | None:
        stmt = select(UserCard).where(
            UserCard.user_id == user_id,
            UserCard.event_id == event_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        user_id: UUID,
        event_id: UUID,
        variant: str,
        redeemed_at: datetime,
    ) -> UserCard | None:
        """Inserts the ownership row or returns None when (user, event) already exists.

        The unique constraint decides; callers must not rely on a prior read.
        """
        stmt = (
            insert(UserCard)
            .values(
                user_id=user_id,
                event_id=event_id,
                variant=variant,
                redeemed_at=redeemed_at,
            )
            .on_conflict_do_nothing(
                index_elements=[UserCard.user_id, UserCard.event_id],
            )
            .returning(UserCard)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_with_events_for_user(
        session: AsyncSession,
        *,
        user_id: UUID,
    ) -> list[tuple[UserCard, Event]]:
        stmt = (
            select(UserCard, Event)
            .join(Event, Event.id == UserCard.event_id)
            .where(UserCard.user_id == user_id)
            .order_by(UserCard.redeemed_at.desc(), UserCard.id.asc())
        )
        result = await session.execute(stmt)
        return [(user_card, event) for user_card, event in result.all()]

    @staticmethod
    async def list_owned_event_ids(
        session: AsyncSession,
        *,
        user_id: UUID,
        event_ids: list[UUID],
    ) -> set[UUID]:
        if not event_ids:
            return set()
        stmt = select(UserCard.event_id).where(
            UserCard.user_id == user_id,
            UserCard.event_id.in_(event_ids),
        )
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def count_for_user(session: AsyncSession, *, user_id: UUID) -> int:
        stmt = select(func.count(UserCard.id)).where(UserCard.user_id == user_id)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(UserCard.id)))
        return int(result.scalar_one() or 0)

    @staticmethod
    async def count_by_variant(session: AsyncSession) -> dict[str, int]:
        stmt = select(UserCard.variant, func.count(UserCard.id)).group_by(UserCard.variant)
        result = await session.execute(stmt)
        return {str(variant): int(count) for variant, count in result.all()}
