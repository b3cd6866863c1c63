from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import DateTime, Integer, Select, String, column, func, select, table
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import AsyncSession

# Owner-privileged view created by the schema migration. It already hides
# private profile columns, so cross-user reads go through it.
ranking_view = table(
    "ranking_view",
    column("user_id", PG_UUID(as_uuid=True)),
    column("display_name", String),
    column("avatar_url", String),
    column("season_id", PG_UUID(as_uuid=True)),
    column("card_count", Integer),
    column("last_redeemed_at", DateTime(timezone=True)),
)

PUBLIC_PROFILE_COLUMNS = (ranking_view.c.display_name, ranking_view.c.avatar_url)


@dataclass(frozen=True, slots=True)
class RankingProjectionRow:
    user_id: UUID
    display_name: str | None
    avatar_url: str | None
    card_count: int


def build_ranking_query(*, season_id: UUID | None, limit: int | None) -> Select:
    # The view is per (user, season); summing folds seasons for the global board.
    card_count = func.sum(ranking_view.c.card_count).label("card_count")
    last_redeemed_at = func.max(ranking_view.c.last_redeemed_at)

    stmt = (
        select(ranking_view.c.user_id, *PUBLIC_PROFILE_COLUMNS, card_count)
        .group_by(ranking_view.c.user_id, *PUBLIC_PROFILE_COLUMNS)
        .order_by(card_count.desc(), last_redeemed_at.asc(), ranking_view.c.user_id.asc())
    )
    if season_id is not None:
        stmt = stmt.where(ranking_view.c.season_id == season_id)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


class RankingRepo:
    @staticmethod
    async def list_ranking(
        session: AsyncSession,
        *,
        viewer_id: UUID,
        season_id: UUID | None,
        limit: int | None,
    ) -> list[RankingProjectionRow]:
        # Transaction-local identity read by app_current_user_id() in the view.
        await session.execute(select(func.set_config("app.current_user_id", str(viewer_id), True)))
        result = await session.execute(build_ranking_query(season_id=season_id, limit=limit))
        return [
            RankingProjectionRow(
                user_id=user_id,
                display_name=display_name,
                avatar_url=avatar_url,
                card_count=int(card_count),
            )
            for user_id, display_name, avatar_url, card_count in result.all()
        ]
