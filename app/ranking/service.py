from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import Action, Actor, Resource, authorize
from app.db.errors import STORE_UNAVAILABLE_ERRORS
from app.db.repo.ranking_repo import RankingRepo
from app.ranking.errors import RankingUnavailableError
from app.ranking.types import RankingRow

logger = structlog.get_logger(__name__)

RANKING_MAX_LIMIT = 500


async def compute_ranking(
    session: AsyncSession,
    *,
    actor: Actor | None,
    season_id: UUID | None = None,
    limit: int | None = None,
) -> list[RankingRow]:
    """Leaderboard by card count for one season, or all seasons when season_id is None.

    Ordered by card_count desc, then by who reached that count first, then by
    user_id. Only users with at least one card appear. Without a limit every
    such user is returned.
    """
    actor = authorize(actor, Resource.RANKING_PROJECTION, Action.READ)
    bounded_limit = None if limit is None else max(1, min(limit, RANKING_MAX_LIMIT))

    try:
        rows = await RankingRepo.list_ranking(
            session,
            viewer_id=actor.user_id,
            season_id=season_id,
            limit=bounded_limit,
        )
    except STORE_UNAVAILABLE_ERRORS as exc:
        logger.warning(
            "ranking_store_unavailable",
            season_id=None if season_id is None else str(season_id),
            error_type=type(exc).__name__,
        )
        raise RankingUnavailableError from exc

    return [
        RankingRow(
            rank=position,
            user_id=row.user_id,
            display_name=row.display_name,
            avatar_url=row.avatar_url,
            card_count=row.card_count,
            season_id=season_id,
        )
        for position, row in enumerate(rows, start=1)
        if row.card_count > 0
    ]
