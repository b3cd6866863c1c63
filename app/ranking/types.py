from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class RankingRow:
    rank: int
    user_id: UUID
    display_name: str | None
    avatar_url: str | None
    card_count: int
    season_id: UUID | None = None
