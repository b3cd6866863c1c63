from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class CardRarity(str, Enum):
    COMUM = "comum"
    RARO = "raro"
    EPICO = "epico"
    LENDARIO = "lendario"


class CardVariant(str, Enum):
    """Ordered by increasing scarcity."""

    COMUM = "comum"
    EDICAO_DIAMANTE = "edicao_diamante"
    HOLOGRAFICA = "holografica"
    RELIQUIA = "reliquia"


class RedemptionStatus(str, Enum):
    SUCCESS = "SUCCESS"
    INVALID_FORMAT = "INVALID_FORMAT"
    CODE_NOT_FOUND = "CODE_NOT_FOUND"
    EXPIRED = "EXPIRED"
    ALREADY_REDEEMED = "ALREADY_REDEEMED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


@dataclass(slots=True)
class CardSnapshot:
    event_id: UUID
    title: str
    card_image_url: str
    rarity: str
    # None only when a concurrent winner is not yet visible.
    variant: str | None
    redeemed_at: datetime | None
    season_id: UUID | None = None
    theme: str | None = None
    preacher: str | None = None


@dataclass(slots=True)
class RedemptionOutcome:
    status: RedemptionStatus
    message: str
    normalized_code: str | None = None
    card: CardSnapshot | None = None
    user_card_id: UUID | None = None


@dataclass(slots=True)
class CollectionSnapshot:
    user_id: UUID
    cards: tuple[CardSnapshot, ...]
    variant_stats: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.cards)
