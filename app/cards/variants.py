from __future__ import annotations

import random
from typing import Protocol

from app.cards.constants import FALLBACK_VARIANT, VARIANT_DRAW_SCALE, VARIANT_DRAW_TABLE
from app.cards.types import CardVariant


class RandomSource(Protocol):
    def random(self) -> float: ...


_system_random = random.SystemRandom()


def draw_variant(rng: RandomSource | None = None) -> CardVariant:
    """Weighted draw over VARIANT_DRAW_TABLE; always returns a variant."""
    source = rng if rng is not None else _system_random
    roll = source.random() * VARIANT_DRAW_SCALE

    cumulative = 0
    for variant, weight in VARIANT_DRAW_TABLE:
        cumulative += weight
        if roll < cumulative:
            return variant
    return FALLBACK_VARIANT
