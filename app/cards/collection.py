from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import Action, Actor, Resource, authorize
from app.cards.service import build_card_snapshot
from app.cards.types import CardVariant, CollectionSnapshot
from app.db.repo.user_cards_repo import UserCardsRepo


def empty_variant_stats() -> dict[str, int]:
    return {variant.value: 0 for variant in CardVariant}


async def list_collection(
    session: AsyncSession,
    *,
    actor: Actor | None,
    user_id: UUID,
) -> CollectionSnapshot:
    authorize(actor, Resource.USER_CARD, Action.READ, owner_id=user_id)

    rows = await UserCardsRepo.list_with_events_for_user(session, user_id=user_id)
    cards = tuple(build_card_snapshot(event=event, user_card=user_card) for user_card, event in rows)

    variant_stats = empty_variant_stats()
    for card in cards:
        if card.variant in variant_stats:
            variant_stats[card.variant] += 1

    return CollectionSnapshot(user_id=user_id, cards=cards, variant_stats=variant_stats)
