from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.access.policy import ROLE_USER, Action, Actor, Resource, authorize
from app.db.repo.profiles_repo import ProfilesRepo, UserRolesRepo
from app.db.repo.user_cards_repo import UserCardsRepo
from app.profiles.errors import ProfileNotFoundError, ProfileValidationError

logger = structlog.get_logger(__name__)

DISPLAY_NAME_MAX_LENGTH = 64


@dataclass(slots=True)
class IdentityClaims:
    user_id: UUID
    email: str | None = None
    name: str | None = None
    picture: str | None = None


@dataclass(slots=True)
class OwnProfileSnapshot:
    user_id: UUID
    display_name: str | None
    avatar_url: str | None
    email: str | None
    total_cards: int
    roles: frozenset[str]


def _clean_display_name(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = " ".join(value.split())
    if not cleaned or len(cleaned) > DISPLAY_NAME_MAX_LENGTH:
        raise ProfileValidationError
    return cleaned


def _initial_display_name(claims: IdentityClaims) -> str | None:
    # Never seeded from the email: the display name is cross-user visible.
    if not claims.name:
        return None
    cleaned = " ".join(claims.name.split())
    return cleaned[:DISPLAY_NAME_MAX_LENGTH] or None


class ProfileService:
    @staticmethod
    async def resolve_actor(session: AsyncSession, *, claims: IdentityClaims) -> Actor:
        created = await ProfilesRepo.create_once(
            session,
            user_id=claims.user_id,
            display_name=_initial_display_name(claims),
            avatar_url=claims.picture,
            email=claims.email,
        )
        if created:
            await UserRolesRepo.grant_once(session, user_id=claims.user_id, role=ROLE_USER)
            logger.info("profile_created", user_id=str(claims.user_id))

        roles = await UserRolesRepo.list_roles(session, claims.user_id)
        profile = await ProfilesRepo.get_by_user_id(session, claims.user_id)
        return Actor(
            user_id=claims.user_id,
            roles=roles or frozenset({ROLE_USER}),
            email=claims.email,
            display_name=None if profile is None else profile.display_name,
            avatar_url=None if profile is None else profile.avatar_url,
        )

    @staticmethod
    async def get_own_profile(session: AsyncSession, *, actor: Actor | None) -> OwnProfileSnapshot:
        actor = authorize(actor, Resource.PROFILE_PUBLIC, Action.READ)
        authorize(actor, Resource.PROFILE_PRIVATE, Action.READ, owner_id=actor.user_id)

        profile = await ProfilesRepo.get_by_user_id(session, actor.user_id)
        if profile is None:
            raise ProfileNotFoundError

        total_cards = await UserCardsRepo.count_for_user(session, user_id=actor.user_id)
        return OwnProfileSnapshot(
            user_id=profile.user_id,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
            email=profile.email,
            total_cards=total_cards,
            roles=actor.roles,
        )

    @staticmethod
    async def update_own_profile(
        session: AsyncSession,
        *,
        actor: Actor | None,
        display_name: str | None = None,
        avatar_url: str | None = None,
        now_utc: datetime | None = None,
    ) -> OwnProfileSnapshot:
        actor = authorize(actor, Resource.PROFILE_PUBLIC, Action.READ)
        authorize(actor, Resource.PROFILE_PUBLIC, Action.UPDATE, owner_id=actor.user_id)
        now_utc = now_utc or datetime.now(timezone.utc)

        cleaned_name = _clean_display_name(display_name)
        cleaned_avatar = avatar_url.strip() if avatar_url is not None else None

        profile = await ProfilesRepo.get_by_user_id_for_update(session, actor.user_id)
        if profile is None:
            raise ProfileNotFoundError

        await ProfilesRepo.update_public_fields(
            session,
            profile=profile,
            display_name=cleaned_name,
            avatar_url=cleaned_avatar or None,
            now_utc=now_utc,
        )
        logger.info(
            "profile_updated",
            user_id=str(actor.user_id),
            display_name_changed=cleaned_name is not None,
            avatar_changed=bool(cleaned_avatar),
        )
        return await ProfileService.get_own_profile(session, actor=actor)
