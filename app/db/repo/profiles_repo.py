from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.profiles import Profile
from app.db.models.user_roles import UserRole


class ProfilesRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_user_id_for_update(session: AsyncSession, user_id: UUID) -> Profile | None:
        stmt = select(Profile).where(Profile.user_id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_once(
        session: AsyncSession,
        *,
        user_id: UUID,
        display_name: str | None,
        avatar_url: str | None,
        email: str | None,
    ) -> bool:
        stmt = (
            insert(Profile)
            .values(
                user_id=user_id,
                display_name=display_name,
                avatar_url=avatar_url,
                email=email,
            )
            .on_conflict_do_nothing(index_elements=[Profile.user_id])
            .returning(Profile.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def update_public_fields(
        session: AsyncSession,
        *,
        profile: Profile,
        display_name: str | None,
        avatar_url: str | None,
        now_utc: datetime,
    ) -> Profile:
        if display_name is not None:
            profile.display_name = display_name
        if avatar_url is not None:
            profile.avatar_url = avatar_url
        profile.updated_at = now_utc
        await session.flush()
        return profile

    @staticmethod
    async def count_all(session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Profile.id)))
        return int(result.scalar_one() or 0)


class UserRolesRepo:
    @staticmethod
    async def list_roles(session: AsyncSession, user_id: UUID) -> frozenset[str]:
        stmt = select(UserRole.role).where(UserRole.user_id == user_id)
        result = await session.execute(stmt)
        return frozenset(str(role) for role in result.scalars().all())

    @staticmethod
    async def grant_once(session: AsyncSession, *, user_id: UUID, role: str) -> bool:
        stmt = (
            insert(UserRole)
            .values(user_id=user_id, role=role)
            .on_conflict_do_nothing(index_elements=[UserRole.user_id, UserRole.role])
            .returning(UserRole.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
