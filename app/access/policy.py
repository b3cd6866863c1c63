"""Row-level authorization rules shared by every service entry point.

The same table is mirrored as PostgreSQL RLS policies in the initial
migration; this module is what the application enforces before it touches
the store, since the API connects with a single database role.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

import structlog

from app.access.errors import AccessDeniedError, AuthenticationRequiredError

logger = structlog.get_logger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"


class Resource(str, Enum):
    EVENT = "event"
    SEASON = "season"
    USER_CARD = "user_card"
    RANKING_PROJECTION = "ranking_projection"
    PROFILE_PUBLIC = "profile_public"
    PROFILE_PRIVATE = "profile_private"
    STATS = "stats"


class Action(str, Enum):
    READ = "read"
    WRITE = "write"
    UPDATE = "update"
    DELETE = "delete"


class Rule(str, Enum):
    ANY_AUTHENTICATED = "any_authenticated"
    OWNER = "owner"
    OWNER_OR_ADMIN = "owner_or_admin"
    ADMIN = "admin"
    NOBODY = "nobody"


POLICY: dict[tuple[Resource, Action], Rule] = {
    (Resource.EVENT, Action.READ): Rule.ANY_AUTHENTICATED,
    (Resource.EVENT, Action.WRITE): Rule.ADMIN,
    (Resource.EVENT, Action.UPDATE): Rule.ADMIN,
    (Resource.EVENT, Action.DELETE): Rule.ADMIN,
    (Resource.SEASON, Action.READ): Rule.ANY_AUTHENTICATED,
    (Resource.SEASON, Action.WRITE): Rule.ADMIN,
    (Resource.SEASON, Action.UPDATE): Rule.ADMIN,
    (Resource.SEASON, Action.DELETE): Rule.ADMIN,
    # Raw ownership rows: the owner, plus admins for support.
    (Resource.USER_CARD, Action.READ): Rule.OWNER_OR_ADMIN,
    (Resource.USER_CARD, Action.WRITE): Rule.OWNER,
    (Resource.USER_CARD, Action.UPDATE): Rule.NOBODY,
    (Resource.USER_CARD, Action.DELETE): Rule.NOBODY,
    (Resource.RANKING_PROJECTION, Action.READ): Rule.ANY_AUTHENTICATED,
    (Resource.RANKING_PROJECTION, Action.WRITE): Rule.NOBODY,
    (Resource.RANKING_PROJECTION, Action.UPDATE): Rule.NOBODY,
    (Resource.RANKING_PROJECTION, Action.DELETE): Rule.NOBODY,
    (Resource.PROFILE_PUBLIC, Action.READ): Rule.ANY_AUTHENTICATED,
    (Resource.PROFILE_PUBLIC, Action.WRITE): Rule.OWNER,
    (Resource.PROFILE_PUBLIC, Action.UPDATE): Rule.OWNER,
    (Resource.PROFILE_PUBLIC, Action.DELETE): Rule.NOBODY,
    (Resource.PROFILE_PRIVATE, Action.READ): Rule.OWNER,
    (Resource.PROFILE_PRIVATE, Action.WRITE): Rule.OWNER,
    (Resource.PROFILE_PRIVATE, Action.UPDATE): Rule.OWNER,
    (Resource.PROFILE_PRIVATE, Action.DELETE): Rule.NOBODY,
    (Resource.STATS, Action.READ): Rule.ADMIN,
    (Resource.STATS, Action.WRITE): Rule.NOBODY,
    (Resource.STATS, Action.UPDATE): Rule.NOBODY,
    (Resource.STATS, Action.DELETE): Rule.NOBODY,
}


@dataclass(frozen=True, slots=True)
class Actor:
    user_id: UUID
    roles: frozenset[str] = field(default_factory=lambda: frozenset({ROLE_USER}))
    email: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles


def is_allowed(
    actor: Actor | None,
    resource: Resource,
    action: Action,
    *,
    owner_id: UUID | None = None,
) -> bool:
    if actor is None:
        return False

    rule = POLICY.get((resource, action), Rule.NOBODY)
    if rule is Rule.ANY_AUTHENTICATED:
        return True
    if rule is Rule.ADMIN:
        return actor.is_admin
    if rule is Rule.OWNER:
        return owner_id is not None and owner_id == actor.user_id
    if rule is Rule.OWNER_OR_ADMIN:
        return actor.is_admin or (owner_id is not None and owner_id == actor.user_id)
    return False


def authorize(
    actor: Actor | None,
    resource: Resource,
    action: Action,
    *,
    owner_id: UUID | None = None,
) -> Actor:
    if actor is None:
        raise AuthenticationRequiredError

    if not is_allowed(actor, resource, action, owner_id=owner_id):
        logger.warning(
            "access_denied",
            user_id=str(actor.user_id),
            resource=resource.value,
            action=action.value,
            owner_id=None if owner_id is None else str(owner_id),
        )
        raise AccessDeniedError
    return actor
