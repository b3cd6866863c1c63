from app.db.models.events import Event
from app.db.models.profiles import Profile
from app.db.models.seasons import Season
from app.db.models.user_cards import UserCard
from app.db.models.user_roles import UserRole

__all__ = [
    "Event",
    "Profile",
    "Season",
    "UserCard",
    "UserRole",
]
