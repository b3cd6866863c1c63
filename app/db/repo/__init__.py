from app.db.repo.events_repo import EventsRepo
from app.db.repo.profiles_repo import ProfilesRepo, UserRolesRepo
from app.db.repo.ranking_repo import RankingRepo
from app.db.repo.seasons_repo import SeasonsRepo
from app.db.repo.user_cards_repo import UserCardsRepo

__all__ = [
    "EventsRepo",
    "ProfilesRepo",
    "RankingRepo",
    "SeasonsRepo",
    "UserCardsRepo",
    "UserRolesRepo",
]
