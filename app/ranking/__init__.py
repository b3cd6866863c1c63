from app.ranking.errors import RankingError, RankingUnavailableError
from app.ranking.service import compute_ranking
from app.ranking.types import RankingRow

__all__ = [
    "RankingError",
    "RankingRow",
    "RankingUnavailableError",
    "compute_ranking",
]
