class RankingError(Exception):
    pass


class RankingUnavailableError(RankingError):
    pass
