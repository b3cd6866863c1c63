class CardsError(Exception):
    pass


class SeasonNotFoundError(CardsError):
    pass
