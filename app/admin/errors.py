class AdminError(Exception):
    pass


class AdminSeasonNotFoundError(AdminError):
    pass


class AdminValidationError(AdminError):
    pass
