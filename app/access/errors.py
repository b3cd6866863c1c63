class AccessError(Exception):
    pass


class AuthenticationRequiredError(AccessError):
    pass


class AccessDeniedError(AccessError):
    pass
