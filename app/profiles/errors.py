class ProfileError(Exception):
    pass


class ProfileNotFoundError(ProfileError):
    pass


class ProfileValidationError(ProfileError):
    pass
