from app.profiles.service import IdentityClaims, OwnProfileSnapshot, ProfileService

__all__ = ["IdentityClaims", "OwnProfileSnapshot", "ProfileService"]
