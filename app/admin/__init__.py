from app.admin.errors import AdminError, AdminSeasonNotFoundError, AdminValidationError
from app.admin.service import AdminService, AdminStats

__all__ = [
    "AdminError",
    "AdminSeasonNotFoundError",
    "AdminService",
    "AdminStats",
    "AdminValidationError",
]
