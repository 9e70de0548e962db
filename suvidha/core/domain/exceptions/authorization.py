"""Authorization exceptions."""

from .base import SuvidhaError


class UnauthorizedError(SuvidhaError):
    """Operation requires an authenticated citizen and none is present."""

    error_code = "SUV_AUTH_001"


class ForbiddenError(SuvidhaError):
    """Authenticated or not, the caller may not access this resource."""

    error_code = "SUV_AUTH_002"
