"""Error handling utilities."""

from typing import Optional


class KejaHuntError(Exception):
    """Base exception for Keja Hunt backend."""
    status_code = 500
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(KejaHuntError):
    """Missing, malformed, expired or otherwise invalid credential."""
    status_code = 401
    default_message = "Token is not valid"


class ForbiddenError(KejaHuntError):
    """Authenticated, but not entitled to the action."""
    status_code = 403
    default_message = "Not authorized"


class NotFoundError(KejaHuntError):
    """Resource id does not resolve."""
    status_code = 404
    default_message = "Not found"


class InvalidInputError(KejaHuntError):
    """Malformed filter or body values."""
    status_code = 400
    default_message = "Invalid input"


class UnavailableError(KejaHuntError):
    """Datastore or storage timeout/outage. Safe to retry for reads."""
    status_code = 503
    default_message = "Service temporarily unavailable"


class InternalError(KejaHuntError):
    """Unexpected failure."""
    pass


class SupabaseError(InternalError):
    """Supabase operation error."""
    pass


class StorageError(InternalError):
    """Object storage operation error."""
    pass


class ConfigurationError(InternalError):
    """Missing or invalid configuration."""
    pass
