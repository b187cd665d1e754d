"""Domain-specific exceptions for venues services."""


class VenuesServiceError(Exception):
    """Base exception for venues services."""
    pass


class VenueNotFoundError(VenuesServiceError):
    """Raised when venue does not exist or is not visible."""
    pass


class BusinessNotFoundError(VenuesServiceError):
    """Raised when business does not exist."""
    pass


class InvalidFilterError(VenuesServiceError):
    """Raised when search filters fail range or type validation."""
    pass


class InvalidCoordinatesError(VenuesServiceError):
    """Raised when a venue location is out of range or half-specified."""
    pass


class InvalidModerationTransitionError(VenuesServiceError):
    """Raised when a moderation action does not apply to the current status."""
    pass
