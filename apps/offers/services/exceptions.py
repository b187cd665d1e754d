"""Domain exceptions for offers app."""


class OffersServiceError(Exception):
    """Base exception for all offers service errors."""
    pass


class OfferNotFoundError(OffersServiceError):
    """Offer does not exist or has been deleted."""
    pass


class NotRedeemableError(OffersServiceError):
    """Offer is inactive, unapproved, outside its window, or sold out."""
    pass


class UserLimitExceededError(OffersServiceError):
    """User already redeemed this offer as many times as allowed."""
    pass


class ContentionExceededError(OffersServiceError):
    """Redemption kept failing on lock contention; safe to retry later."""
    pass


class RedemptionNotFoundError(OffersServiceError):
    """Redemption does not exist for this offer or code."""
    pass


class InvalidRedemptionStateError(OffersServiceError):
    """Redemption cannot move to the requested status."""
    pass


class UnauthorizedRedemptionActionError(OffersServiceError):
    """User cannot act on this redemption."""
    pass


class InvalidOfferError(OffersServiceError):
    """Offer data is inconsistent (dates, limits, pricing)."""
    pass


class InvalidModerationTransitionError(OffersServiceError):
    """Offer is already in the requested moderation status."""
    pass
