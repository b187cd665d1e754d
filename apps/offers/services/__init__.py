"""Services for offer business logic."""

from .exceptions import (
    OffersServiceError,
    OfferNotFoundError,
    NotRedeemableError,
    UserLimitExceededError,
    ContentionExceededError,
    RedemptionNotFoundError,
    InvalidRedemptionStateError,
    UnauthorizedRedemptionActionError,
    InvalidOfferError,
    InvalidModerationTransitionError,
)
from .eligibility import (
    is_redeemable,
    count_user_redemptions,
    can_user_redeem,
)
from .redemption import (
    redeem_offer,
    complete_redemption,
    cancel_redemption,
    get_user_redemptions,
    get_offer_redemptions,
)
from .offer_management import (
    create_offer,
    update_offer,
    get_offer_by_id,
    soft_delete_offer,
    approve_offer,
    reject_offer,
    get_redeemable_offers,
    generate_offer_qr_code,
)

__all__ = [
    # Exceptions
    'OffersServiceError',
    'OfferNotFoundError',
    'NotRedeemableError',
    'UserLimitExceededError',
    'ContentionExceededError',
    'RedemptionNotFoundError',
    'InvalidRedemptionStateError',
    'UnauthorizedRedemptionActionError',
    'InvalidOfferError',
    'InvalidModerationTransitionError',
    # Eligibility
    'is_redeemable',
    'count_user_redemptions',
    'can_user_redeem',
    # Redemption
    'redeem_offer',
    'complete_redemption',
    'cancel_redemption',
    'get_user_redemptions',
    'get_offer_redemptions',
    # Offer Management
    'create_offer',
    'update_offer',
    'get_offer_by_id',
    'soft_delete_offer',
    'approve_offer',
    'reject_offer',
    'get_redeemable_offers',
    'generate_offer_qr_code',
]
