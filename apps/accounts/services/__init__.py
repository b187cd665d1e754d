"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    UserRegistrationError,
)
from .user_registration import register_user
from .user_profile import (
    get_subscription,
    get_user_activity,
    update_user_profile,
)

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'UserRegistrationError',
    # Registration
    'register_user',
    # Profile
    'get_subscription',
    'get_user_activity',
    'update_user_profile',
]
