"""User registration service."""

from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

import structlog

from .exceptions import UserRegistrationError

User = get_user_model()

logger = structlog.get_logger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    display_name: str = "",
    phone: str = "",
) -> User:
    """
    Register a new member. Subscriptions start inactive.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        display_name: Optional display name
        phone: Optional phone number

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is already registered
    """
    email = User.objects.normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        raise UserRegistrationError("An account with this email already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=password,
                display_name=display_name,
                phone=phone,
            )
    except IntegrityError:
        raise UserRegistrationError("An account with this email already exists")

    logger.info("user_registered", user_id=str(user.id))
    return user
