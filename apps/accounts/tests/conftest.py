import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.offers.models import Offer, OfferType, DiscountType
from apps.venues.models import Venue, Business, Category, ModerationStatus, Emirate


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Create and return a test user."""
    return User.objects.create_user(
        email='testuser@example.com',
        password='TestPass123!',
        display_name='Test User',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    """Return API client with JWT authentication."""
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='merchant@example.com',
        password='TestPass123!',
        display_name='Merchant',
    )


@pytest.fixture
def make_venue(db, other_user):
    """Factory for approved venues owned by other_user."""
    business = Business.objects.create(owner=other_user, name='Gulf Bites', status=ModerationStatus.APPROVED)
    category = Category.objects.create(name='Cafes', slug='cafes')

    def _make_venue(**kwargs):
        fields = {
            'business': business,
            'category': category,
            'name': 'Test Venue',
            'city': 'Dubai',
            'emirate': Emirate.DUBAI,
            'status': ModerationStatus.APPROVED,
        }
        fields.update(kwargs)
        return Venue.objects.create(**fields)

    return _make_venue


@pytest.fixture
def make_offer(db):
    """Factory for running, approved offers with no limits."""

    def _make_offer(venue, **kwargs):
        now = timezone.now()
        fields = {
            'business': venue.business,
            'venue': venue,
            'title': 'Free karak with breakfast',
            'description': 'Show the code at the counter.',
            'type': OfferType.DISCOUNT,
            'discount_type': DiscountType.PERCENTAGE,
            'discount_value': Decimal('10.00'),
            'start_date': now - timedelta(days=1),
            'end_date': now + timedelta(days=1),
            'status': ModerationStatus.APPROVED,
        }
        fields.update(kwargs)
        return Offer.objects.create(**fields)

    return _make_offer
