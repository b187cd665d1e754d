import pytest
from datetime import timedelta
from decimal import Decimal
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.venues.models import Venue, Category, Business, ModerationStatus, Emirate
from apps.offers.models import Offer, OfferType, DiscountType


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def now():
    """Clock passed explicitly to eligibility and redemption calls."""
    return timezone.now()


@pytest.fixture
def offer_user(db):
    """Create and return a member who redeems offers."""
    return User.objects.create_user(
        email='redeemer@example.com',
        password='TestPass123!',
        display_name='Redeemer',
    )


@pytest.fixture
def offer_other_user(db):
    """Create and return a second member."""
    return User.objects.create_user(
        email='second@example.com',
        password='TestPass123!',
        display_name='Second Member',
    )


@pytest.fixture
def offer_owner(db):
    """Create and return the business owner."""
    return User.objects.create_user(
        email='merchant@example.com',
        password='TestPass123!',
        display_name='Merchant',
    )


@pytest.fixture
def offer_staff(db):
    return User.objects.create_user(
        email='staff@example.com',
        password='TestPass123!',
        display_name='Staff',
        is_staff=True,
    )


@pytest.fixture
def member_client(api_client, offer_user):
    """Return API client authenticated as the redeeming member."""
    refresh = RefreshToken.for_user(offer_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def owner_client(api_client, offer_owner):
    api_client.force_authenticate(user=offer_owner)
    return api_client


@pytest.fixture
def staff_client(api_client, offer_staff):
    api_client.force_authenticate(user=offer_staff)
    return api_client


@pytest.fixture
def offer_business(db, offer_owner):
    return Business.objects.create(
        owner=offer_owner,
        name='Gulf Bites Group',
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def offer_venue(db, offer_business):
    """Create and return an approved venue of the business."""
    category = Category.objects.create(name='Cafes', slug='cafes')
    return Venue.objects.create(
        business=offer_business,
        category=category,
        name='Marina Coffee Lab',
        city='Dubai',
        emirate=Emirate.DUBAI,
        latitude=Decimal('25.08000000'),
        longitude=Decimal('55.14000000'),
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def make_offer(db, offer_business, offer_venue, now):
    """
    Factory for approved, active offers.

    Window is one day either side of `now`, so API calls made during the
    test (which read the real clock) see the offer as running too.
    """

    def _make_offer(**kwargs):
        fields = {
            'business': offer_business,
            'venue': offer_venue,
            'title': '20% off any drink',
            'description': 'Show the code at the counter.',
            'type': OfferType.DISCOUNT,
            'discount_type': DiscountType.PERCENTAGE,
            'discount_value': Decimal('20.00'),
            'start_date': now - timedelta(days=1),
            'end_date': now + timedelta(days=1),
            'status': ModerationStatus.APPROVED,
        }
        fields.update(kwargs)
        return Offer.objects.create(**fields)

    return _make_offer


@pytest.fixture
def offer(make_offer):
    """Create and return an unlimited running offer."""
    return make_offer()


@pytest.fixture
def limited_offer(make_offer):
    """Offer with a global limit of 5 and 2 per user."""
    return make_offer(title='Free dessert', type=OfferType.FREE_ITEM, discount_type='', discount_value=None,
                      usage_limit=5, usage_limit_per_user=2)
