import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.venues.models import Venue, Category, Amenity, Business, ModerationStatus, Emirate


# Downtown Dubai
DUBAI_LAT = Decimal('25.19720000')
DUBAI_LNG = Decimal('55.27440000')


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def venue_user(db):
    """Create and return a regular member."""
    return User.objects.create_user(
        email='member@example.com',
        password='TestPass123!',
        display_name='Venue Member',
    )


@pytest.fixture
def owner_user(db):
    """Create and return a business owner."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Venue Owner',
    )


@pytest.fixture
def staff_user(db):
    """Create and return a moderator."""
    return User.objects.create_user(
        email='moderator@example.com',
        password='TestPass123!',
        display_name='Moderator',
        is_staff=True,
    )


@pytest.fixture
def member_client(api_client, venue_user):
    """Return API client authenticated as a regular member."""
    refresh = RefreshToken.for_user(venue_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def owner_client(api_client, owner_user):
    api_client.force_authenticate(user=owner_user)
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    api_client.force_authenticate(user=staff_user)
    return api_client


@pytest.fixture
def business(db, owner_user):
    """Create and return an approved business."""
    return Business.objects.create(
        owner=owner_user,
        name='Desert Rose Hospitality',
        email='hello@desertrose.ae',
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def category(db):
    return Category.objects.create(name='Restaurants', slug='restaurants')


@pytest.fixture
def subcategory(db, category):
    return Category.objects.create(name='Cafes', slug='cafes', parent=category)


@pytest.fixture
def amenities(db):
    """Create wifi, parking and shisha amenities."""
    return {
        slug: Amenity.objects.create(slug=slug, name=slug.title())
        for slug in ('wifi', 'parking', 'shisha')
    }


@pytest.fixture
def make_venue(db, business, category):
    """Factory for approved, active venues at downtown Dubai unless overridden."""

    def _make_venue(**kwargs):
        amenity_list = kwargs.pop('amenities', [])
        fields = {
            'business': business,
            'category': category,
            'name': 'Test Venue',
            'city': 'Dubai',
            'emirate': Emirate.DUBAI,
            'latitude': DUBAI_LAT,
            'longitude': DUBAI_LNG,
            'status': ModerationStatus.APPROVED,
        }
        fields.update(kwargs)
        venue = Venue.objects.create(**fields)
        if amenity_list:
            venue.amenities.set(amenity_list)
        return venue

    return _make_venue


@pytest.fixture
def venue(make_venue):
    """Create and return an approved venue with a location."""
    return make_venue(
        name='Arabian Tea House',
        name_ar='بيت الشاي العربي',
        description='Traditional Emirati breakfast in a courtyard.',
        price_range='$$',
    )


@pytest.fixture
def pending_venue(make_venue):
    return make_venue(name='Pending Grill', status=ModerationStatus.PENDING)
