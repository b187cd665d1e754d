import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.venues.models import Venue, Category, Business, ModerationStatus, Emirate
from apps.reviews.models import Review


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def review_user(db):
    """Create and return a test user for reviews."""
    return User.objects.create_user(
        email='reviewer@example.com',
        password='TestPass123!',
        display_name='Venue Reviewer',
    )


@pytest.fixture
def review_other_user(db):
    """Create and return another test user for reviews."""
    return User.objects.create_user(
        email='review_other@example.com',
        password='TestPass123!',
        display_name='Review Other User',
    )


@pytest.fixture
def review_staff_user(db):
    return User.objects.create_user(
        email='review_staff@example.com',
        password='TestPass123!',
        is_staff=True,
    )


@pytest.fixture
def review_auth_client(api_client, review_user):
    """Return API client authenticated as review user."""
    refresh = RefreshToken.for_user(review_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def review_other_client(api_client, review_other_user):
    """Return API client authenticated as other user."""
    refresh = RefreshToken.for_user(review_other_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def review_business(db, review_other_user):
    return Business.objects.create(
        owner=review_other_user,
        name='Corniche Dining',
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def review_category(db):
    return Category.objects.create(name='Restaurants', slug='restaurants')


@pytest.fixture
def review_venue(db, review_business, review_category):
    """Create and return an approved venue for reviews."""
    return Venue.objects.create(
        business=review_business,
        category=review_category,
        name='Al Fanar',
        city='Abu Dhabi',
        emirate=Emirate.ABU_DHABI,
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def review_another_venue(db, review_business, review_category):
    """Create and return another approved venue."""
    return Venue.objects.create(
        business=review_business,
        category=review_category,
        name='Sahara Grill',
        city='Sharjah',
        emirate=Emirate.SHARJAH,
        status=ModerationStatus.APPROVED,
    )


@pytest.fixture
def review(db, review_user, review_venue):
    """Create and return a test review."""
    return Review.objects.create(
        venue=review_venue,
        user=review_user,
        rating=4,
        title='Great machboos',
        comment='Generous portions and friendly staff.',
    )


@pytest.fixture
def other_review(db, review_other_user, review_venue):
    """Create and return a review by another user."""
    return Review.objects.create(
        venue=review_venue,
        user=review_other_user,
        rating=2,
        comment='Slow service on a Friday.',
    )
