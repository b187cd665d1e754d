# ==========================================
# apps/venues/models.py
# ==========================================

from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal
import uuid


class ModerationStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


class Emirate(models.TextChoices):
    ABU_DHABI = 'Abu Dhabi', 'Abu Dhabi'
    DUBAI = 'Dubai', 'Dubai'
    SHARJAH = 'Sharjah', 'Sharjah'
    AJMAN = 'Ajman', 'Ajman'
    UMM_AL_QUWAIN = 'Umm Al Quwain', 'Umm Al Quwain'
    RAS_AL_KHAIMAH = 'Ras Al Khaimah', 'Ras Al Khaimah'
    FUJAIRAH = 'Fujairah', 'Fujairah'


class PriceRange(models.TextChoices):
    BUDGET = '$', '$'
    MODERATE = '$$', '$$'
    EXPENSIVE = '$$$', '$$$'
    LUXURY = '$$$$', '$$$$'


class Category(models.Model):
    """Venue category; children act as subcategories."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    name_ar = models.CharField(max_length=100, blank=True)
    slug = models.SlugField(max_length=120, unique=True)
    parent = models.ForeignKey('self', on_delete=models.CASCADE, null=True, blank=True, related_name='children')
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['sort_order', 'name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        if self.parent_id:
            return f"{self.parent.name} > {self.name}"
        return self.name


class Amenity(models.Model):
    """Facility a venue can offer (wifi, parking, ...)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    slug = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=100)

    class Meta:
        db_table = 'amenities'
        verbose_name_plural = 'amenities'
        ordering = ['name']

    def __str__(self):
        return self.name


class Business(models.Model):
    """Company that owns venues and publishes offers."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='businesses')
    name = models.CharField(max_length=200)
    name_ar = models.CharField(max_length=200, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    status = models.CharField(max_length=20, choices=ModerationStatus.choices, default=ModerationStatus.PENDING)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'businesses'
        verbose_name_plural = 'businesses'
        ordering = ['name']

    def __str__(self):
        return self.name

    def is_managed_by(self, user):
        return user.is_authenticated and (user.is_staff or self.owner_id == user.id)


class VenueQuerySet(models.QuerySet):

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def searchable(self):
        """Base predicate for every public listing: active, approved, not deleted."""
        return self.alive().filter(is_active=True, status=ModerationStatus.APPROVED)


class Venue(models.Model):
    """Physical place listed in the marketplace."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    business = models.ForeignKey(Business, on_delete=models.CASCADE, related_name='venues')
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='venues')
    subcategory = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='subcategory_venues')
    name = models.CharField(max_length=200, db_index=True)
    name_ar = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    description_ar = models.TextField(blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100)
    emirate = models.CharField(max_length=20, choices=Emirate.choices)
    latitude = models.DecimalField(
        max_digits=10, decimal_places=8, null=True, blank=True,
        validators=[MinValueValidator(Decimal('-90')), MaxValueValidator(Decimal('90'))],
    )
    longitude = models.DecimalField(
        max_digits=11, decimal_places=8, null=True, blank=True,
        validators=[MinValueValidator(Decimal('-180')), MaxValueValidator(Decimal('180'))],
    )
    amenities = models.ManyToManyField(Amenity, blank=True, related_name='venues')
    price_range = models.CharField(max_length=4, choices=PriceRange.choices, blank=True)
    is_women_only = models.BooleanField(default=False)
    is_featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    status = models.CharField(max_length=20, choices=ModerationStatus.choices, default=ModerationStatus.PENDING)
    average_rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'), validators=[MinValueValidator(Decimal('0.00'))])
    total_reviews = models.PositiveIntegerField(default=0)
    total_visits = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = VenueQuerySet.as_manager()

    class Meta:
        db_table = 'venues'
        indexes = [
            models.Index(fields=['business', 'is_active'], name='venues_busines_1f0c2a_idx'),
            models.Index(fields=['category', 'status'], name='venues_categor_8d3b71_idx'),
            models.Index(fields=['emirate', 'city'], name='venues_emirate_52a9e4_idx'),
            models.Index(fields=['latitude', 'longitude'], name='venues_latitud_b7d0c6_idx'),
            models.Index(fields=['is_featured', 'average_rating'], name='venues_is_feat_3e61f8_idx'),
            models.Index(fields=['status'], name='venues_status_a40d95_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(latitude__isnull=True, longitude__isnull=True) |
                    Q(latitude__gte=-90, latitude__lte=90, longitude__gte=-180, longitude__lte=180)
                ),
                name='venue_coordinates_valid',
            ),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None


class VenueVisit(models.Model):
    """A user's check-in at a venue; at most one per user, venue and day."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='venue_visits')
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='visits')
    visited_at = models.DateTimeField()
    source = models.CharField(max_length=20, default='app')
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'venue_visits'
        indexes = [
            models.Index(fields=['user', 'venue', 'visited_at'], name='venue_visits_user_v_0e5f1b_idx'),
            models.Index(fields=['visited_at'], name='venue_visits_visite_9a2c44_idx'),
        ]
        ordering = ['-visited_at']

    def __str__(self):
        return f"{self.user} @ {self.venue} ({self.visited_at:%Y-%m-%d})"


class VenueFavorite(models.Model):
    """A venue saved by a user; toggled on and off."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='favorite_venues')
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='favorites')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'venue_favorites'
        unique_together = [['user', 'venue']]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user} - {self.venue}"
