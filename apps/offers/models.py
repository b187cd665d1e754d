# ==========================================
# apps/offers/models.py
# ==========================================

from django.db import models
from django.core.validators import MinValueValidator
from django.db.models import F, Q
from decimal import Decimal
import uuid

from apps.venues.models import ModerationStatus


class OfferType(models.TextChoices):
    DISCOUNT = 'discount', 'Discount'
    BOGO = 'bogo', 'Buy One Get One'
    FREE_ITEM = 'free_item', 'Free Item'
    CASHBACK = 'cashback', 'Cashback'
    POINTS = 'points', 'Points'


class DiscountType(models.TextChoices):
    PERCENTAGE = 'percentage', 'Percentage'
    FIXED_AMOUNT = 'fixed_amount', 'Fixed Amount'


class RedemptionStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'


class OfferQuerySet(models.QuerySet):

    def alive(self):
        return self.filter(deleted_at__isnull=True)

    def redeemable(self, now):
        """Offers that pass every offer-level redemption check at `now`."""
        return self.alive().filter(
            Q(usage_limit__isnull=True) | Q(used_count__lt=F('usage_limit')),
            is_active=True,
            status=ModerationStatus.APPROVED,
            start_date__lte=now,
            end_date__gte=now,
        )


class Offer(models.Model):
    """Time-boxed, optionally quota-limited promotion published by a business."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    business = models.ForeignKey('venues.Business', on_delete=models.CASCADE, related_name='offers')
    venue = models.ForeignKey('venues.Venue', on_delete=models.CASCADE, null=True, blank=True, related_name='offers')
    title = models.CharField(max_length=200)
    title_ar = models.CharField(max_length=200, blank=True)
    description = models.TextField()
    description_ar = models.TextField(blank=True)
    type = models.CharField(max_length=20, choices=OfferType.choices)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices, blank=True)
    discount_value = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))])
    original_price = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))])
    discounted_price = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(Decimal('0'))])
    terms_conditions = models.TextField(blank=True)
    terms_conditions_ar = models.TextField(blank=True)
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    usage_limit = models.PositiveIntegerField(null=True, blank=True, help_text='Total redemptions allowed; empty means unlimited')
    usage_limit_per_user = models.PositiveIntegerField(null=True, blank=True, help_text='Redemptions allowed per user; empty means unlimited')
    used_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    priority = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=ModerationStatus.choices, default=ModerationStatus.PENDING)
    qr_code = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = OfferQuerySet.as_manager()

    class Meta:
        db_table = 'offers'
        indexes = [
            models.Index(fields=['business', 'is_active'], name='offers_busines_6a1d3e_idx'),
            models.Index(fields=['venue', 'status'], name='offers_venue_i_c48f20_idx'),
            models.Index(fields=['start_date', 'end_date'], name='offers_start_d_29b7a5_idx'),
            models.Index(fields=['is_featured', 'priority'], name='offers_is_feat_e3c951_idx'),
            models.Index(fields=['status'], name='offers_status_8f06b2_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(usage_limit__isnull=True) | Q(used_count__lte=F('usage_limit')),
                name='offer_used_count_within_limit',
            ),
        ]
        ordering = ['-priority', '-created_at']

    def __str__(self):
        return self.title

    @property
    def remaining_uses(self):
        if self.usage_limit is None:
            return None
        return max(self.usage_limit - self.used_count, 0)


class OfferRedemption(models.Model):
    """One successful redemption of an offer by a user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='redemptions')
    offer = models.ForeignKey(Offer, on_delete=models.CASCADE, related_name='redemptions')
    redeemed_at = models.DateTimeField()
    verification_code = models.CharField(max_length=8)
    status = models.CharField(max_length=20, choices=RedemptionStatus.choices, default=RedemptionStatus.PENDING)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'offer_redemptions'
        indexes = [
            models.Index(fields=['user', 'redeemed_at'], name='offer_redem_user_id_4e7a19_idx'),
            models.Index(fields=['offer', 'status'], name='offer_redem_offer_i_b2d86c_idx'),
            models.Index(fields=['offer', 'user', 'status'], name='offer_redem_offer_u_0d5c7f_idx'),
            models.Index(fields=['verification_code'], name='offer_redem_verific_73e1a8_idx'),
            models.Index(fields=['redeemed_at'], name='offer_redem_redeeme_95f4c2_idx'),
        ]
        ordering = ['-redeemed_at']

    def __str__(self):
        return f"{self.user} - {self.offer} ({self.verification_code})"
