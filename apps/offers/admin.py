# ==========================================
# apps/offers/admin.py
# ==========================================

from django.contrib import admin
from apps.offers.models import Offer, OfferRedemption
from apps.offers.services import (
    cancel_redemption,
    InvalidRedemptionStateError,
    UnauthorizedRedemptionActionError,
)
from apps.venues.models import ModerationStatus


class OfferRedemptionInline(admin.TabularInline):
    model = OfferRedemption
    extra = 0
    fields = ['user', 'verification_code', 'status', 'redeemed_at']
    readonly_fields = ['user', 'verification_code', 'status', 'redeemed_at']
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        """Redemptions are only created by redeem_offer."""
        return False


@admin.register(Offer)
class OfferAdmin(admin.ModelAdmin):
    """Admin interface for Offers."""

    list_display = [
        'title',
        'business',
        'venue',
        'type',
        'status',
        'start_date',
        'end_date',
        'used_count',
        'usage_limit',
        'is_featured',
        'is_active',
    ]
    list_filter = ['status', 'type', 'is_featured', 'is_active', 'start_date']
    search_fields = ['title', 'title_ar', 'business__name', 'venue__name']
    # used_count only moves through redemptions
    readonly_fields = ['used_count', 'qr_code', 'created_at', 'updated_at', 'deleted_at']
    raw_id_fields = ['business', 'venue']
    date_hierarchy = 'start_date'
    inlines = [OfferRedemptionInline]
    actions = ['approve_offers', 'reject_offers']

    fieldsets = (
        ('Basic Information', {
            'fields': ('business', 'venue', 'title', 'title_ar', 'type', 'priority')
        }),
        ('Description', {
            'fields': ('description', 'description_ar', 'terms_conditions', 'terms_conditions_ar')
        }),
        ('Pricing', {
            'fields': ('discount_type', 'discount_value', 'original_price', 'discounted_price')
        }),
        ('Availability', {
            'fields': ('start_date', 'end_date', 'usage_limit', 'usage_limit_per_user', 'used_count')
        }),
        ('Moderation', {
            'fields': ('status', 'is_active', 'is_featured')
        }),
        ('Extra', {
            'fields': ('metadata', 'qr_code'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
            'classes': ('collapse',)
        }),
    )

    def approve_offers(self, request, queryset):
        updated = queryset.update(status=ModerationStatus.APPROVED)
        self.message_user(request, f'{updated} offer(s) approved.')
    approve_offers.short_description = 'Approve selected offers'

    def reject_offers(self, request, queryset):
        updated = queryset.update(status=ModerationStatus.REJECTED)
        self.message_user(request, f'{updated} offer(s) rejected.')
    reject_offers.short_description = 'Reject selected offers'


@admin.register(OfferRedemption)
class OfferRedemptionAdmin(admin.ModelAdmin):
    """
    Read-only view of redemptions.

    Rows are created by redeem_offer and change status only through the
    redemption lifecycle, so the admin can cancel but not edit.
    """

    list_display = ['verification_code', 'offer', 'user', 'status', 'redeemed_at']
    list_filter = ['status', 'redeemed_at']
    search_fields = ['verification_code', 'offer__title', 'user__email']
    readonly_fields = [
        'offer',
        'user',
        'status',
        'verification_code',
        'redeemed_at',
        'metadata',
        'created_at',
        'updated_at',
    ]
    date_hierarchy = 'redeemed_at'
    actions = ['cancel_redemptions']

    def has_add_permission(self, request):
        """Disable manual creation - it would bypass used_count."""
        return False

    @admin.action(description='Cancel selected redemptions')
    def cancel_redemptions(self, request, queryset):
        cancelled = 0
        skipped = 0
        for redemption_id in queryset.values_list('id', flat=True):
            try:
                cancel_redemption(redemption_id=redemption_id, user=request.user)
                cancelled += 1
            except (InvalidRedemptionStateError, UnauthorizedRedemptionActionError):
                skipped += 1

        msg = f'Cancelled {cancelled} redemption(s).'
        if skipped:
            msg += f' Skipped {skipped} already cancelled or not yours.'
        self.message_user(request, msg)
