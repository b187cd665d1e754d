# ==========================================
# apps/venues/admin.py
# ==========================================

from django.contrib import admin
from apps.venues.models import Venue, Category, Amenity, Business, VenueVisit, VenueFavorite, ModerationStatus


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'parent', 'slug', 'sort_order', 'is_active']
    list_filter = ['is_active', 'parent']
    search_fields = ['name', 'name_ar', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['sort_order', 'name']


@admin.register(Amenity)
class AmenityAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Business)
class BusinessAdmin(admin.ModelAdmin):
    """Admin interface for Businesses."""

    list_display = ['name', 'owner', 'status', 'is_active', 'created_at']
    list_filter = ['status', 'is_active', 'created_at']
    search_fields = ['name', 'name_ar', 'email', 'owner__email']
    raw_id_fields = ['owner']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    """Admin interface for Venues."""

    list_display = [
        'name',
        'business',
        'category',
        'emirate',
        'city',
        'status',
        'is_featured',
        'average_rating',
        'total_reviews',
        'total_visits',
        'is_active',
    ]
    list_filter = [
        'status',
        'emirate',
        'is_featured',
        'is_women_only',
        'price_range',
        'is_active',
        'category',
    ]
    search_fields = [
        'name',
        'name_ar',
        'city',
        'address',
        'business__name',
    ]
    readonly_fields = [
        'average_rating',
        'total_reviews',
        'total_visits',
        'created_at',
        'updated_at',
        'deleted_at',
    ]
    filter_horizontal = ['amenities']
    raw_id_fields = ['business']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    actions = ['approve_venues', 'reject_venues']

    fieldsets = (
        ('Basic Information', {
            'fields': (
                'business',
                'category',
                'subcategory',
                'name',
                'name_ar',
                'price_range',
                'is_women_only',
            )
        }),
        ('Description', {
            'fields': ('description', 'description_ar')
        }),
        ('Location', {
            'fields': ('address', 'city', 'emirate', 'latitude', 'longitude')
        }),
        ('Amenities', {
            'fields': ('amenities',)
        }),
        ('Moderation', {
            'fields': ('status', 'is_active', 'is_featured')
        }),
        ('Statistics', {
            'fields': ('average_rating', 'total_reviews', 'total_visits'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
            'classes': ('collapse',)
        }),
    )

    def approve_venues(self, request, queryset):
        updated = queryset.update(status=ModerationStatus.APPROVED)
        self.message_user(request, f'{updated} venue(s) approved.')
    approve_venues.short_description = 'Approve selected venues'

    def reject_venues(self, request, queryset):
        updated = queryset.update(status=ModerationStatus.REJECTED)
        self.message_user(request, f'{updated} venue(s) rejected.')
    reject_venues.short_description = 'Reject selected venues'


@admin.register(VenueVisit)
class VenueVisitAdmin(admin.ModelAdmin):
    list_display = ['venue', 'user', 'visited_at', 'source']
    list_filter = ['source', 'visited_at']
    search_fields = ['venue__name', 'user__email']
    raw_id_fields = ['venue', 'user']
    date_hierarchy = 'visited_at'


@admin.register(VenueFavorite)
class VenueFavoriteAdmin(admin.ModelAdmin):
    list_display = ['venue', 'user', 'created_at']
    search_fields = ['venue__name', 'user__email']
    raw_id_fields = ['venue', 'user']
    readonly_fields = ['created_at']
