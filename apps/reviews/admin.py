from django.contrib import admin
from .models import Review


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    """Admin interface for Reviews."""

    list_display = [
        'get_venue_name',
        'user',
        'rating',
        'visit_date',
        'created_at'
    ]
    list_filter = [
        'rating',
        'created_at',
    ]
    search_fields = [
        'venue__name',
        'user__email',
        'title',
        'comment'
    ]
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'created_at'
    ordering = ['-created_at']
    raw_id_fields = ['venue', 'user']

    fieldsets = (
        ('Basic Information', {
            'fields': ('venue', 'user', 'rating', 'visit_date')
        }),
        ('Content', {
            'fields': ('title', 'comment')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def get_venue_name(self, obj):
        return obj.venue.name
    get_venue_name.short_description = 'Venue'
    get_venue_name.admin_order_field = 'venue__name'
