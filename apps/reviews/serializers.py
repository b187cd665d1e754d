from rest_framework import serializers
from .models import Review
from apps.accounts.models import User


class UserMinimalSerializer(serializers.ModelSerializer):
    """Minimal user info for nested serialization."""

    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'display_name']
        read_only_fields = fields

    def get_display_name(self, obj) -> str:
        return obj.get_display_name()


class ReviewSerializer(serializers.ModelSerializer):
    """Main review serializer."""

    user = UserMinimalSerializer(read_only=True)
    venue_name = serializers.CharField(source='venue.name', read_only=True)

    class Meta:
        model = Review
        fields = [
            'id',
            'venue',
            'venue_name',
            'user',
            'rating',
            'title',
            'comment',
            'visit_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'venue', 'venue_name', 'user', 'created_at', 'updated_at']


class ReviewCreateSerializer(serializers.Serializer):
    """Input for reviewing a venue; the venue comes from the URL."""

    rating = serializers.IntegerField(min_value=1, max_value=5)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    comment = serializers.CharField(required=False, allow_blank=True, default='')
    visit_date = serializers.DateField(required=False, allow_null=True, default=None)


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5, required=False)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    comment = serializers.CharField(required=False, allow_blank=True)
    visit_date = serializers.DateField(required=False)
