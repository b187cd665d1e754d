from rest_framework import serializers
from .models import Venue, Category, Amenity, Business, VenueVisit, Emirate, PriceRange
from .services.favorites import is_favorite
from .services.venue_search import SORT_OPTIONS, MIN_RADIUS_KM, MAX_RADIUS_KM


class CategorySerializer(serializers.ModelSerializer):

    class Meta:
        model = Category
        fields = ['id', 'name', 'name_ar', 'slug', 'parent', 'full_name']
        read_only_fields = fields


class CategoryChildSerializer(serializers.ModelSerializer):
    venue_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'name_ar', 'slug', 'venue_count']
        read_only_fields = fields


class CategoryTreeSerializer(serializers.ModelSerializer):
    """Top-level category with subcategories and visible venue counts."""

    venue_count = serializers.IntegerField(read_only=True)
    children = CategoryChildSerializer(many=True, read_only=True)

    class Meta:
        model = Category
        fields = ['id', 'name', 'name_ar', 'slug', 'venue_count', 'children']
        read_only_fields = fields


class AmenitySerializer(serializers.ModelSerializer):

    class Meta:
        model = Amenity
        fields = ['slug', 'name']
        read_only_fields = fields


class VenueListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for search results and listings."""

    category_name = serializers.CharField(source='category.name', read_only=True)
    business_name = serializers.CharField(source='business.name', read_only=True)
    distance_km = serializers.SerializerMethodField()

    class Meta:
        model = Venue
        fields = [
            'id',
            'name',
            'name_ar',
            'business_name',
            'category',
            'category_name',
            'city',
            'emirate',
            'latitude',
            'longitude',
            'price_range',
            'is_women_only',
            'is_featured',
            'average_rating',
            'total_reviews',
            'total_visits',
            'distance_km',
        ]
        read_only_fields = fields

    def get_distance_km(self, obj) -> float | None:
        # Only set when the venue came out of a location search
        return getattr(obj, 'distance_km', None)


class VenueSerializer(serializers.ModelSerializer):
    """Full venue detail."""

    business_name = serializers.CharField(source='business.name', read_only=True)
    category = CategorySerializer(read_only=True)
    subcategory = CategorySerializer(read_only=True)
    amenities = AmenitySerializer(many=True, read_only=True)
    is_favorite = serializers.SerializerMethodField()

    class Meta:
        model = Venue
        fields = [
            'id',
            'business',
            'business_name',
            'category',
            'subcategory',
            'name',
            'name_ar',
            'description',
            'description_ar',
            'address',
            'city',
            'emirate',
            'latitude',
            'longitude',
            'amenities',
            'price_range',
            'is_women_only',
            'is_featured',
            'is_active',
            'status',
            'average_rating',
            'total_reviews',
            'total_visits',
            'created_at',
            'updated_at',
            'is_favorite',
        ]
        read_only_fields = fields

    def get_is_favorite(self, obj) -> bool:
        request = self.context.get('request')
        if request is None:
            return False
        return is_favorite(venue=obj, user=request.user)


class VenueCreateSerializer(serializers.Serializer):
    """Input for creating a venue. Coordinates are checked by the service."""

    business = serializers.PrimaryKeyRelatedField(queryset=Business.objects.filter(is_active=True))
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.filter(is_active=True))
    subcategory = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )
    name = serializers.CharField(max_length=200)
    name_ar = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    description = serializers.CharField(required=False, allow_blank=True, default='')
    description_ar = serializers.CharField(required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100)
    emirate = serializers.ChoiceField(choices=Emirate.choices)
    latitude = serializers.FloatField(required=False, allow_null=True, default=None)
    longitude = serializers.FloatField(required=False, allow_null=True, default=None)
    price_range = serializers.ChoiceField(choices=PriceRange.choices, required=False, allow_blank=True, default='')
    is_women_only = serializers.BooleanField(required=False, default=False)
    amenities = serializers.ListField(child=serializers.SlugField(), required=False, default=list)


class VenueUpdateSerializer(serializers.Serializer):
    """Partial venue update. Location is merged and validated by the service."""

    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.filter(is_active=True), required=False)
    subcategory = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.filter(is_active=True),
        required=False,
        allow_null=True,
    )
    name = serializers.CharField(max_length=200, required=False)
    name_ar = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    description_ar = serializers.CharField(required=False, allow_blank=True)
    address = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False)
    emirate = serializers.ChoiceField(choices=Emirate.choices, required=False)
    latitude = serializers.FloatField(required=False, allow_null=True)
    longitude = serializers.FloatField(required=False, allow_null=True)
    price_range = serializers.ChoiceField(choices=PriceRange.choices, required=False, allow_blank=True)
    is_women_only = serializers.BooleanField(required=False)
    amenities = serializers.ListField(child=serializers.SlugField(), required=False)


class VenueSearchQuerySerializer(serializers.Serializer):
    """Query string accepted by venue search (documentation only, the service validates)."""

    search = serializers.CharField(required=False)
    category_id = serializers.UUIDField(required=False)
    subcategory_id = serializers.UUIDField(required=False)
    emirate = serializers.ChoiceField(choices=Emirate.choices, required=False)
    city = serializers.CharField(required=False)
    price_range = serializers.ChoiceField(choices=PriceRange.choices, required=False)
    amenities = serializers.CharField(required=False, help_text="Comma separated amenity slugs")
    women_only = serializers.BooleanField(required=False)
    featured = serializers.BooleanField(required=False)
    min_rating = serializers.FloatField(required=False, min_value=1, max_value=5)
    latitude = serializers.FloatField(required=False, min_value=-90, max_value=90)
    longitude = serializers.FloatField(required=False, min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=MIN_RADIUS_KM, max_value=MAX_RADIUS_KM)
    sort_by = serializers.ChoiceField(choices=SORT_OPTIONS, required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    per_page = serializers.IntegerField(required=False, min_value=1)


class VenueSearchResponseSerializer(serializers.Serializer):
    results = VenueListSerializer(many=True)
    page = serializers.IntegerField()
    per_page = serializers.IntegerField()
    total = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    has_more = serializers.BooleanField()


class VenueVisitSerializer(serializers.ModelSerializer):

    class Meta:
        model = VenueVisit
        fields = ['id', 'venue', 'user', 'visited_at', 'source', 'metadata']
        read_only_fields = fields


class VisitRequestSerializer(serializers.Serializer):
    source = serializers.ChoiceField(choices=['app', 'qr', 'web'], default='app')


class VisitHistorySerializer(serializers.ModelSerializer):
    venue = VenueListSerializer(read_only=True)

    class Meta:
        model = VenueVisit
        fields = ['id', 'venue', 'visited_at', 'source']
        read_only_fields = fields


class FavoriteStatusSerializer(serializers.Serializer):
    is_favorite = serializers.BooleanField()
