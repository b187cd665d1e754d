from django.utils import timezone
from rest_framework import serializers
from apps.venues.models import Business, Venue
from .models import Offer, OfferRedemption, OfferType, DiscountType, RedemptionStatus
from .services.eligibility import is_redeemable, can_user_redeem, count_user_redemptions


class OfferSerializer(serializers.ModelSerializer):
    """Offer detail with availability computed at request time."""

    business_name = serializers.CharField(source='business.name', read_only=True)
    venue_name = serializers.CharField(source='venue.name', read_only=True, default=None)
    remaining_uses = serializers.IntegerField(read_only=True)
    is_available = serializers.SerializerMethodField()
    days_remaining = serializers.SerializerMethodField()
    user_can_redeem = serializers.SerializerMethodField()
    user_redemptions_count = serializers.SerializerMethodField()

    class Meta:
        model = Offer
        fields = [
            'id',
            'business',
            'business_name',
            'venue',
            'venue_name',
            'title',
            'title_ar',
            'description',
            'description_ar',
            'type',
            'discount_type',
            'discount_value',
            'original_price',
            'discounted_price',
            'terms_conditions',
            'terms_conditions_ar',
            'start_date',
            'end_date',
            'usage_limit',
            'usage_limit_per_user',
            'used_count',
            'remaining_uses',
            'is_active',
            'is_featured',
            'priority',
            'status',
            'is_available',
            'days_remaining',
            'user_can_redeem',
            'user_redemptions_count',
            'created_at',
        ]
        read_only_fields = fields

    def _user(self):
        request = self.context.get('request')
        if request and request.user.is_authenticated:
            return request.user
        return None

    def get_is_available(self, obj) -> bool:
        return is_redeemable(obj)

    def get_days_remaining(self, obj) -> int:
        return max((obj.end_date - timezone.now()).days, 0)

    def get_user_can_redeem(self, obj) -> bool | None:
        user = self._user()
        if user is None:
            return None
        return can_user_redeem(obj, user)

    def get_user_redemptions_count(self, obj) -> int | None:
        user = self._user()
        if user is None:
            return None
        return count_user_redemptions(offer=obj, user=user)


class OfferCreateSerializer(serializers.Serializer):
    """Input for creating an offer."""

    business = serializers.PrimaryKeyRelatedField(queryset=Business.objects.filter(is_active=True))
    venue = serializers.PrimaryKeyRelatedField(
        queryset=Venue.objects.filter(deleted_at__isnull=True),
        required=False,
        allow_null=True,
    )
    title = serializers.CharField(max_length=200)
    title_ar = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    description = serializers.CharField()
    description_ar = serializers.CharField(required=False, allow_blank=True, default='')
    type = serializers.ChoiceField(choices=OfferType.choices)
    discount_type = serializers.ChoiceField(choices=DiscountType.choices, required=False, allow_blank=True, default='')
    discount_value = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, allow_null=True)
    original_price = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, allow_null=True)
    discounted_price = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, allow_null=True)
    terms_conditions = serializers.CharField(required=False, allow_blank=True, default='')
    terms_conditions_ar = serializers.CharField(required=False, allow_blank=True, default='')
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    usage_limit = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    usage_limit_per_user = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    is_featured = serializers.BooleanField(required=False, default=False)
    priority = serializers.IntegerField(required=False, default=0)

    def validate(self, attrs):
        if attrs['end_date'] <= attrs['start_date']:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class OfferUpdateSerializer(serializers.ModelSerializer):
    """Fields a business can change on an existing offer."""

    usage_limit = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    usage_limit_per_user = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    class Meta:
        model = Offer
        fields = [
            'title',
            'title_ar',
            'description',
            'description_ar',
            'discount_type',
            'discount_value',
            'original_price',
            'discounted_price',
            'terms_conditions',
            'terms_conditions_ar',
            'start_date',
            'end_date',
            'usage_limit',
            'usage_limit_per_user',
            'is_active',
            'is_featured',
            'priority',
        ]


class OfferRedemptionSerializer(serializers.ModelSerializer):

    offer_title = serializers.CharField(source='offer.title', read_only=True)
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = OfferRedemption
        fields = [
            'id',
            'offer',
            'offer_title',
            'user',
            'user_email',
            'redeemed_at',
            'verification_code',
            'status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class EligibilitySerializer(serializers.Serializer):
    is_redeemable = serializers.BooleanField()
    can_redeem = serializers.BooleanField()
    user_redemptions_count = serializers.IntegerField()
    usage_limit_per_user = serializers.IntegerField(allow_null=True)
    remaining_uses = serializers.IntegerField(allow_null=True)


class CompleteRedemptionSerializer(serializers.Serializer):
    verification_code = serializers.CharField(min_length=8, max_length=8)


class RedemptionStatusFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=RedemptionStatus.choices, required=False)


class QRCodeSerializer(serializers.Serializer):
    offer_id = serializers.UUIDField()
    redeem_path = serializers.CharField()
    qr_code = serializers.CharField(help_text='Base64-encoded PNG')
