from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Public profile fields of a member."""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'phone',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class SubscriptionSerializer(serializers.Serializer):
    status = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True)
    is_active = serializers.BooleanField()


class ActivitySerializer(serializers.Serializer):
    redemptions = serializers.IntegerField()
    reviews = serializers.IntegerField()
    favorites = serializers.IntegerField()
    visits = serializers.IntegerField()


class ProfileSerializer(serializers.Serializer):
    """The signed-in member with subscription state and activity counts."""

    user = UserSerializer()
    subscription = SubscriptionSerializer()
    activity = ActivitySerializer()


class ProfileUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True)
    phone = serializers.RegexField(
        r'^\+?[0-9 ]{7,20}$',
        max_length=32,
        required=False,
        allow_blank=True,
        error_messages={'invalid': 'Enter a phone number such as +971 50 123 4567'},
    )


class UserRegistrationSerializer(serializers.Serializer):
    """Serializer for user registration."""

    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(
        write_only=True,
        required=True,
        validators=[validate_password],
        style={'input_type': 'password'}
    )
    password_confirm = serializers.CharField(
        write_only=True,
        required=True,
        style={'input_type': 'password'}
    )
    display_name = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')

    def validate(self, attrs):
        """Validate password confirmation."""
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({
                'password_confirm': 'Passwords do not match'
            })
        return attrs
