from rest_framework import status, serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from drf_spectacular.utils import extend_schema
from .serializers import (
    UserRegistrationSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    SubscriptionSerializer,
)
from .services import (
    register_user,
    get_subscription,
    get_user_activity,
    update_user_profile,
    UserRegistrationError,
)


class TokensResponseSerializer(serializers.Serializer):
    refresh = serializers.CharField()
    access = serializers.CharField()


class RegistrationResponseSerializer(ProfileSerializer):
    tokens = TokensResponseSerializer()


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()


def _profile(user) -> dict:
    return ProfileSerializer({
        'user': user,
        'subscription': get_subscription(user=user),
        'activity': get_user_activity(user=user),
    }).data


@extend_schema(
    request=UserRegistrationSerializer,
    responses={201: RegistrationResponseSerializer, 400: ErrorResponseSerializer},
    description="Create a member account. Returns the new profile and a JWT pair.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    serializer = UserRegistrationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    data = dict(serializer.validated_data)
    data.pop('password_confirm')

    try:
        user = register_user(**data)
    except UserRegistrationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    refresh = RefreshToken.for_user(user)
    body = _profile(user)
    body['tokens'] = {'refresh': str(refresh), 'access': str(refresh.access_token)}
    return Response(body, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: ProfileSerializer},
    description="The signed-in member with subscription state and counts of "
                "redemptions, reviews, favorites and visits.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_current_user(request):
    return Response(_profile(request.user))


@extend_schema(
    request=ProfileUpdateSerializer,
    responses={200: ProfileSerializer, 400: ErrorResponseSerializer},
    description="Change display name or phone. Email and subscription are not editable here.",
    tags=['auth'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def update_profile(request):
    serializer = ProfileUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)

    user = update_user_profile(user=request.user, data=serializer.validated_data)
    return Response(_profile(user))


@extend_schema(
    responses={200: SubscriptionSerializer},
    description="Subscription status and expiry. is_active needs an expiry in the future.",
    tags=['auth'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def get_user_subscription(request):
    return Response(SubscriptionSerializer(get_subscription(user=request.user)).data)
