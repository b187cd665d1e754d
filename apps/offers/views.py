from rest_framework import status, viewsets, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly, IsAdminUser
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
from apps.venues.models import ModerationStatus
from .models import Offer
from .serializers import (
    OfferSerializer,
    OfferCreateSerializer,
    OfferUpdateSerializer,
    OfferRedemptionSerializer,
    EligibilitySerializer,
    CompleteRedemptionSerializer,
    RedemptionStatusFilterSerializer,
    QRCodeSerializer,
)
from .permissions import IsOfferManagerOrReadOnly
from .services import (
    is_redeemable,
    can_user_redeem,
    count_user_redemptions,
    redeem_offer,
    complete_redemption,
    cancel_redemption,
    get_user_redemptions,
    get_offer_redemptions,
    create_offer,
    update_offer,
    get_offer_by_id,
    soft_delete_offer,
    approve_offer,
    reject_offer,
    get_redeemable_offers,
    generate_offer_qr_code,
    OfferNotFoundError,
    NotRedeemableError,
    UserLimitExceededError,
    ContentionExceededError,
    RedemptionNotFoundError,
    InvalidRedemptionStateError,
    UnauthorizedRedemptionActionError,
    InvalidOfferError,
    InvalidModerationTransitionError,
)
from .services.offer_management import build_redeem_path


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class RetryableErrorResponseSerializer(ErrorResponseSerializer):
    retryable = drf_serializers.BooleanField()


class OfferPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


TRUTHY = ('1', 'true', 'yes')


def _request_context(request) -> dict:
    return {
        'ip_address': request.META.get('REMOTE_ADDR'),
        'user_agent': request.META.get('HTTP_USER_AGENT', ''),
    }


class OfferViewSet(viewsets.GenericViewSet):
    """
    ViewSet for offers and their redemptions.

    list: Offers redeemable right now
    create: Create an offer for a business you own (pending moderation)
    retrieve: Get a specific offer
    partial_update: Update an offer (owner or staff)
    destroy: Soft delete an offer (owner or staff)
    """

    queryset = Offer.objects.alive().select_related('business', 'venue')
    serializer_class = OfferSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsOfferManagerOrReadOnly]
    lookup_value_regex = r'[0-9a-fA-F-]{36}'
    pagination_class = OfferPagination

    def get_serializer_class(self):
        if self.action == 'create':
            return OfferCreateSerializer
        elif self.action == 'partial_update':
            return OfferUpdateSerializer
        elif self.action in ('my_redemptions', 'redemptions', 'redeem', 'cancel_redemption', 'complete_redemption'):
            return OfferRedemptionSerializer
        return OfferSerializer

    def _get_managed_offer(self, request, offer_id):
        """Load any non-deleted offer and check the caller manages it."""
        offer = get_offer_by_id(offer_id=offer_id, include_hidden=True)
        self.check_object_permissions(request, offer)
        return offer

    @extend_schema(
        parameters=[
            OpenApiParameter('venue_id', OpenApiTypes.UUID),
            OpenApiParameter('business_id', OpenApiTypes.UUID),
            OpenApiParameter('featured', OpenApiTypes.BOOL),
        ],
        responses={200: OfferSerializer(many=True)},
        description="Offers that can be redeemed right now.",
        tags=['offers'],
    )
    def list(self, request):
        params = request.query_params
        featured = params.get('featured')

        offers = get_redeemable_offers(
            venue_id=params.get('venue_id') or None,
            business_id=params.get('business_id') or None,
            featured=None if featured is None else featured.lower() in TRUTHY,
        )

        page = self.paginate_queryset(offers)
        if page is not None:
            serializer = OfferSerializer(page, many=True, context={'request': request})
            return self.get_paginated_response(serializer.data)

        return Response(OfferSerializer(offers, many=True, context={'request': request}).data)

    @extend_schema(
        responses={200: OfferSerializer, 404: ErrorResponseSerializer},
        tags=['offers'],
    )
    def retrieve(self, request, pk=None):
        try:
            offer = get_offer_by_id(offer_id=pk, include_hidden=True)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        # Pending and rejected offers are only visible to their business
        public = offer.is_active and offer.status == ModerationStatus.APPROVED
        if not public and not offer.business.is_managed_by(request.user):
            return Response({'error': f"Offer {pk} not found"}, status=status.HTTP_404_NOT_FOUND)

        return Response(OfferSerializer(offer, context={'request': request}).data)

    @extend_schema(
        request=OfferCreateSerializer,
        responses={201: OfferSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer},
        tags=['offers'],
    )
    def create(self, request):
        """Create a new offer using service layer."""
        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        business = data.pop('business')
        if not business.is_managed_by(request.user):
            return Response(
                {'error': 'You can only create offers for your own business'},
                status=status.HTTP_403_FORBIDDEN
            )

        venue = data.pop('venue', None)
        try:
            offer = create_offer(
                business_id=business.id,
                venue_id=venue.id if venue else None,
                **data
            )
        except InvalidOfferError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            OfferSerializer(offer, context={'request': request}).data,
            status=status.HTTP_201_CREATED
        )

    @extend_schema(
        request=OfferUpdateSerializer,
        responses={200: OfferSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['offers'],
    )
    def partial_update(self, request, pk=None):
        try:
            self._get_managed_offer(request, pk)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        serializer = OfferUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            offer = update_offer(offer_id=pk, data=serializer.validated_data)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidOfferError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferSerializer(offer, context={'request': request}).data)

    def destroy(self, request, pk=None):
        """Soft delete an offer."""
        try:
            self._get_managed_offer(request, pk)
            soft_delete_offer(offer_id=pk)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        responses={200: EligibilitySerializer, 404: ErrorResponseSerializer},
        description="Whether the current user can redeem this offer right now.",
        tags=['offers'],
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated])
    def eligibility(self, request, pk=None):
        try:
            offer = get_offer_by_id(offer_id=pk)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'is_redeemable': is_redeemable(offer),
            'can_redeem': can_user_redeem(offer, request.user),
            'user_redemptions_count': count_user_redemptions(offer=offer, user=request.user),
            'usage_limit_per_user': offer.usage_limit_per_user,
            'remaining_uses': offer.remaining_uses,
        })

    @extend_schema(
        request=None,
        responses={
            201: OfferRedemptionSerializer,
            400: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
            409: RetryableErrorResponseSerializer,
        },
        description="Redeem an offer. Returns the verification code to show at the venue.",
        tags=['offers'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def redeem(self, request, pk=None):
        try:
            redemption = redeem_offer(
                offer_id=pk,
                user=request.user,
                context=_request_context(request),
            )
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (NotRedeemableError, UserLimitExceededError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except ContentionExceededError as e:
            return Response(
                {'error': str(e), 'retryable': True},
                status=status.HTTP_409_CONFLICT
            )

        return Response(OfferRedemptionSerializer(redemption).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        parameters=[RedemptionStatusFilterSerializer],
        responses={200: OfferRedemptionSerializer(many=True)},
        tags=['offers'],
    )
    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated])
    def my_redemptions(self, request):
        """Get the current user's redemptions, newest first."""
        filters = RedemptionStatusFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        redemptions = get_user_redemptions(user=request.user, status=filters.validated_data.get('status'))

        page = self.paginate_queryset(redemptions)
        if page is not None:
            return self.get_paginated_response(OfferRedemptionSerializer(page, many=True).data)

        return Response(OfferRedemptionSerializer(redemptions, many=True).data)

    @extend_schema(
        parameters=[RedemptionStatusFilterSerializer],
        responses={200: OfferRedemptionSerializer(many=True), 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['offers'],
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsOfferManagerOrReadOnly])
    def redemptions(self, request, pk=None):
        """Redemptions of an offer (owner or staff)."""
        filters = RedemptionStatusFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        try:
            self._get_managed_offer(request, pk)
            redemptions = get_offer_redemptions(offer_id=pk, status=filters.validated_data.get('status'))
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        page = self.paginate_queryset(redemptions)
        if page is not None:
            return self.get_paginated_response(OfferRedemptionSerializer(page, many=True).data)

        return Response(OfferRedemptionSerializer(redemptions, many=True).data)

    @extend_schema(
        request=CompleteRedemptionSerializer,
        responses={200: OfferRedemptionSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Confirm a customer's redemption at the venue using their verification code.",
        tags=['offers'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsOfferManagerOrReadOnly])
    def complete_redemption(self, request, pk=None):
        serializer = CompleteRedemptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            self._get_managed_offer(request, pk)
            redemption = complete_redemption(
                offer_id=pk,
                verification_code=serializer.validated_data['verification_code'],
            )
        except (OfferNotFoundError, RedemptionNotFoundError) as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidRedemptionStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferRedemptionSerializer(redemption).data)

    @extend_schema(
        request=None,
        responses={
            200: OfferRedemptionSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        tags=['offers'],
    )
    @action(
        detail=False,
        methods=['post'],
        permission_classes=[IsAuthenticated],
        url_path=r'redemptions/(?P<redemption_id>[0-9a-fA-F-]{36})/cancel',
        url_name='cancel-redemption',
    )
    def cancel_redemption(self, request, redemption_id=None):
        """Cancel a redemption (its owner while pending, or the business)."""
        try:
            redemption = cancel_redemption(redemption_id=redemption_id, user=request.user)
        except RedemptionNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except UnauthorizedRedemptionActionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidRedemptionStateError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferRedemptionSerializer(redemption).data)

    @extend_schema(
        request=None,
        responses={200: OfferSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['offers'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAdminUser])
    def approve(self, request, pk=None):
        return self._moderate(request, approve_offer, pk)

    @extend_schema(
        request=None,
        responses={200: OfferSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['offers'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAdminUser])
    def reject(self, request, pk=None):
        return self._moderate(request, reject_offer, pk)

    def _moderate(self, request, service, offer_id):
        try:
            offer = service(offer_id=offer_id)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidModerationTransitionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OfferSerializer(offer, context={'request': request}).data)

    @extend_schema(
        parameters=[OpenApiParameter('regenerate', OpenApiTypes.BOOL)],
        responses={200: QRCodeSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="QR code (base64 PNG) that opens the offer's redeem endpoint.",
        tags=['offers'],
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsOfferManagerOrReadOnly])
    def qr_code(self, request, pk=None):
        try:
            offer = self._get_managed_offer(request, pk)
            qr = offer.qr_code
            if not qr or request.query_params.get('regenerate', '').lower() in TRUTHY:
                qr = generate_offer_qr_code(offer_id=offer.id)
        except OfferNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response({
            'offer_id': offer.id,
            'redeem_path': build_redeem_path(offer),
            'qr_code': qr,
        })
