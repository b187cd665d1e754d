from rest_framework import status, viewsets, mixins, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes
from .models import Venue
from .serializers import (
    VenueSerializer,
    VenueListSerializer,
    VenueCreateSerializer,
    VenueUpdateSerializer,
    VenueSearchQuerySerializer,
    VenueSearchResponseSerializer,
    VenueVisitSerializer,
    VisitRequestSerializer,
    VisitHistorySerializer,
    CategoryTreeSerializer,
    FavoriteStatusSerializer,
)
from .permissions import IsVenueManagerOrReadOnly
from .services import (
    search_venues,
    nearby_venues,
    get_featured_venues,
    get_popular_venues,
    get_category_tree,
    create_venue,
    update_venue,
    get_venue_by_id,
    soft_delete_venue,
    approve_venue,
    reject_venue,
    track_visit,
    get_user_visits,
    toggle_favorite,
    get_user_favorites,
    VenueNotFoundError,
    BusinessNotFoundError,
    InvalidFilterError,
    InvalidCoordinatesError,
    InvalidModerationTransitionError,
)
from apps.reviews.serializers import ReviewSerializer, ReviewCreateSerializer
from apps.reviews.services import (
    create_review,
    get_venue_reviews,
    DuplicateReviewError,
    InvalidRatingError,
    VenueNotFoundError as ReviewVenueNotFoundError,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class ReviewPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class VenuePagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 50


TRUTHY = ('1', 'true', 'yes')


def _flag(params, name) -> bool:
    return params.get(name, '').lower() in TRUTHY


def _amenity_slugs(params) -> list[str]:
    """Accept ?amenities=wifi,parking as well as repeated ?amenities= params."""
    slugs = []
    for value in params.getlist('amenities'):
        slugs.extend(slug.strip() for slug in value.split(',') if slug.strip())
    return slugs


def _limit(params, default: int) -> int:
    try:
        limit = int(params.get('limit', default))
    except (TypeError, ValueError):
        raise InvalidFilterError("limit must be an integer")
    if not (1 <= limit <= 50):
        raise InvalidFilterError("limit must be between 1 and 50")
    return limit


class VenueViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    ViewSet for venue discovery and management.

    list: Search venues (filters, distance, sort, pagination)
    create: Create a venue for a business you own (pending moderation)
    retrieve: Get a specific venue
    partial_update: Update details or location (owner or staff)
    destroy: Soft delete a venue (owner or staff)
    """

    queryset = Venue.objects.searchable().select_related('business', 'category', 'subcategory').prefetch_related('amenities')
    serializer_class = VenueSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsVenueManagerOrReadOnly]
    lookup_value_regex = r'[0-9a-fA-F-]{36}'

    def get_serializer_class(self):
        if self.action in ('list', 'nearby', 'featured', 'popular', 'favorites'):
            return VenueListSerializer
        elif self.action == 'create':
            return VenueCreateSerializer
        elif self.action == 'partial_update':
            return VenueUpdateSerializer
        elif self.action == 'my_visits':
            return VisitHistorySerializer
        elif self.action == 'categories':
            return CategoryTreeSerializer
        return VenueSerializer

    @extend_schema(
        parameters=[VenueSearchQuerySerializer],
        responses={200: VenueSearchResponseSerializer, 400: ErrorResponseSerializer},
        description="Search approved venues. Combine text, attribute and location filters.",
        tags=['venues'],
    )
    def list(self, request, *args, **kwargs):
        params = request.query_params

        try:
            result = search_venues(
                search=params.get('search'),
                category_id=params.get('category_id'),
                subcategory_id=params.get('subcategory_id'),
                emirate=params.get('emirate'),
                city=params.get('city'),
                price_range=params.get('price_range'),
                amenities=_amenity_slugs(params),
                women_only=_flag(params, 'women_only'),
                featured=_flag(params, 'featured'),
                min_rating=params.get('min_rating'),
                latitude=params.get('latitude'),
                longitude=params.get('longitude'),
                radius_km=params.get('radius_km'),
                sort_by=params.get('sort_by'),
                page=params.get('page', 1),
                per_page=params.get('per_page'),
            )
        except InvalidFilterError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        result['results'] = VenueListSerializer(result['results'], many=True).data
        return Response(result)

    @extend_schema(
        request=VenueCreateSerializer,
        responses={201: VenueSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer},
        tags=['venues'],
    )
    def create(self, request, *args, **kwargs):
        """Create a new venue using service layer."""
        serializer = VenueCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        business = data.pop('business')
        if not business.is_managed_by(request.user):
            return Response(
                {'error': 'You can only add venues to your own business'},
                status=status.HTTP_403_FORBIDDEN
            )

        try:
            venue = create_venue(
                business_id=business.id,
                amenity_slugs=data.pop('amenities'),
                **data
            )
        except (BusinessNotFoundError, InvalidCoordinatesError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(VenueSerializer(venue).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        request=VenueUpdateSerializer,
        responses={200: VenueSerializer, 400: ErrorResponseSerializer, 403: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        description="Update venue details or correct its location (owner or staff).",
        tags=['venues'],
    )
    def partial_update(self, request, *args, **kwargs):
        try:
            venue = get_venue_by_id(venue_id=kwargs.get('pk'), include_hidden=True)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        self.check_object_permissions(request, venue)

        serializer = VenueUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            venue = update_venue(venue_id=venue.id, data=serializer.validated_data)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidCoordinatesError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(VenueSerializer(venue, context={'request': request}).data)

    def destroy(self, request, *args, **kwargs):
        """Soft delete a venue."""
        # Owners can remove venues that are still pending or were rejected
        try:
            venue = get_venue_by_id(venue_id=kwargs.get('pk'), include_hidden=True)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        self.check_object_permissions(request, venue)

        try:
            soft_delete_venue(venue_id=venue.id)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        parameters=[
            OpenApiParameter('latitude', OpenApiTypes.FLOAT, required=True),
            OpenApiParameter('longitude', OpenApiTypes.FLOAT, required=True),
            OpenApiParameter('radius_km', OpenApiTypes.FLOAT, description='1-50 km, default 10'),
            OpenApiParameter('limit', OpenApiTypes.INT, default=20),
        ],
        responses={200: VenueListSerializer(many=True), 400: ErrorResponseSerializer},
        description="Venues around a point, nearest first.",
        tags=['venues'],
    )
    @action(detail=False, methods=['get'])
    def nearby(self, request):
        params = request.query_params
        try:
            venues = nearby_venues(
                latitude=params.get('latitude'),
                longitude=params.get('longitude'),
                radius_km=params.get('radius_km'),
                limit=_limit(params, 20),
            )
        except InvalidFilterError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(VenueListSerializer(venues, many=True).data)

    @extend_schema(
        parameters=[OpenApiParameter('limit', OpenApiTypes.INT, default=10)],
        responses={200: VenueListSerializer(many=True)},
        tags=['venues'],
    )
    @action(detail=False, methods=['get'])
    def featured(self, request):
        try:
            venues = get_featured_venues(limit=_limit(request.query_params, 10))
        except InvalidFilterError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(VenueListSerializer(venues, many=True).data)

    @extend_schema(
        parameters=[OpenApiParameter('limit', OpenApiTypes.INT, default=10)],
        responses={200: VenueListSerializer(many=True)},
        tags=['venues'],
    )
    @action(detail=False, methods=['get'])
    def popular(self, request):
        try:
            venues = get_popular_venues(limit=_limit(request.query_params, 10))
        except InvalidFilterError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(VenueListSerializer(venues, many=True).data)

    @extend_schema(
        responses={200: CategoryTreeSerializer(many=True)},
        description="Active categories with subcategories and visible venue counts.",
        tags=['venues'],
    )
    @action(detail=False, methods=['get'], permission_classes=[AllowAny])
    def categories(self, request):
        return Response(CategoryTreeSerializer(get_category_tree(), many=True).data)

    @extend_schema(
        request=None,
        responses={200: FavoriteStatusSerializer, 404: ErrorResponseSerializer},
        description="Add the venue to your favorites, or remove it if already saved.",
        tags=['venues'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def favorite(self, request, pk=None):
        try:
            saved = toggle_favorite(venue_id=pk, user=request.user)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response({'is_favorite': saved})

    @extend_schema(
        responses={200: VenueListSerializer(many=True)},
        description="Your saved venues, most recently saved first.",
        tags=['venues'],
    )
    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated], pagination_class=VenuePagination)
    def favorites(self, request):
        venues = get_user_favorites(user=request.user)

        page = self.paginate_queryset(venues)
        if page is not None:
            return self.get_paginated_response(VenueListSerializer(page, many=True).data)

        return Response(VenueListSerializer(venues, many=True).data)

    @extend_schema(
        responses={200: VisitHistorySerializer(many=True)},
        description="Your check-in history, newest first.",
        tags=['venues'],
    )
    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated], pagination_class=VenuePagination)
    def my_visits(self, request):
        visits = get_user_visits(user=request.user)

        page = self.paginate_queryset(visits)
        if page is not None:
            return self.get_paginated_response(VisitHistorySerializer(page, many=True).data)

        return Response(VisitHistorySerializer(visits, many=True).data)

    @extend_schema(
        request=VisitRequestSerializer,
        responses={201: VenueVisitSerializer, 200: VenueVisitSerializer, 404: ErrorResponseSerializer},
        description="Check in at a venue. Returns 200 with the existing visit if already recorded today.",
        tags=['venues'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated])
    def visit(self, request, pk=None):
        serializer = VisitRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            visit, created = track_visit(
                venue_id=pk,
                user=request.user,
                source=serializer.validated_data['source'],
                metadata={
                    'ip_address': request.META.get('REMOTE_ADDR'),
                    'user_agent': request.META.get('HTTP_USER_AGENT', ''),
                },
            )
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        return Response(
            VenueVisitSerializer(visit).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @extend_schema(
        request=None,
        responses={200: VenueSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['venues'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAdminUser])
    def approve(self, request, pk=None):
        return self._moderate(approve_venue, pk)

    @extend_schema(
        request=None,
        responses={200: VenueSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['venues'],
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAdminUser])
    def reject(self, request, pk=None):
        return self._moderate(reject_venue, pk)

    def _moderate(self, service, venue_id):
        try:
            venue = service(venue_id=venue_id)
        except VenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except InvalidModerationTransitionError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(VenueSerializer(venue).data)

    @extend_schema(
        methods=['GET'],
        parameters=[OpenApiParameter('rating', OpenApiTypes.INT, description='Exact rating (1-5)')],
        responses={200: ReviewSerializer(many=True), 404: ErrorResponseSerializer},
        tags=['venues'],
    )
    @extend_schema(
        methods=['POST'],
        request=ReviewCreateSerializer,
        responses={201: ReviewSerializer, 400: ErrorResponseSerializer, 404: ErrorResponseSerializer},
        tags=['venues'],
    )
    @action(
        detail=True,
        methods=['get', 'post'],
        permission_classes=[IsAuthenticatedOrReadOnly],
        pagination_class=ReviewPagination,
    )
    def reviews(self, request, pk=None):
        """List reviews of a venue, or add your own."""
        if request.method == 'POST':
            return self._create_review(request, pk)

        rating = request.query_params.get('rating')
        try:
            reviews = get_venue_reviews(
                venue_id=pk,
                rating=int(rating) if rating and rating.isdigit() else None,
            )
        except ReviewVenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)

        page = self.paginate_queryset(reviews)
        if page is not None:
            return self.get_paginated_response(ReviewSerializer(page, many=True).data)

        return Response(ReviewSerializer(reviews, many=True).data)

    def _create_review(self, request, venue_id):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            review = create_review(
                user=request.user,
                venue_id=venue_id,
                **serializer.validated_data
            )
        except ReviewVenueNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (DuplicateReviewError, InvalidRatingError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)
