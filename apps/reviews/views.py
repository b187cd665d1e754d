from rest_framework import status, viewsets, mixins, serializers as drf_serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema
from .models import Review
from .serializers import ReviewSerializer, ReviewUpdateSerializer
from .permissions import IsReviewAuthorOrReadOnly
from .services import (
    update_review,
    delete_review,
    get_user_reviews,
    ReviewNotFoundError,
    UnauthorizedReviewActionError,
    InvalidRatingError,
)


class ErrorResponseSerializer(drf_serializers.Serializer):
    error = drf_serializers.CharField()


class ReviewPagination(PageNumberPagination):
    """Custom pagination for reviews."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class ReviewViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Review read/update/delete. Reviews are created through the venue
    endpoint: POST /api/venues/{id}/reviews/.

    retrieve: Get a specific review
    partial_update: Update a review (author only)
    destroy: Delete a review (author or staff)
    """

    queryset = Review.objects.select_related('user', 'venue')
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticatedOrReadOnly, IsReviewAuthorOrReadOnly]
    pagination_class = ReviewPagination
    lookup_value_regex = r'[0-9a-fA-F-]{36}'

    @extend_schema(
        request=ReviewUpdateSerializer,
        responses={
            200: ReviewSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        tags=['reviews'],
    )
    def partial_update(self, request, *args, **kwargs):
        """Update own review using service layer."""
        review = self.get_object()

        serializer = ReviewUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            review = update_review(
                review_id=review.id,
                user=request.user,
                **serializer.validated_data
            )
        except ReviewNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except UnauthorizedReviewActionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)
        except InvalidRatingError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ReviewSerializer(review).data)

    @extend_schema(
        responses={
            204: None,
            403: ErrorResponseSerializer,
            404: ErrorResponseSerializer,
        },
        tags=['reviews'],
    )
    def destroy(self, request, *args, **kwargs):
        """Delete review using service layer."""
        review = self.get_object()

        try:
            delete_review(review_id=review.id, user=request.user)
        except ReviewNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except UnauthorizedReviewActionError as e:
            return Response({'error': str(e)}, status=status.HTTP_403_FORBIDDEN)

        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], permission_classes=[IsAuthenticated])
    def my_reviews(self, request):
        """Get current user's reviews using service layer."""
        reviews = get_user_reviews(user=request.user)
        page = self.paginate_queryset(reviews)

        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(reviews, many=True)
        return Response(serializer.data)
