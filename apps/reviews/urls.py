from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'reviews'

router = DefaultRouter()
router.register(r'', views.ReviewViewSet, basename='review')

urlpatterns = [
    # GET    /api/reviews/{id}/          - Get review
    # PATCH  /api/reviews/{id}/          - Update review (author only)
    # DELETE /api/reviews/{id}/          - Delete review (author or staff)
    # GET    /api/reviews/my_reviews/    - Current user's reviews
    #
    # Listing and creating reviews lives under /api/venues/{id}/reviews/
    path('', include(router.urls)),
]
