from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'venues'

router = DefaultRouter()
router.register(r'', views.VenueViewSet, basename='venue')

urlpatterns = [
    # Venue ViewSet routes
    # GET    /api/venues/                 - Search venues
    # POST   /api/venues/                 - Create venue (business owner)
    # GET    /api/venues/{id}/            - Get venue details
    # PATCH  /api/venues/{id}/            - Update venue (owner or staff)
    # DELETE /api/venues/{id}/            - Soft delete venue (owner or staff)

    # Custom actions
    # GET    /api/venues/nearby/          - Venues near a point
    # GET    /api/venues/featured/        - Featured venues
    # GET    /api/venues/popular/         - Most visited venues
    # GET    /api/venues/categories/      - Category tree with venue counts
    # GET    /api/venues/favorites/       - Your saved venues
    # GET    /api/venues/my_visits/       - Your visit history
    # POST   /api/venues/{id}/favorite/   - Toggle favorite
    # POST   /api/venues/{id}/visit/      - Check in
    # POST   /api/venues/{id}/approve/    - Approve (staff)
    # POST   /api/venues/{id}/reject/     - Reject (staff)
    # GET    /api/venues/{id}/reviews/    - Venue reviews
    # POST   /api/venues/{id}/reviews/    - Review venue
    path('', include(router.urls)),
]
