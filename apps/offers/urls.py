from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'offers'

router = DefaultRouter()
router.register(r'', views.OfferViewSet, basename='offer')

urlpatterns = [
    # Offer ViewSet routes
    # GET    /api/offers/                                  - Redeemable offers
    # POST   /api/offers/                                  - Create offer (business owner)
    # GET    /api/offers/{id}/                             - Get offer details
    # PATCH  /api/offers/{id}/                             - Update offer (owner or staff)
    # DELETE /api/offers/{id}/                             - Soft delete offer (owner or staff)

    # Custom actions
    # GET    /api/offers/{id}/eligibility/                 - Can I redeem this?
    # POST   /api/offers/{id}/redeem/                      - Redeem offer
    # GET    /api/offers/my_redemptions/                   - My redemptions
    # GET    /api/offers/{id}/redemptions/                 - Offer redemptions (owner or staff)
    # POST   /api/offers/{id}/complete_redemption/         - Confirm code at venue (owner or staff)
    # POST   /api/offers/redemptions/{redemption_id}/cancel/ - Cancel redemption
    # POST   /api/offers/{id}/approve/                     - Approve (staff)
    # POST   /api/offers/{id}/reject/                      - Reject (staff)
    # GET    /api/offers/{id}/qr_code/                     - QR code (owner or staff)
    path('', include(router.urls)),
]
