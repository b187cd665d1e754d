import pytest
from unittest.mock import patch
from django.contrib import admin
from django.test import RequestFactory
from apps.offers.admin import OfferRedemptionInline
from apps.offers.models import Offer, OfferRedemption, RedemptionStatus
from apps.offers.services import redeem_offer, complete_redemption


@pytest.fixture
def redemption_admin():
    return admin.site._registry[OfferRedemption]


@pytest.fixture
def admin_request(offer_staff):
    request = RequestFactory().post('/admin/offers/offerredemption/')
    request.user = offer_staff
    return request


@pytest.mark.django_db
class TestOfferRedemptionAdmin:

    def test_cannot_add_redemptions(self, redemption_admin, admin_request):
        assert redemption_admin.has_add_permission(admin_request) is False

    def test_inline_cannot_add_redemptions(self, admin_request, offer):
        inline = OfferRedemptionInline(Offer, admin.site)

        assert inline.has_add_permission(admin_request, obj=offer) is False
        assert {'user', 'status'} <= set(inline.get_readonly_fields(admin_request))

    def test_status_offer_and_user_read_only(self, redemption_admin, admin_request, offer, offer_user):
        redemption = redeem_offer(offer_id=offer.id, user=offer_user)

        readonly = redemption_admin.get_readonly_fields(admin_request, obj=redemption)

        assert {'status', 'offer', 'user'} <= set(readonly)

    def test_cancel_action_uses_lifecycle(self, redemption_admin, admin_request, make_offer,
                                          offer_user, offer_other_user):
        offer = make_offer(usage_limit=10)
        pending = redeem_offer(offer_id=offer.id, user=offer_user)
        completed = redeem_offer(offer_id=offer.id, user=offer_other_user)
        complete_redemption(offer_id=offer.id, verification_code=completed.verification_code)
        already = redeem_offer(offer_id=offer.id, user=offer_user)
        OfferRedemption.objects.filter(id=already.id).update(status=RedemptionStatus.CANCELLED)

        with patch.object(redemption_admin, 'message_user') as message_user:
            redemption_admin.cancel_redemptions(admin_request, OfferRedemption.objects.all())

        statuses = dict(OfferRedemption.objects.values_list('id', 'status'))
        assert statuses == {
            pending.id: RedemptionStatus.CANCELLED,
            completed.id: RedemptionStatus.CANCELLED,
            already.id: RedemptionStatus.CANCELLED,
        }
        message_user.assert_called_once_with(
            admin_request,
            'Cancelled 2 redemption(s). Skipped 1 already cancelled or not yours.',
        )

        offer.refresh_from_db()
        assert offer.used_count == 3

    def test_cancel_action_skips_when_not_manager(self, redemption_admin, offer, offer_user, offer_other_user):
        redemption = redeem_offer(offer_id=offer.id, user=offer_user)
        request = RequestFactory().post('/admin/offers/offerredemption/')
        request.user = offer_other_user

        with patch.object(redemption_admin, 'message_user'):
            redemption_admin.cancel_redemptions(request, OfferRedemption.objects.all())

        redemption.refresh_from_db()
        assert redemption.status == RedemptionStatus.PENDING
