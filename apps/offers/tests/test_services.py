"""
Tests for offers services.

Covers:
- Eligibility rules (window, moderation, global and per-user limits)
- Redemption (limits under load, atomicity, contention retries)
- Redemption lifecycle (complete, cancel)
- Offer management and QR codes
"""

import base64
import re
import threading
import pytest
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from django.db import OperationalError, connection
from django.test import TransactionTestCase
from django.utils import timezone

from apps.offers.models import Offer, OfferRedemption, OfferType, DiscountType, RedemptionStatus
from apps.offers.services import (
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
from apps.offers.services import redemption as redemption_module
from apps.venues.models import ModerationStatus


def _make_user(email):
    from apps.accounts.models import User
    return User.objects.create_user(email=email, password='TestPass123!')


# =============================================================================
# Eligibility
# =============================================================================

@pytest.mark.django_db
class TestIsRedeemable:
    """Test offer-level eligibility."""

    def test_running_offer_is_redeemable(self, make_offer, now):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now + timedelta(days=1))

        assert is_redeemable(offer, now) is True

    def test_end_date_equal_to_now_is_redeemable(self, make_offer, now):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now)

        assert is_redeemable(offer, now) is True

    def test_end_date_one_second_ago_is_not_redeemable(self, make_offer, now):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now - timedelta(seconds=1))

        assert is_redeemable(offer, now) is False

    def test_start_date_equal_to_now_is_redeemable(self, make_offer, now):
        offer = make_offer(start_date=now, end_date=now + timedelta(days=1))

        assert is_redeemable(offer, now) is True

    def test_not_started_yet(self, make_offer, now):
        offer = make_offer(start_date=now + timedelta(seconds=1), end_date=now + timedelta(days=1))

        assert is_redeemable(offer, now) is False

    def test_inactive_offer(self, make_offer, now):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now + timedelta(days=1), is_active=False)

        assert is_redeemable(offer, now) is False

    @pytest.mark.parametrize('moderation', [ModerationStatus.PENDING, ModerationStatus.REJECTED])
    def test_unapproved_offer(self, make_offer, now, moderation):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now + timedelta(days=1), status=moderation)

        assert is_redeemable(offer, now) is False

    def test_usage_limit_reached(self, make_offer, now):
        offer = make_offer(
            start_date=now - timedelta(days=1), end_date=now + timedelta(days=1),
            usage_limit=3, used_count=3,
        )

        assert is_redeemable(offer, now) is False

    def test_usage_limit_zero_is_closed_not_unlimited(self, make_offer, now):
        offer = make_offer(start_date=now - timedelta(days=1), end_date=now + timedelta(days=1), usage_limit=0)

        assert is_redeemable(offer, now) is False

    def test_no_usage_limit_is_unlimited(self, make_offer, now):
        offer = make_offer(
            start_date=now - timedelta(days=1), end_date=now + timedelta(days=1),
            usage_limit=None, used_count=10_000,
        )

        assert is_redeemable(offer, now) is True

    def test_defaults_to_current_time(self, offer):
        assert is_redeemable(offer) is True


@pytest.mark.django_db
class TestCanUserRedeem:
    """Test per-user eligibility."""

    def test_below_per_user_limit(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=2)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        # One redemption, limit two: limit - 1 used
        assert can_user_redeem(offer, offer_user, now) is True

    def test_per_user_limit_reached(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=2)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert can_user_redeem(offer, offer_user, now) is False

    def test_per_user_limit_is_per_user(self, make_offer, offer_user, offer_other_user, now):
        offer = make_offer(usage_limit_per_user=1)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert can_user_redeem(offer, offer_user, now) is False
        assert can_user_redeem(offer, offer_other_user, now) is True

    def test_per_user_limit_zero_closes_for_everyone(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=0)

        assert is_redeemable(offer, now) is True
        assert can_user_redeem(offer, offer_user, now) is False

    def test_no_per_user_limit(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit=10)
        for _ in range(4):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert can_user_redeem(offer, offer_user, now) is True

    def test_unredeemable_offer_short_circuits(self, make_offer, offer_user, now):
        offer = make_offer(is_active=False)

        assert can_user_redeem(offer, offer_user, now) is False

    def test_cancelled_redemptions_do_not_count(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=1)
        redemption = redeem_offer(offer_id=offer.id, user=offer_user, now=now)
        cancel_redemption(redemption_id=redemption.id, user=offer_user)

        assert count_user_redemptions(offer=offer, user=offer_user) == 0
        assert can_user_redeem(offer, offer_user, now) is True


# =============================================================================
# Redemption
# =============================================================================

@pytest.mark.django_db
class TestRedeemOffer:
    """Test redeem_offer."""

    def test_redeem_success(self, offer, offer_user, now):
        redemption = redeem_offer(
            offer_id=offer.id,
            user=offer_user,
            now=now,
            context={'ip_address': '10.0.0.1', 'user_agent': 'pytest'},
        )

        assert redemption.user == offer_user
        assert redemption.offer == offer
        assert redemption.status == RedemptionStatus.PENDING
        assert redemption.redeemed_at == now
        assert redemption.metadata == {'ip_address': '10.0.0.1', 'user_agent': 'pytest'}
        assert re.fullmatch(r'[0-9A-F]{8}', redemption.verification_code)

        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_context_defaults_to_empty(self, offer, offer_user, now):
        redemption = redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert redemption.metadata == {}

    def test_verification_codes_unique_per_offer(self, offer, offer_user, now):
        codes = {
            redeem_offer(offer_id=offer.id, user=offer_user, now=now).verification_code
            for _ in range(10)
        }

        assert len(codes) == 10

    def test_usage_limit_n_with_extra_attempts(self, make_offer, now):
        """N + K attempts against usage_limit N yield exactly N redemptions."""
        offer = make_offer(usage_limit=3)
        users = [_make_user(f'user{i}@example.com') for i in range(5)]

        succeeded = 0
        rejected = 0
        for user in users:
            try:
                redeem_offer(offer_id=offer.id, user=user, now=now)
                succeeded += 1
            except NotRedeemableError:
                rejected += 1

        assert succeeded == 3
        assert rejected == 2
        offer.refresh_from_db()
        assert offer.used_count == 3
        assert OfferRedemption.objects.filter(offer=offer).count() == 3

    def test_limit_one_second_user_rejected(self, make_offer, offer_user, offer_other_user, now):
        offer = make_offer(usage_limit=1)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_other_user, now=now)

        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_last_global_use_then_closed(self, make_offer, offer_user, offer_other_user, now):
        """{usage_limit 5, per_user 2, used_count 4}: A takes the last one, B is rejected."""
        offer = make_offer(usage_limit=5, usage_limit_per_user=2, used_count=4)

        redeem_offer(offer_id=offer.id, user=offer_user, now=now)
        offer.refresh_from_db()
        assert offer.used_count == 5

        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_other_user, now=now)

        offer.refresh_from_db()
        assert offer.used_count == 5

    def test_per_user_limit_exceeded(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=1)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        with pytest.raises(UserLimitExceededError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_per_user_limit_zero(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=0)

        with pytest.raises(UserLimitExceededError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_usage_limit_zero(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit=0)

        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_offer_level_check_precedes_user_check(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit=1, usage_limit_per_user=1)
        redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        # Both limits are hit; the offer-level error wins
        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_expired_offer(self, make_offer, offer_user, now):
        offer = make_offer(start_date=now - timedelta(days=2), end_date=now - timedelta(seconds=1))

        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_redeem_at_end_date(self, make_offer, offer_user, now):
        offer = make_offer(start_date=now - timedelta(days=2), end_date=now)

        redemption = redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert redemption.redeemed_at == offer.end_date

    def test_unknown_offer(self, offer_user, now):
        import uuid

        with pytest.raises(OfferNotFoundError):
            redeem_offer(offer_id=uuid.uuid4(), user=offer_user, now=now)

    def test_soft_deleted_offer(self, offer, offer_user, now):
        soft_delete_offer(offer_id=offer.id)

        with pytest.raises(OfferNotFoundError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_rejection_leaves_no_trace(self, make_offer, offer_user, now):
        offer = make_offer(is_active=False)

        with pytest.raises(NotRedeemableError):
            redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert OfferRedemption.objects.count() == 0
        offer.refresh_from_db()
        assert offer.used_count == 0

    def test_failed_increment_rolls_back_redemption(self, offer, offer_user, now):
        """No redemption row survives without its used_count increment."""
        with patch.object(redemption_module, 'F', side_effect=RuntimeError('boom')):
            with pytest.raises(RuntimeError):
                redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert OfferRedemption.objects.filter(offer=offer).count() == 0
        offer.refresh_from_db()
        assert offer.used_count == 0


@pytest.mark.django_db
class TestRedemptionRetries:
    """Test bounded retry on lock contention."""

    def test_retries_then_succeeds(self, offer, offer_user, now, settings):
        settings.REDEMPTION_MAX_ATTEMPTS = 3
        settings.REDEMPTION_RETRY_BACKOFF = 0.05
        real_redeem_once = redemption_module._redeem_once
        calls = []

        def flaky(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise OperationalError('database is locked')
            return real_redeem_once(**kwargs)

        with patch.object(redemption_module, '_redeem_once', side_effect=flaky), \
                patch.object(redemption_module.time, 'sleep') as sleep:
            redemption = redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert len(calls) == 2
        sleep.assert_called_once_with(0.05)
        assert redemption.status == RedemptionStatus.PENDING
        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_contention_exhausted(self, offer, offer_user, now, settings):
        settings.REDEMPTION_MAX_ATTEMPTS = 3
        settings.REDEMPTION_RETRY_BACKOFF = 0.05

        with patch.object(
            redemption_module, '_redeem_once', side_effect=OperationalError('database is locked')
        ) as redeem_once, patch.object(redemption_module.time, 'sleep') as sleep:
            with pytest.raises(ContentionExceededError):
                redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert redeem_once.call_count == 3
        # Exponential backoff between attempts, none after the last
        assert [c.args[0] for c in sleep.call_args_list] == [0.05, 0.1]
        offer.refresh_from_db()
        assert offer.used_count == 0

    def test_other_operational_errors_propagate(self, offer, offer_user, now, settings):
        settings.REDEMPTION_MAX_ATTEMPTS = 3
        error = OperationalError('no such table: offers')

        with patch.object(redemption_module, '_redeem_once', side_effect=error) as redeem_once, \
                patch.object(redemption_module.time, 'sleep') as sleep:
            with pytest.raises(OperationalError) as exc:
                redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert exc.value is error
        assert redeem_once.call_count == 1
        sleep.assert_not_called()

    def test_serialization_failure_sqlstate_is_retried(self, offer, offer_user, now, settings):
        settings.REDEMPTION_MAX_ATTEMPTS = 2
        settings.REDEMPTION_RETRY_BACKOFF = 0.05

        class SerializationFailure(Exception):
            pgcode = '40001'

        error = OperationalError('terminating transaction')
        error.__cause__ = SerializationFailure()

        with patch.object(redemption_module, '_redeem_once', side_effect=error) as redeem_once, \
                patch.object(redemption_module.time, 'sleep'):
            with pytest.raises(ContentionExceededError):
                redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert redeem_once.call_count == 2

    def test_domain_errors_are_not_retried(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit=0)

        with patch.object(redemption_module.time, 'sleep') as sleep:
            with pytest.raises(NotRedeemableError):
                redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        sleep.assert_not_called()


# =============================================================================
# Redemption lifecycle
# =============================================================================

@pytest.mark.django_db
class TestRedemptionLifecycle:
    """Test complete and cancel transitions."""

    @pytest.fixture
    def redemption(self, offer, offer_user, now):
        return redeem_offer(offer_id=offer.id, user=offer_user, now=now)

    def test_complete_redemption(self, redemption):
        completed = complete_redemption(
            offer_id=redemption.offer_id,
            verification_code=redemption.verification_code,
        )

        assert completed.id == redemption.id
        assert completed.status == RedemptionStatus.COMPLETED

    def test_complete_is_case_insensitive(self, redemption):
        completed = complete_redemption(
            offer_id=redemption.offer_id,
            verification_code=f' {redemption.verification_code.lower()} ',
        )

        assert completed.status == RedemptionStatus.COMPLETED

    def test_complete_twice_fails(self, redemption):
        complete_redemption(offer_id=redemption.offer_id, verification_code=redemption.verification_code)

        with pytest.raises(InvalidRedemptionStateError):
            complete_redemption(offer_id=redemption.offer_id, verification_code=redemption.verification_code)

    def test_complete_unknown_code(self, redemption):
        with pytest.raises(RedemptionNotFoundError):
            complete_redemption(offer_id=redemption.offer_id, verification_code='00000000')

    def test_complete_code_of_other_offer(self, redemption, make_offer):
        other = make_offer(title='Other offer')

        with pytest.raises(RedemptionNotFoundError):
            complete_redemption(offer_id=other.id, verification_code=redemption.verification_code)

    def test_complete_cancelled_fails(self, redemption, offer_user):
        cancel_redemption(redemption_id=redemption.id, user=offer_user)

        with pytest.raises(InvalidRedemptionStateError):
            complete_redemption(offer_id=redemption.offer_id, verification_code=redemption.verification_code)

    def test_user_cancels_own_pending(self, redemption, offer_user):
        cancelled = cancel_redemption(redemption_id=redemption.id, user=offer_user)

        assert cancelled.status == RedemptionStatus.CANCELLED

    def test_cancel_does_not_decrement_used_count(self, redemption, offer_user, offer):
        cancel_redemption(redemption_id=redemption.id, user=offer_user)

        offer.refresh_from_db()
        assert offer.used_count == 1

    def test_user_cannot_cancel_completed(self, redemption, offer_user):
        complete_redemption(offer_id=redemption.offer_id, verification_code=redemption.verification_code)

        with pytest.raises(InvalidRedemptionStateError):
            cancel_redemption(redemption_id=redemption.id, user=offer_user)

    def test_business_cancels_completed(self, redemption, offer_owner):
        complete_redemption(offer_id=redemption.offer_id, verification_code=redemption.verification_code)

        cancelled = cancel_redemption(redemption_id=redemption.id, user=offer_owner)

        assert cancelled.status == RedemptionStatus.CANCELLED

    def test_staff_cancels(self, redemption, offer_staff):
        cancelled = cancel_redemption(redemption_id=redemption.id, user=offer_staff)

        assert cancelled.status == RedemptionStatus.CANCELLED

    def test_other_user_cannot_cancel(self, redemption, offer_other_user):
        with pytest.raises(UnauthorizedRedemptionActionError):
            cancel_redemption(redemption_id=redemption.id, user=offer_other_user)

    def test_cancel_twice_fails(self, redemption, offer_user):
        cancel_redemption(redemption_id=redemption.id, user=offer_user)

        with pytest.raises(InvalidRedemptionStateError):
            cancel_redemption(redemption_id=redemption.id, user=offer_user)

    def test_cancel_unknown(self, offer_user):
        import uuid

        with pytest.raises(RedemptionNotFoundError):
            cancel_redemption(redemption_id=uuid.uuid4(), user=offer_user)

    def test_cancelled_slot_can_be_redeemed_again(self, make_offer, offer_user, now):
        offer = make_offer(usage_limit_per_user=1)
        first = redeem_offer(offer_id=offer.id, user=offer_user, now=now)
        cancel_redemption(redemption_id=first.id, user=offer_user)

        second = redeem_offer(offer_id=offer.id, user=offer_user, now=now)

        assert second.id != first.id
        offer.refresh_from_db()
        assert offer.used_count == 2

    def test_get_user_redemptions(self, make_offer, offer_user, offer_other_user, now):
        first = make_offer(title='First')
        second = make_offer(title='Second')
        redeem_offer(offer_id=first.id, user=offer_user, now=now - timedelta(hours=1))
        latest = redeem_offer(offer_id=second.id, user=offer_user, now=now)
        redeem_offer(offer_id=first.id, user=offer_other_user, now=now)

        redemptions = list(get_user_redemptions(user=offer_user))

        assert len(redemptions) == 2
        assert redemptions[0] == latest

    def test_get_user_redemptions_by_status(self, redemption, offer_user):
        cancel_redemption(redemption_id=redemption.id, user=offer_user)

        assert get_user_redemptions(user=offer_user, status=RedemptionStatus.PENDING).count() == 0
        assert get_user_redemptions(user=offer_user, status=RedemptionStatus.CANCELLED).count() == 1

    def test_get_offer_redemptions(self, redemption, offer, offer_other_user, now):
        redeem_offer(offer_id=offer.id, user=offer_other_user, now=now)

        assert get_offer_redemptions(offer_id=offer.id).count() == 2

    def test_get_offer_redemptions_unknown_offer(self):
        import uuid

        with pytest.raises(OfferNotFoundError):
            get_offer_redemptions(offer_id=uuid.uuid4())


# =============================================================================
# Offer management
# =============================================================================

@pytest.mark.django_db
class TestOfferManagement:
    """Test offer CRUD and moderation."""

    def _create(self, business, **kwargs):
        fields = {
            'business_id': business.id,
            'title': 'Weekday brunch',
            'description': 'Two for one on weekdays.',
            'type': OfferType.BOGO,
            'start_date': timezone.now(),
            'end_date': timezone.now() + timedelta(days=30),
        }
        fields.update(kwargs)
        return create_offer(**fields)

    def test_create_offer_pending(self, offer_business, offer_venue):
        offer = self._create(offer_business, venue_id=offer_venue.id, usage_limit=100)

        assert offer.status == ModerationStatus.PENDING
        assert offer.used_count == 0
        assert offer.venue == offer_venue
        assert offer.usage_limit == 100

    def test_create_offer_end_before_start(self, offer_business):
        start = timezone.now()

        with pytest.raises(InvalidOfferError):
            self._create(offer_business, start_date=start, end_date=start)

    def test_create_offer_venue_of_other_business(self, offer_business, offer_venue, offer_other_user):
        from apps.venues.models import Business
        other = Business.objects.create(owner=offer_other_user, name='Other Co')

        with pytest.raises(InvalidOfferError):
            self._create(other, venue_id=offer_venue.id)

    def test_create_offer_percentage_over_100(self, offer_business):
        with pytest.raises(InvalidOfferError):
            self._create(
                offer_business,
                type=OfferType.DISCOUNT,
                discount_type=DiscountType.PERCENTAGE,
                discount_value=Decimal('150'),
            )

    def test_create_offer_discounted_above_original(self, offer_business):
        with pytest.raises(InvalidOfferError):
            self._create(offer_business, original_price=Decimal('50'), discounted_price=Decimal('60'))

    def test_update_offer(self, offer):
        updated = update_offer(offer_id=offer.id, data={'title': 'Happy hour', 'priority': 5})

        assert updated.title == 'Happy hour'
        assert updated.priority == 5

    def test_update_ignores_protected_fields(self, offer):
        updated = update_offer(
            offer_id=offer.id,
            data={'used_count': 99, 'status': ModerationStatus.REJECTED, 'title': 'New'},
        )

        updated.refresh_from_db()
        assert updated.used_count == 0
        assert updated.status == ModerationStatus.APPROVED
        assert updated.title == 'New'

    def test_update_usage_limit_below_used_count(self, make_offer):
        offer = make_offer(usage_limit=10, used_count=4)

        with pytest.raises(InvalidOfferError):
            update_offer(offer_id=offer.id, data={'usage_limit': 3})

    def test_update_deleted_offer(self, offer):
        soft_delete_offer(offer_id=offer.id)

        with pytest.raises(OfferNotFoundError):
            update_offer(offer_id=offer.id, data={'title': 'Gone'})

    def test_soft_delete(self, offer):
        soft_delete_offer(offer_id=offer.id)

        offer.refresh_from_db()
        assert offer.is_active is False
        assert offer.deleted_at is not None
        with pytest.raises(OfferNotFoundError):
            get_offer_by_id(offer_id=offer.id, include_hidden=True)

    def test_get_offer_by_id_hides_pending(self, make_offer):
        offer = make_offer(status=ModerationStatus.PENDING)

        with pytest.raises(OfferNotFoundError):
            get_offer_by_id(offer_id=offer.id)
        assert get_offer_by_id(offer_id=offer.id, include_hidden=True) == offer

    def test_approve_and_reject(self, make_offer):
        offer = make_offer(status=ModerationStatus.PENDING)

        assert approve_offer(offer_id=offer.id).status == ModerationStatus.APPROVED
        assert reject_offer(offer_id=offer.id).status == ModerationStatus.REJECTED

    def test_approve_twice_fails(self, offer):
        with pytest.raises(InvalidModerationTransitionError):
            approve_offer(offer_id=offer.id)

    def test_get_redeemable_offers(self, make_offer):
        running = make_offer(title='Running')
        make_offer(title='Sold out', usage_limit=2, used_count=2)
        make_offer(title='Pending', status=ModerationStatus.PENDING)
        make_offer(title='Expired', end_date=timezone.now() - timedelta(minutes=1))
        deleted = make_offer(title='Deleted')
        soft_delete_offer(offer_id=deleted.id)

        assert list(get_redeemable_offers()) == [running]

    def test_get_redeemable_offers_ordering_and_filters(self, make_offer, offer_venue):
        low = make_offer(title='Low', priority=1)
        high = make_offer(title='High', priority=10, is_featured=True)
        no_venue = make_offer(title='Business wide', venue=None)

        assert list(get_redeemable_offers())[:2] == [high, low]
        assert list(get_redeemable_offers(featured=True)) == [high]
        assert no_venue not in get_redeemable_offers(venue_id=offer_venue.id)

    def test_generate_qr_code(self, offer):
        qr = generate_offer_qr_code(offer_id=offer.id)

        assert base64.b64decode(qr).startswith(b'\x89PNG')
        offer.refresh_from_db()
        assert offer.qr_code == qr


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrentRedemption(TransactionTestCase):
    """Test redemption limits with real concurrent transactions."""

    def setUp(self):
        from apps.venues.models import Business

        self.owner = _make_user('owner-concurrent@example.com')
        self.business = Business.objects.create(
            owner=self.owner,
            name='Concurrent Co',
            status=ModerationStatus.APPROVED,
        )
        self.now = timezone.now()

    def _offer(self, **kwargs):
        return Offer.objects.create(
            business=self.business,
            title='Flash deal',
            description='First come, first served.',
            type=OfferType.FREE_ITEM,
            start_date=self.now - timedelta(hours=1),
            end_date=self.now + timedelta(hours=1),
            status=ModerationStatus.APPROVED,
            **kwargs
        )

    def _run_concurrently(self, offer, users):
        results = []
        rejected = []
        unexpected = []

        def redeem_in_thread(user):
            try:
                results.append(redeem_offer(offer_id=offer.id, user=user, now=self.now))
            except (NotRedeemableError, UserLimitExceededError):
                rejected.append(True)
            except Exception as e:
                unexpected.append(e)
            finally:
                connection.close()

        threads = [threading.Thread(target=redeem_in_thread, args=(user,)) for user in users]

        for thread in threads:
            thread.start()

        for thread in threads:
            thread.join()

        assert unexpected == []
        return results, rejected

    def test_usage_limit_never_exceeded(self):
        """8 users race for 3 redemptions: exactly 3 win."""
        offer = self._offer(usage_limit=3)
        users = [_make_user(f'racer{i}@example.com') for i in range(8)]

        results, rejected = self._run_concurrently(offer, users)

        assert len(results) == 3
        assert len(rejected) == 5
        offer.refresh_from_db()
        assert offer.used_count == 3
        assert OfferRedemption.objects.filter(offer=offer).count() == 3

    def test_per_user_limit_never_exceeded(self):
        """One user redeeming from 6 threads gets exactly their 2."""
        offer = self._offer(usage_limit_per_user=2)
        user = _make_user('eager@example.com')

        results, rejected = self._run_concurrently(offer, [user] * 6)

        assert len(results) == 2
        assert len(rejected) == 4
        offer.refresh_from_db()
        assert offer.used_count == 2
