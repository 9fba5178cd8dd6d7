"""Tests for the promotion rule evaluator and eligibility checker."""

from datetime import timedelta
from types import SimpleNamespace

import pytest

from boxoffice.models import Order, PromotionRedemption
from boxoffice.utils.promotions import (
    IneligibleReason,
    check_eligibility,
    compute_discount,
    normalize_code,
    promotion_label,
    round_money,
    usage_stats,
)

from conftest import make_promotion, make_user


def _promo(type="PERCENT", value=10, max_discount=None, min_spend=None):
    return SimpleNamespace(type=type, value=value, max_discount=max_discount, min_spend=min_spend)


def _redeem(db, promotion, showtime, ref_code, user_id=None, email=None):
    order = Order(
        ref_code=ref_code,
        showtime_id=showtime.id,
        user_id=user_id,
        buyer_email=email,
        status="paid",
        total_amount=100,
    )
    db.add(order)
    db.flush()
    db.add(PromotionRedemption(
        promotion_id=promotion.id, order_id=order.id, user_id=user_id, email=email
    ))
    db.commit()


# -- Rule evaluator -----------------------------------------------------------


class TestComputeDiscount:
    @pytest.mark.parametrize("subtotal", [0, 5, 19.99, 20, 20.01, 450])
    def test_fixed_without_cap_is_value_clamped_to_subtotal(self, subtotal):
        assert compute_discount(_promo("FIXED", 20), subtotal) == round_money(min(20, subtotal))

    @pytest.mark.parametrize("subtotal", [0, 10, 99.99, 250, 500, 600, 10000])
    def test_percent_with_cap(self, subtotal):
        expected = round_money(min(subtotal * (15 / 100), 50, subtotal))
        assert compute_discount(_promo("PERCENT", 15, max_discount=50), subtotal) == expected

    @pytest.mark.parametrize("type,value", [("PERCENT", 50), ("FIXED", 30)])
    def test_below_min_spend_gives_nothing(self, type, value):
        promo = _promo(type, value, min_spend=300)
        assert compute_discount(promo, 299.99) == 0
        assert compute_discount(promo, 300) > 0

    def test_save10_scenario_is_capped(self):
        promo = _promo("PERCENT", 10, max_discount=50, min_spend=0)
        discount = compute_discount(promo, 600)
        assert discount == 50.00
        assert 600 - discount == 550.00

    def test_flat20_scenario_is_clamped_to_subtotal(self):
        discount = compute_discount(_promo("FIXED", 20), 15)
        assert discount == 15.00
        assert max(0, 15 - discount) == 0.00

    def test_rounds_to_two_decimals_half_up(self):
        # 0.125 is exact in binary: half-up gives 0.13 where banker's rounding gives 0.12
        assert compute_discount(_promo("FIXED", 0.125), 10) == 0.13
        assert compute_discount(_promo("PERCENT", 10), 33.33) == 3.33

    def test_type_is_case_insensitive_and_unknown_type_gives_zero(self):
        assert compute_discount(_promo("percent", 10), 100) == 10.0
        assert compute_discount(_promo("BOGO", 10), 100) == 0.0

    def test_never_negative(self):
        assert compute_discount(_promo("FIXED", -5), 100) == 0.0


def test_normalize_code():
    assert normalize_code("  save10 ") == "SAVE10"
    assert normalize_code(None) == ""


def test_promotion_label():
    assert promotion_label(_promo("PERCENT", 10)) == "10% off"
    assert promotion_label(_promo("FIXED", 20)) == "20 THB off"
    assert promotion_label(_promo("FIXED", 12.5)) == "12.5 THB off"


# -- Eligibility checker ------------------------------------------------------


class TestCheckEligibility:
    def test_unknown_promotion(self, db):
        result = check_eligibility(db, 999)
        assert not result.ok
        assert result.reason is IneligibleReason.NOT_FOUND

    def test_inactive(self, db):
        promo = make_promotion(db, active=False)
        assert check_eligibility(db, promo.id).reason is IneligibleReason.INACTIVE

    def test_not_started(self, db, tomorrow):
        promo = make_promotion(db, starts_at=tomorrow)
        assert check_eligibility(db, promo.id).reason is IneligibleReason.NOT_STARTED

    def test_expired(self, db, yesterday):
        promo = make_promotion(db, ends_at=yesterday)
        assert check_eligibility(db, promo.id).reason is IneligibleReason.EXPIRED

    def test_inside_window(self, db, yesterday, tomorrow):
        promo = make_promotion(db, starts_at=yesterday, ends_at=tomorrow)
        assert check_eligibility(db, promo.id).ok

    def test_inactive_is_reported_before_window(self, db, yesterday):
        promo = make_promotion(db, active=False, ends_at=yesterday)
        assert check_eligibility(db, promo.id).reason is IneligibleReason.INACTIVE

    def test_usage_limit_boundary(self, db, showtime):
        promo = make_promotion(db, usage_limit=2)
        _redeem(db, promo, showtime, "REF-1", email="a@example.com")
        assert check_eligibility(db, promo.id).ok

        _redeem(db, promo, showtime, "REF-2", email="b@example.com")
        result = check_eligibility(db, promo.id)
        assert result.reason is IneligibleReason.USAGE_LIMIT_REACHED
        assert "usage limit reached" in result.reason.value

    def test_per_user_limit_by_email(self, db, showtime):
        promo = make_promotion(db, usage_per_user=1)
        _redeem(db, promo, showtime, "REF-1", email="a@example.com")

        result = check_eligibility(db, promo.id, email="A@Example.com")
        assert result.reason is IneligibleReason.PER_USER_LIMIT_REACHED
        assert check_eligibility(db, promo.id, email="b@example.com").ok

    def test_per_user_limit_by_user_id(self, db, showtime):
        user = make_user(db)
        promo = make_promotion(db, usage_per_user=1)
        _redeem(db, promo, showtime, "REF-1", user_id=user.id)

        result = check_eligibility(db, promo.id, user_id=user.id, email="other@example.com")
        assert result.reason is IneligibleReason.PER_USER_LIMIT_REACHED

    def test_per_user_limit_skipped_for_anonymous_buyer(self, db, showtime):
        promo = make_promotion(db, usage_per_user=1)
        _redeem(db, promo, showtime, "REF-1", email="a@example.com")
        assert check_eligibility(db, promo.id).ok

    def test_global_limit_checked_before_per_user(self, db, showtime):
        promo = make_promotion(db, usage_limit=1, usage_per_user=1)
        _redeem(db, promo, showtime, "REF-1", email="a@example.com")
        result = check_eligibility(db, promo.id, email="a@example.com")
        assert result.reason is IneligibleReason.USAGE_LIMIT_REACHED

    def test_explicit_now(self, db, tomorrow):
        promo = make_promotion(db, starts_at=tomorrow)
        assert check_eligibility(db, promo.id, now=tomorrow + timedelta(hours=1)).ok


def test_usage_stats_counts_distinct_buyers(db, showtime):
    user = make_user(db)
    promo = make_promotion(db)
    _redeem(db, promo, showtime, "REF-1", user_id=user.id, email="buyer@example.com")
    _redeem(db, promo, showtime, "REF-2", user_id=user.id, email="buyer@example.com")
    _redeem(db, promo, showtime, "REF-3", email="guest@example.com")
    _redeem(db, promo, showtime, "REF-4", email="guest@example.com")

    assert usage_stats(db, promo.id) == (4, 2)
