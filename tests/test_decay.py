"""
Tests for the time decay function.
"""

import pytest
from datetime import datetime, timedelta, timezone

from pipelines.scoring.decay import age_in_days, decay_factor, to_naive_local


class TestDecayFactor:
    """Test half-life attenuation."""

    def test_age_zero_is_exactly_one(self, now):
        """A signal detected at 'now' keeps its full weight."""
        assert decay_factor(now, now, 365) == 1.0

    def test_future_timestamp_treated_as_age_zero(self, now):
        """Signals dated after 'now' are not amplified."""
        assert decay_factor(now + timedelta(days=10), now, 365) == 1.0
        assert age_in_days(now + timedelta(days=10), now) == 0.0

    def test_one_half_life(self, now):
        """After one half-life the factor is 0.5."""
        assert decay_factor(now - timedelta(days=365), now, 365) == pytest.approx(0.5)

    def test_two_half_lives(self, now):
        """After two half-lives the factor is 0.25."""
        assert decay_factor(now - timedelta(days=730), now, 365) == pytest.approx(0.25)

    def test_custom_half_life(self, now):
        """Half-life parameter is honoured."""
        assert decay_factor(now - timedelta(days=30), now, 30) == pytest.approx(0.5)

    def test_default_half_life_is_one_year(self, now):
        """Default half-life is 365 days."""
        assert decay_factor(now - timedelta(days=365), now) == pytest.approx(0.5)

    def test_monotonically_non_increasing(self, now):
        """Older signals never decay less than newer ones."""
        ages = [0, 0.5, 1, 7, 30, 90, 180, 365, 1000, 5000]
        factors = [decay_factor(now - timedelta(days=a), now, 365) for a in ages]
        assert all(a >= b for a, b in zip(factors, factors[1:]))

    def test_never_zero_for_finite_age(self, now):
        """Even a century-old signal keeps a positive factor."""
        factor = decay_factor(now - timedelta(days=36500), now, 365)
        assert 0 < factor < 1e-20

    def test_partial_day_age(self, now):
        """Age is measured in fractional days."""
        assert age_in_days(now - timedelta(hours=12), now) == pytest.approx(0.5)

    def test_mixed_naive_and_aware_timestamps(self, now):
        """A naive detection time compared with an aware 'now' does not raise."""
        aware_now = now.replace(tzinfo=timezone.utc)
        naive_detected = to_naive_local(aware_now) - timedelta(days=365)
        assert decay_factor(naive_detected, aware_now, 365) == pytest.approx(0.5)

    def test_aware_now_against_naive_local_store(self, now):
        """Naive stored times are local; an aware 'now' is converted, not relabelled."""
        aware_now = datetime(2024, 6, 15, 12, 0, tzinfo=timezone(timedelta(hours=5)))
        stored = to_naive_local(aware_now) - timedelta(days=30)

        assert age_in_days(stored, aware_now) == pytest.approx(30.0)
        assert age_in_days(to_naive_local(aware_now), aware_now) == 0.0


class TestToNaiveLocal:
    def test_naive_passthrough(self, now):
        assert to_naive_local(now) is now

    def test_aware_converted(self):
        aware = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
        assert to_naive_local(aware) == aware.astimezone().replace(tzinfo=None)
        assert to_naive_local(aware).tzinfo is None
