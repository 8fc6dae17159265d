"""
Tests for the score calculator.
"""

import math
import pytest

from signalscore.config import ScoringConfig
from pipelines.scoring.calculator import compute_score, needs_review, normalize, score_signals


class TestEmptyInput:
    """Entities without signals."""

    def test_no_signals_scores_zero(self, config, now):
        """Zero signals means score 0 and no bonuses."""
        result = score_signals([], config, now)
        assert result.total == 0.0
        assert result.contributions == []
        assert result.diversity_bonus == 1.0
        assert result.recency_bonus == 1.0
        assert not needs_review(result.total, config)


class TestWorkedExamples:
    """Reference values."""

    def test_single_grant_detected_now(self, config, now, make_signal):
        """One grant_awarded signal detected now scores ~27.41."""
        result = score_signals([make_signal("grant_awarded")], config, now)

        assert result.raw_total == pytest.approx(6.0)
        assert result.diversity_bonus == pytest.approx(1.0)
        assert result.recency_bonus == pytest.approx(1.2)
        assert result.final_raw == pytest.approx(7.2)
        assert result.total == pytest.approx(round(math.log10(8.2) * 30, 2))
        assert result.total == pytest.approx(27.41, abs=0.01)

    def test_second_category_raises_score(self, config, now, make_signal):
        """Adding a keyword_match raises diversity to 1.1 and the score."""
        single = score_signals([make_signal("grant_awarded")], config, now)
        both = score_signals(
            [make_signal("grant_awarded"), make_signal("keyword_match")], config, now
        )

        assert both.unique_categories == 2
        assert both.diversity_bonus == pytest.approx(1.1)
        assert both.raw_total == pytest.approx(7.0)
        assert both.total > single.total
        assert both.total == pytest.approx(round(math.log10(7.0 * 1.1 * 1.2 + 1) * 30, 2))


class TestContributions:
    """Per-signal arithmetic."""

    def test_contribution_formula(self, config, now, make_signal):
        """base * weight * confidence * decay * diminishing."""
        signal = make_signal(
            "permit_industrial", days_ago=365, signal_weight=2.0, confidence=0.5
        )
        result = compute_score([signal], config, now)
        item = result.contributions[0]

        assert item.base_weight == 2.5
        assert item.decay_factor == pytest.approx(0.5)
        assert item.diminishing_factor == 1.0
        assert item.raw_contribution == pytest.approx(2.5 * 2.0 * 0.5 * 0.5)
        assert item.contribution == 1.25

    def test_unknown_category_defaults_to_one(self, config, now, make_signal):
        """Categories missing from the weight table weigh 1.0."""
        result = compute_score([make_signal("never_heard_of_it")], config, now)
        assert result.contributions[0].base_weight == 1.0
        assert result.raw_total == pytest.approx(1.0)

    def test_empty_weight_table_defaults_everything(self, now, make_signal):
        """A config without weights still scores, every category at 1.0."""
        config = ScoringConfig(weights={})
        result = compute_score([make_signal("grant_awarded")], config, now)
        assert result.raw_total == pytest.approx(1.0)
        assert result.total > 0

    def test_zero_weight_category_contributes_nothing(self, now, make_signal):
        """An explicit 0.0 weight mutes a category."""
        config = ScoringConfig(weights={"noise": 0.0})
        result = compute_score([make_signal("noise")], config, now)
        assert result.raw_total == 0.0
        assert result.total == 0.0

    def test_malformed_signal_numbers_degrade_to_one(self, config, now, make_signal):
        """None or NaN per-signal multipliers are treated as 1.0."""
        signals = [
            make_signal("keyword_match", signal_weight=None),
            make_signal("grant_awarded", confidence=float("nan")),
        ]
        result = compute_score(signals, config, now)
        assert result.raw_total == pytest.approx(1.0 + 6.0)

    def test_rounded_contribution_in_breakdown(self, config, now, make_signal):
        """Breakdown keeps a 2dp contribution next to the exact one."""
        result = compute_score([make_signal("keyword_match", confidence=0.333)], config, now)
        item = result.contributions[0]
        assert item.contribution == 0.33
        assert item.raw_contribution == pytest.approx(0.333)

    def test_processed_most_recent_first(self, config, now, make_signal):
        """Input order does not matter; the newest signal comes first."""
        old = make_signal("keyword_match", days_ago=100)
        new = make_signal("keyword_match", days_ago=1)
        result = compute_score([old, new], config, now)

        assert [c.signal_id for c in result.contributions] == [new.id, old.id]
        assert result.contributions[0].diminishing_factor == 1.0
        assert result.contributions[1].diminishing_factor == pytest.approx(1 / math.sqrt(2))


class TestDiminishingReturns:
    """Repeated signals of one category."""

    def test_kth_signal_contributes_less(self, config, now, make_signal):
        """Each additional same-category signal adds less than the previous."""
        signals = [make_signal("keyword_match") for _ in range(5)]
        result = compute_score(signals, config, now)
        contributions = [c.raw_contribution for c in result.contributions]

        assert all(a > b for a, b in zip(contributions, contributions[1:]))
        assert contributions[2] == pytest.approx(1 / math.sqrt(3))

    def test_marginal_score_increase_shrinks(self, config, now, make_signal):
        """Score gains from repeated same-category signals strictly decrease."""
        totals = []
        for n in range(1, 7):
            signals = [make_signal("location_cluster") for _ in range(n)]
            totals.append(compute_score(signals, config, now).total)

        gains = [b - a for a, b in zip(totals, totals[1:])]
        assert all(g > 0 for g in gains)
        assert all(a > b for a, b in zip(gains, gains[1:]))


class TestBonuses:
    """Diversity and recency multipliers."""

    def test_diversity_grows_per_category(self, config, now, make_signal):
        """+10% per distinct category beyond the first."""
        categories = ["grant_awarded", "keyword_match", "location_cluster", "permit_industrial"]
        for n in range(1, len(categories) + 1):
            result = compute_score([make_signal(c) for c in categories[:n]], config, now)
            assert result.diversity_bonus == pytest.approx(1 + (n - 1) * 0.1)

    def test_new_category_increases_score(self, config, now, make_signal):
        """A new category beats another signal of an existing one."""
        base = [make_signal("grant_awarded"), make_signal("grant_awarded")]
        same = compute_score(base + [make_signal("grant_awarded")], config, now)
        new = compute_score(base + [make_signal("permit_industrial")], config, now)
        assert new.diversity_bonus > same.diversity_bonus
        assert new.total > compute_score(base, config, now).total

    @pytest.mark.parametrize(
        "days_ago,expected",
        [(0, 1.2), (29.9, 1.2), (30, 1.1), (89.9, 1.1), (90, 1.0), (400, 1.0)],
    )
    def test_recency_step_function(self, config, now, make_signal, days_ago, expected):
        """Recency bonus depends on the newest signal only."""
        signals = [make_signal("keyword_match", days_ago=days_ago), make_signal("keyword_match", days_ago=500)]
        result = compute_score(signals, config, now)
        assert result.recency_bonus == expected

    def test_custom_recency_tiers(self, now, make_signal):
        """Tiers are configuration, not constants."""
        config = ScoringConfig(recency_tiers=((7, 2.0),))
        assert compute_score([make_signal(days_ago=1)], config, now).recency_bonus == 2.0
        assert compute_score([make_signal(days_ago=8)], config, now).recency_bonus == 1.0


class TestBoundsAndDeterminism:
    """Invariants of the final score."""

    def test_score_capped_at_100(self, now, make_signal):
        """Huge evidence volumes saturate at 100."""
        weights = {f"cat{i}": 1000.0 for i in range(50)}
        config = ScoringConfig(weights=weights)
        signals = [make_signal(f"cat{i}") for i in range(50)]
        assert compute_score(signals, config, now).total == 100.0

    def test_score_in_range_for_mixed_input(self, config, now, make_signal):
        """Any non-negative signal set lands in [0, 100]."""
        signals = [
            make_signal(c, days_ago=d, confidence=conf)
            for c, d, conf in [
                ("grant_awarded", 3, 0.9),
                ("keyword_match", 900, 0.1),
                ("patent_biofuel_tech", 45, 1.0),
                ("unknown", 10000, 0.0),
            ]
        ]
        total = compute_score(signals, config, now).total
        assert 0.0 <= total <= 100.0

    def test_normalize_bounds(self, config):
        """Normalization floors at 0 and caps at max_score."""
        assert normalize(0.0, config) == 0.0
        assert normalize(-5.0, config) == 0.0
        assert normalize(1e12, config) == 100.0

    def test_identical_inputs_identical_result(self, config, now, make_signal):
        """Recomputing at the same instant is bit-for-bit reproducible."""
        signals = [
            make_signal("grant_awarded", days_ago=3),
            make_signal("keyword_match", days_ago=12, confidence=0.7),
            make_signal("keyword_match", days_ago=12, confidence=0.4),
        ]
        first = compute_score(signals, config, now)
        second = compute_score(list(signals), config, now)
        assert first == second
        assert first.total == second.total

    def test_review_threshold(self, config):
        """Review flag switches on at exactly 70."""
        assert needs_review(70.0, config)
        assert not needs_review(69.99, config)
