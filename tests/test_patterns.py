"""
Tests for pattern detection.
"""

import pytest

from tradelog.journal.metrics import aggregate_trades
from tradelog.journal.patterns import (
    MAX_PATTERNS,
    Pattern,
    PatternCategory,
    PatternImpact,
    detect_patterns,
)


def _categories(patterns):
    return [p.category for p in patterns]


# =============================================================================
# Symbol Patterns
# =============================================================================


class TestSymbolPatterns:
    """Tests for best/worst symbol detection."""

    def test_single_trade_is_not_enough_support(self, trade_factory):
        patterns = detect_patterns(aggregate_trades([trade_factory(500, "EURUSD")]))
        assert PatternCategory.BEST_SYMBOL not in _categories(patterns)

    def test_three_trades_are_enough_support(self, trade_factory):
        trades = [trade_factory(500, "EURUSD", day_offset=d) for d in range(3)]
        patterns = detect_patterns(aggregate_trades(trades))
        best = patterns[0]
        assert best.category == PatternCategory.BEST_SYMBOL
        assert best.impact == PatternImpact.POSITIVE
        assert best.confidence == 75
        assert "EURUSD" in best.insight

    def test_best_symbol_confidence_is_capped(self, trade_factory):
        trades = [trade_factory(10, "EURUSD", hour=h % 24, day_offset=h) for h in range(20)]
        best = detect_patterns(aggregate_trades(trades))[0]
        assert best.confidence == 95

    def test_worst_symbol_requires_a_loss(self, trade_factory):
        trades = [trade_factory(10, "EURUSD", day_offset=d) for d in range(3)]
        trades += [trade_factory(5, "GBPUSD", day_offset=d) for d in range(3)]
        patterns = detect_patterns(aggregate_trades(trades))
        assert PatternCategory.WORST_SYMBOL not in _categories(patterns)

    def test_sample_journal(self, sample_trades):
        patterns = detect_patterns(aggregate_trades(sample_trades))
        assert _categories(patterns) == [
            PatternCategory.BEST_SYMBOL,
            PatternCategory.WORST_SYMBOL,
            PatternCategory.BEST_HOUR,
            PatternCategory.RISK_MANAGEMENT,
        ]
        worst = patterns[1]
        assert "GBPUSD" in worst.insight
        assert worst.impact == PatternImpact.NEGATIVE
        assert worst.confidence == 71


# =============================================================================
# Hour, Risk and Streak Patterns
# =============================================================================


class TestHourAndRiskPatterns:
    """Tests for timing, risk/reward and losing streak patterns."""

    def test_best_hour_needs_two_trades(self, trade_factory):
        one = detect_patterns(aggregate_trades([trade_factory(50, hour=9)]))
        two = detect_patterns(
            aggregate_trades([trade_factory(50, hour=9), trade_factory(30, hour=9, day_offset=1)])
        )
        assert PatternCategory.BEST_HOUR not in _categories(one)
        hour = two[0]
        assert hour.category == PatternCategory.BEST_HOUR
        assert hour.confidence == 56
        assert "9:00" in hour.insight

    def test_poor_risk_reward(self, trade_factory):
        patterns = detect_patterns(aggregate_trades([trade_factory(5), trade_factory(-10)]))
        risk = [p for p in patterns if p.category == PatternCategory.RISK_MANAGEMENT]
        assert len(risk) == 1
        assert risk[0].impact == PatternImpact.NEGATIVE
        assert risk[0].confidence == 88

    def test_strong_risk_reward(self, trade_factory):
        patterns = detect_patterns(aggregate_trades([trade_factory(20), trade_factory(-10)]))
        risk = [p for p in patterns if p.category == PatternCategory.RISK_MANAGEMENT]
        assert risk[0].impact == PatternImpact.POSITIVE
        assert risk[0].confidence == 92

    @pytest.mark.parametrize("win", [10, 12, 15])
    def test_neutral_risk_reward_is_not_reported(self, trade_factory, win):
        patterns = detect_patterns(aggregate_trades([trade_factory(win), trade_factory(-10)]))
        assert PatternCategory.RISK_MANAGEMENT not in _categories(patterns)

    def test_losing_streak_warning(self, trade_factory):
        trades = [trade_factory(-10, day_offset=d) for d in range(5)]
        patterns = detect_patterns(aggregate_trades(trades))
        streak = patterns[-1]
        assert streak.category == PatternCategory.EMOTIONAL_CONTROL
        assert streak.confidence == 80

    def test_four_losses_do_not_warn(self, trade_factory):
        trades = [trade_factory(-10, day_offset=d) for d in range(4)]
        patterns = detect_patterns(aggregate_trades(trades))
        assert PatternCategory.EMOTIONAL_CONTROL not in _categories(patterns)


# =============================================================================
# Ordering and Limits
# =============================================================================


class TestPatternOrdering:
    """Tests for priority order and truncation."""

    def test_all_patterns_in_priority_order(self, trade_factory):
        trades = [trade_factory(100, "EURUSD", hour=9, day_offset=d) for d in range(3)]
        trades += [trade_factory(-10, "GBPUSD", hour=14, day_offset=d) for d in range(5)]
        patterns = detect_patterns(aggregate_trades(trades))

        assert len(patterns) == MAX_PATTERNS
        assert _categories(patterns) == [
            PatternCategory.BEST_SYMBOL,
            PatternCategory.WORST_SYMBOL,
            PatternCategory.BEST_HOUR,
            PatternCategory.RISK_MANAGEMENT,
            PatternCategory.EMOTIONAL_CONTROL,
        ]
        assert [p.confidence for p in patterns] == [75, 85, 64, 92, 80]

    @pytest.mark.parametrize("metrics", [None, aggregate_trades([])])
    def test_no_data_no_patterns(self, metrics):
        assert detect_patterns(metrics) == []

    def test_pattern_to_dict(self, sample_trades):
        data = detect_patterns(aggregate_trades(sample_trades))[0].to_dict()
        assert set(data) == {"category", "insight", "impact", "confidence", "actionable", "data"}
        assert data["category"] == "best_symbol"
        assert data["impact"] == "positive"

    def test_patterns_are_immutable(self, sample_trades):
        pattern = detect_patterns(aggregate_trades(sample_trades))[0]
        assert isinstance(pattern, Pattern)
        with pytest.raises(AttributeError):
            pattern.confidence = 1
