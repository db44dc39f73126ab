"""
Trading Pattern Detection

Turn aggregated trade metrics into a short, ranked list of qualitative
observations about the user's trading, each with a confidence score.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from .metrics import TradeMetrics

logger = logging.getLogger(__name__)

MAX_PATTERNS = 5

SYMBOL_MIN_TRADES = 3
HOUR_MIN_TRADES = 2
LOSING_STREAK_WARNING = 5
POOR_RISK_REWARD = 1.0
STRONG_RISK_REWARD = 1.5


class PatternImpact(Enum):
    """Whether a pattern helps or hurts results."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class PatternCategory(Enum):
    BEST_SYMBOL = "best_symbol"
    WORST_SYMBOL = "worst_symbol"
    BEST_HOUR = "best_hour"
    RISK_MANAGEMENT = "risk_management"
    EMOTIONAL_CONTROL = "emotional_control"


@dataclass(frozen=True)
class Pattern:
    """A detected trading pattern."""

    category: PatternCategory
    insight: str
    impact: PatternImpact
    confidence: int  # 0-100
    actionable: str
    data: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "insight": self.insight,
            "impact": self.impact.value,
            "confidence": self.confidence,
            "actionable": self.actionable,
            "data": self.data,
        }


def detect_patterns(metrics: TradeMetrics) -> List[Pattern]:
    """
    Detect up to five patterns, in fixed priority order:
    best symbol, worst symbol, best hour, risk/reward quality, losing streak.

    Args:
        metrics: Aggregated trade metrics

    Returns:
        Ordered list of patterns, empty when nothing qualifies
    """
    if metrics is None or metrics.is_empty:
        return []

    patterns: List[Pattern] = []
    symbols = metrics.ranked_symbols(SYMBOL_MIN_TRADES)

    if symbols and symbols[0].profit > 0:
        best = symbols[0]
        win_pct = best.win_rate * 100
        patterns.append(
            Pattern(
                category=PatternCategory.BEST_SYMBOL,
                insight=f"{best.symbol} is your most profitable pair with ${best.profit:.2f} net profit",
                impact=PatternImpact.POSITIVE,
                confidence=min(95, 60 + best.trades * 5),
                actionable=(
                    f"Increase your focus on {best.symbol}, where {win_pct:.1f}% "
                    f"of your trades are winners"
                ),
                data=f"{best.trades} trades, {win_pct:.1f}% win rate",
            )
        )

    if symbols and symbols[-1].profit < 0:
        worst = symbols[-1]
        win_pct = worst.win_rate * 100
        patterns.append(
            Pattern(
                category=PatternCategory.WORST_SYMBOL,
                insight=f"{worst.symbol} has cost you ${abs(worst.profit):.2f}",
                impact=PatternImpact.NEGATIVE,
                confidence=min(90, 50 + worst.trades * 7),
                actionable=(
                    f"Avoid or sharply reduce trading {worst.symbol}, "
                    f"only {win_pct:.1f}% of those trades win"
                ),
                data=f"{worst.trades} trades, {win_pct:.1f}% win rate",
            )
        )

    hours = metrics.ranked_hours(HOUR_MIN_TRADES)
    if hours and hours[0].profit > 0:
        hour = hours[0]
        patterns.append(
            Pattern(
                category=PatternCategory.BEST_HOUR,
                insight=f"{hour.key}:00 is your most profitable hour with ${hour.profit:.2f}",
                impact=PatternImpact.POSITIVE,
                confidence=min(85, 40 + hour.trades * 8),
                actionable=f"Concentrate more of your trading around {hour.key}:00",
                data=f"{hour.trades} trades in this hour",
            )
        )

    risk = metrics.risk
    ratio = risk.risk_reward_ratio
    if ratio is not None:
        sizes = f"Average win: ${risk.avg_win:.2f}, average loss: ${risk.avg_loss:.2f}"
        if ratio < POOR_RISK_REWARD:
            patterns.append(
                Pattern(
                    category=PatternCategory.RISK_MANAGEMENT,
                    insight=f"Your risk/reward ratio is {ratio:.2f}:1, which is unfavorable",
                    impact=PatternImpact.NEGATIVE,
                    confidence=88,
                    actionable="Tighten your stop losses or widen your take-profit targets",
                    data=sizes,
                )
            )
        elif ratio > STRONG_RISK_REWARD:
            patterns.append(
                Pattern(
                    category=PatternCategory.RISK_MANAGEMENT,
                    insight=f"Excellent risk/reward ratio of {ratio:.2f}:1",
                    impact=PatternImpact.POSITIVE,
                    confidence=92,
                    actionable="Keep this risk management discipline",
                    data=sizes,
                )
            )

    if risk.max_consecutive_losses >= LOSING_STREAK_WARNING:
        patterns.append(
            Pattern(
                category=PatternCategory.EMOTIONAL_CONTROL,
                insight=f"You have had losing streaks of up to {risk.max_consecutive_losses} trades",
                impact=PatternImpact.NEGATIVE,
                confidence=80,
                actionable="Set a daily loss limit to avoid revenge trading",
                data=f"Longest losing streak: {risk.max_consecutive_losses} trades",
            )
        )

    logger.debug(f"Detected {len(patterns)} patterns over {metrics.total_trades} trades")
    return patterns[:MAX_PATTERNS]
