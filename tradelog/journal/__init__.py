"""
Journal Module

Analysis of a user's trade history: aggregated performance metrics,
ranked trading patterns and personalized advice, combined into a
single report by the JournalAnalyzer.
"""

from .advice import (
    Advice,
    AdviceCategory,
    AdvicePriority,
    AdviceSource,
    AdviceStatus,
    AdviceSynthesizer,
    build_advice_prompt,
    fallback_advice,
    parse_advice_reply,
)
from .analyzer import JournalAnalyzer, JournalReport
from .metrics import (
    PeriodPerformance,
    RiskPattern,
    SymbolPerformance,
    TradeMetrics,
    TradingStyle,
    aggregate_trades,
)
from .patterns import Pattern, PatternCategory, PatternImpact, detect_patterns
from .trade import Trade, TradeType, UserStats, coerce_trades, coerce_user_stats

__all__ = [
    # Main analyzer
    "JournalAnalyzer",
    "JournalReport",
    # Records
    "Trade",
    "TradeType",
    "UserStats",
    "coerce_trades",
    "coerce_user_stats",
    # Metrics
    "TradeMetrics",
    "SymbolPerformance",
    "PeriodPerformance",
    "RiskPattern",
    "TradingStyle",
    "aggregate_trades",
    # Patterns
    "Pattern",
    "PatternCategory",
    "PatternImpact",
    "detect_patterns",
    # Advice
    "Advice",
    "AdviceCategory",
    "AdvicePriority",
    "AdviceSource",
    "AdviceStatus",
    "AdviceSynthesizer",
    "build_advice_prompt",
    "fallback_advice",
    "parse_advice_reply",
]
