"""
Journal Analyzer Module

High-level entry point combining trade metrics, pattern detection,
advice generation and level progress into a single journal report.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union

from tradelog.config.logging import business_logger, log_performance
from tradelog.config.settings import AdvisorSettings
from tradelog.gamification.levels import LevelInfo, calculate_level

from .advice import Advice, AdviceSynthesizer
from .metrics import TradeMetrics, aggregate_trades
from .patterns import Pattern, detect_patterns
from .trade import TradeInput, UserStats, coerce_user_stats

logger = logging.getLogger(__name__)


@dataclass
class JournalReport:
    """Full analysis of a user's journal."""

    metrics: TradeMetrics
    patterns: List[Pattern]
    advice: List[Advice]
    level: LevelInfo
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metrics": self.metrics.to_dict(),
            "patterns": [p.to_dict() for p in self.patterns],
            "advice": [a.to_dict() for a in self.advice],
            "level": self.level.to_dict(),
            "generatedAt": self.generated_at.isoformat(),
        }


class JournalAnalyzer:
    """
    Analyze a user's trading journal.

    Stateless between calls; each analysis recomputes everything from the
    trades it is given.
    """

    def __init__(
        self,
        settings: Optional[AdvisorSettings] = None,
        advice_synthesizer: Optional[AdviceSynthesizer] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            settings: Advisor configuration (defaults to an unconfigured one)
            advice_synthesizer: Pre-built synthesizer, mainly for tests
            tz: Timezone used to bucket trades by hour and weekday
        """
        self.settings = settings or AdvisorSettings(OPENAI_API_KEY=None)
        self.advice_synthesizer = advice_synthesizer or AdviceSynthesizer(self.settings, tz=tz)
        self.tz = tz
        logger.info("JournalAnalyzer initialized")

    def analyze_metrics(self, trades: Optional[Iterable[TradeInput]]) -> TradeMetrics:
        return aggregate_trades(trades, tz=self.tz)

    def detect_patterns(
        self,
        trades: Optional[Iterable[TradeInput]] = None,
        metrics: Optional[TradeMetrics] = None,
    ) -> List[Pattern]:
        """Detect patterns from trades, or from metrics already computed."""
        if metrics is None:
            metrics = self.analyze_metrics(trades)
        return detect_patterns(metrics)

    async def generate_advice(
        self,
        trades: Optional[Iterable[TradeInput]],
        user_stats: Union[UserStats, Dict[str, Any], None] = None,
        metrics: Optional[TradeMetrics] = None,
    ) -> List[Advice]:
        if metrics is None:
            metrics = self.analyze_metrics(trades)
        return await self.advice_synthesizer.synthesize_advice(
            trades, user_stats, metrics=metrics
        )

    def level_info(self, user_stats: Union[UserStats, Dict[str, Any], None]) -> LevelInfo:
        stats = coerce_user_stats(user_stats)
        return calculate_level(stats.current_points)

    @log_performance(threshold_ms=2000.0)
    async def analyze(
        self,
        trades: Optional[Iterable[TradeInput]],
        user_stats: Union[UserStats, Dict[str, Any], None] = None,
    ) -> JournalReport:
        """
        Run the full analysis pipeline.

        Args:
            trades: Trade objects or raw storage records
            user_stats: Gamification stats for the user

        Returns:
            JournalReport with metrics, patterns, advice and level
        """
        start = time.perf_counter()
        stats = coerce_user_stats(user_stats)
        trades = list(trades or [])

        metrics = self.analyze_metrics(trades)
        patterns = detect_patterns(metrics)
        advice = await self.advice_synthesizer.synthesize_advice(trades, stats, metrics=metrics)

        report = JournalReport(
            metrics=metrics,
            patterns=patterns,
            advice=advice,
            level=calculate_level(stats.current_points),
        )

        business_logger.log_analysis_complete(
            analysis_type="journal_report",
            trade_count=metrics.total_trades,
            duration_ms=(time.perf_counter() - start) * 1000,
            result_count=len(patterns) + len(advice),
        )
        return report

    def health_check(self) -> bool:
        """Check if analyzer is operational."""
        return self.advice_synthesizer is not None

    async def aclose(self) -> None:
        await self.advice_synthesizer.aclose()
