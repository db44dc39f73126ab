"""
Trading Advice Module

Produce prioritized, actionable advice from a user's trade history.

When an OpenAI key is configured the aggregated statistics are sent to a
chat model that answers in JSON; any failure of that call (timeout, API
error, unreadable reply) falls back to deterministic rule-based advice, so
callers always get a result.
"""

import asyncio
import json
import logging
import time
import uuid
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

import openai
from openai import AsyncOpenAI
from pydantic import Field, ValidationError as PydanticValidationError, field_validator

from tradelog.config.logging import business_logger
from tradelog.config.settings import AdvisorSettings
from tradelog.core.errors import ErrorCodes, ExternalAPIError, ValidationError

from .metrics import TradeMetrics, aggregate_trades, to_local_time
from .trade import JournalModel, TradeInput, UserStats, coerce_user_stats

logger = logging.getLogger(__name__)

# Support thresholds
PROMPT_SYMBOL_MIN_TRADES = 3
FALLBACK_SYMBOL_MIN_TRADES = 2
PROMPT_SAMPLE_TRADES = 5
POOR_RISK_REWARD_FACTOR = 1.5

SYSTEM_PROMPT = (
    "You are an expert trading mentor. Give specific advice based only on the "
    "user's real trading data. Do not give generic trading tips. Every piece of "
    "advice must be backed by a concrete pattern found in their trades. "
    "Always answer with valid JSON."
)


class AdviceCategory(str, Enum):
    RISK_MANAGEMENT = "risk_management"
    TIMING = "timing"
    SYMBOL_SELECTION = "symbol_selection"
    POSITION_SIZING = "position_sizing"
    PSYCHOLOGY = "psychology"


class AdvicePriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AdviceStatus(str, Enum):
    """Lifecycle of persisted advice: active -> implemented | dismissed."""

    ACTIVE = "active"
    IMPLEMENTED = "implemented"
    DISMISSED = "dismissed"


class AdviceSource(Enum):
    EXTERNAL = "external"
    FALLBACK = "fallback"


class Advice(JournalModel):
    """A single piece of personalized trading advice."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    category: AdviceCategory
    title: str = Field(..., min_length=1)
    advice: str = Field(..., min_length=1)
    reasoning: str = ""
    based_on_data: str = ""
    priority: AdvicePriority = AdvicePriority.MEDIUM
    confidence_score: int = Field(default=50, ge=0, le=100)
    potential_impact: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: AdviceStatus = AdviceStatus.ACTIVE

    @field_validator("category", "priority", mode="before")
    @classmethod
    def lower_enum_values(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("confidence_score", mode="before")
    @classmethod
    def round_score(cls, v):
        if isinstance(v, float):
            return round(v)
        return v

    def transition_to(self, status: AdviceStatus) -> "Advice":
        """
        Return a copy with a new status.

        Only active advice may move, and only to implemented or dismissed.
        """
        status = AdviceStatus(status)
        if self.status != AdviceStatus.ACTIVE or status == AdviceStatus.ACTIVE:
            raise ValidationError(
                ErrorCodes.VALIDATION_INVALID_TRANSITION,
                detail=f"{self.status.value} -> {status.value}",
            )
        return self.model_copy(update={"status": status})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Prompt Construction
# =============================================================================


def _best_symbols(metrics: TradeMetrics, min_trades: int, limit: int):
    profitable = [
        s for s in metrics.symbol_performance.values()
        if s.trades >= min_trades and s.profit > 0
    ]
    return sorted(profitable, key=lambda s: s.avg_profit, reverse=True)[:limit]


def _worst_symbols(metrics: TradeMetrics, min_trades: int, limit: int):
    losing = [
        s for s in metrics.symbol_performance.values()
        if s.trades >= min_trades and s.profit < 0
    ]
    return sorted(losing, key=lambda s: s.avg_profit)[:limit]


def _describe_trade(trade, tz=None) -> str:
    hour = f"{to_local_time(trade.open_time, tz).hour}:00" if trade.open_time else "n/a"
    hold = trade.hold_time_hours
    duration = f"{round(hold)} hours" if hold is not None else "n/a"
    direction = trade.type.value if trade.type is not None else "unknown"
    return (
        f"- {trade.symbol} {direction}: ${trade.net_profit:+.2f}, "
        f"hour: {hour}, duration: {duration}"
    )


def _hours(hours: List[int]) -> str:
    return ", ".join(f"{h}:00" for h in hours) or "not enough data"


def build_advice_prompt(metrics: TradeMetrics, user_stats: Optional[UserStats] = None) -> str:
    """Build the advice request embedding the user's aggregated statistics."""
    risk = metrics.risk
    best = _best_symbols(metrics, PROMPT_SYMBOL_MIN_TRADES, 3)
    worst = _worst_symbols(metrics, PROMPT_SYMBOL_MIN_TRADES, 2)

    lines = [
        "Analyze this trader's real data and write 4-5 specific pieces of advice "
        "to improve their results.",
        "",
        "PERFORMANCE SUMMARY:",
        f"- Total trades: {metrics.total_trades}",
        f"- Net profit/loss: ${metrics.total_net_profit:.2f}",
        f"- Win rate: {metrics.win_rate:.1f}%",
        f"- Average winning trade: ${risk.avg_win:.2f}",
        f"- Average losing trade: ${risk.avg_loss:.2f}",
        f"- Longest losing streak: {risk.max_consecutive_losses} trades",
    ]
    if user_stats is not None:
        lines.append(f"- Journal level: {user_stats.current_level}")

    lines += ["", "WINNING TRADES:"]
    lines += [
        _describe_trade(t, metrics.tz) for t in metrics.winners[:PROMPT_SAMPLE_TRADES]
    ] or ["- none"]
    lines += ["", "LOSING TRADES:"]
    lines += [
        _describe_trade(t, metrics.tz) for t in metrics.losers[:PROMPT_SAMPLE_TRADES]
    ] or ["- none"]

    lines += ["", "MOST PROFITABLE PAIRS:"]
    lines += [
        f"+ {s.symbol}: {s.trades} trades, ${s.profit:.2f} profit, "
        f"{s.win_rate * 100:.1f}% win rate"
        for s in best
    ] or ["- none with enough trades"]
    lines += ["", "PROBLEM PAIRS:"]
    lines += [
        f"x {s.symbol}: {s.trades} trades, ${abs(s.profit):.2f} loss, "
        f"{s.win_rate * 100:.1f}% win rate"
        for s in worst
    ] or ["- none with enough trades"]

    lines += [
        "",
        f"BEST HOURS: {_hours(metrics.best_hours)}",
        f"WORST HOURS: {_hours(metrics.worst_hours)}",
        "",
        "INSTRUCTIONS:",
        "Base every piece of advice ONLY on this data. Identify concrete patterns "
        "of success and failure. Do NOT give general trading advice.",
        "",
        "Answer in JSON:",
        json.dumps(
            {
                "advice": [
                    {
                        "category": "risk_management",
                        "title": "Tighten your risk on GBPUSD",
                        "advice": "Cut position size on GBPUSD, where you lost $450 over 8 trades",
                        "reasoning": "GBPUSD losses are consistent with a 25% win rate",
                        "basedOnData": "8 GBPUSD trades, -$450 total, 25% win rate",
                        "priority": "high",
                        "confidenceScore": 90,
                        "potentialImpact": "Cut monthly losses by $200-300",
                    }
                ]
            },
            indent=2,
        ),
        "Allowed categories: " + ", ".join(c.value for c in AdviceCategory) + ".",
    ]
    return "\n".join(lines)


def parse_advice_reply(content: Optional[str]) -> List[Advice]:
    """
    Parse the model's JSON reply into Advice items.

    Items that do not validate are dropped.

    Raises:
        ExternalAPIError: If the reply is not JSON or holds no usable advice
    """
    try:
        payload = json.loads(content or "")
    except json.JSONDecodeError as e:
        raise ExternalAPIError(
            ErrorCodes.EXTERNAL_LLM_PARSE_ERROR, detail="reply is not JSON", original_error=e
        )

    items = payload.get("advice") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ExternalAPIError(
            ErrorCodes.EXTERNAL_LLM_PARSE_ERROR, detail="reply has no advice list"
        )

    advice = []
    for item in items:
        if not isinstance(item, dict):
            continue
        item = {k: v for k, v in item.items() if k not in ("id", "createdAt", "status")}
        try:
            advice.append(Advice.model_validate(item))
        except PydanticValidationError as e:
            logger.debug(f"Dropping advice item with {e.error_count()} invalid field(s)")

    if not advice:
        raise ExternalAPIError(
            ErrorCodes.EXTERNAL_LLM_PARSE_ERROR, detail="reply has no valid advice items"
        )
    return advice


# =============================================================================
# Rule-based Fallback
# =============================================================================


def fallback_advice(metrics: TradeMetrics) -> List[Advice]:
    """Deterministic advice derived from the same statistics as pattern detection."""
    advice: List[Advice] = []
    risk = metrics.risk

    best = _best_symbols(metrics, FALLBACK_SYMBOL_MIN_TRADES, 1)
    if best:
        s = best[0]
        advice.append(
            Advice(
                category=AdviceCategory.SYMBOL_SELECTION,
                title="Focus on your most profitable pairs",
                advice=(
                    f"Concentrate more trades on {s.symbol}, where you made "
                    f"${s.profit:.2f} with a {s.win_rate * 100:.1f}% win rate"
                ),
                reasoning=f"{s.symbol} is your most profitable pair over {s.trades} trades",
                based_on_data=f"{s.trades} trades on {s.symbol}, average profit ${s.avg_profit:.2f}",
                priority=AdvicePriority.HIGH,
                confidence_score=85,
                potential_impact="Higher monthly profitability",
            )
        )

    worst = _worst_symbols(metrics, FALLBACK_SYMBOL_MIN_TRADES, 1)
    if worst:
        s = worst[0]
        advice.append(
            Advice(
                category=AdviceCategory.RISK_MANAGEMENT,
                title="Avoid your problem pairs",
                advice=f"Reduce or stop trading {s.symbol}, where you lost ${abs(s.profit):.2f}",
                reasoning=(
                    f"{s.symbol} has been consistently unprofitable with only "
                    f"{s.win_rate * 100:.1f}% winners"
                ),
                based_on_data=f"{s.trades} trades on {s.symbol}, total loss ${s.profit:.2f}",
                priority=AdvicePriority.HIGH,
                confidence_score=80,
                potential_impact="Lower monthly losses",
            )
        )

    good_hours = [
        h for h in metrics.best_hours if metrics.hourly_performance[h].profit > 0
    ]
    if good_hours:
        listed = ", ".join(f"{h}:00" for h in good_hours)
        advice.append(
            Advice(
                category=AdviceCategory.TIMING,
                title="Trade in your best hours",
                advice=f"Trade mainly around {listed}, when your results have been best",
                reasoning="Your data shows higher profitability in these hours",
                based_on_data="Best hours: " + ", ".join(
                    f"{h}:00 (${metrics.hourly_performance[h].profit:.2f} over "
                    f"{metrics.hourly_performance[h].trades} trades)"
                    for h in good_hours
                ),
                priority=AdvicePriority.MEDIUM,
                confidence_score=70,
                potential_impact="More winning trades",
            )
        )

    if risk.avg_loss > risk.avg_win * POOR_RISK_REWARD_FACTOR:
        advice.append(
            Advice(
                category=AdviceCategory.RISK_MANAGEMENT,
                title="Improve your risk/reward ratio",
                advice=(
                    f"Your average loss (${risk.avg_loss:.2f}) is far larger than your "
                    f"average win (${risk.avg_win:.2f}); tighten stops or widen targets"
                ),
                reasoning="An unfavorable risk/reward ratio is capping your profitability",
                based_on_data=(
                    f"Average loss: ${risk.avg_loss:.2f}, average win: ${risk.avg_win:.2f}"
                ),
                priority=AdvicePriority.HIGH,
                confidence_score=90,
                potential_impact="Better overall profitability",
            )
        )

    return advice


# =============================================================================
# Synthesizer
# =============================================================================


class AdviceSynthesizer:
    """
    Generate advice from the external model, falling back to rules.

    The branch taken depends only on the injected settings: a configured API
    key selects the external path, otherwise advice is rule-based.
    """

    def __init__(
        self,
        settings: AdvisorSettings,
        client: Optional[Any] = None,
        tz: Optional[tzinfo] = None,
    ):
        """
        Args:
            settings: Advisor configuration
            client: Chat completions client (an AsyncOpenAI is created from
                the settings when omitted and a key is configured)
            tz: Timezone for hour bucketing when metrics are not supplied
        """
        self.settings = settings
        self.tz = tz
        self._client = client
        self._owns_client = False
        if self._client is None and settings.is_configured:
            self._client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY.get_secret_value(),
                timeout=settings.ADVICE_TIMEOUT_SECONDS,
                max_retries=0,
            )
            self._owns_client = True
        logger.info(
            f"AdviceSynthesizer initialized ({self.source_for_configuration().value})"
        )

    def source_for_configuration(self) -> AdviceSource:
        if self.settings.is_configured and self._client is not None:
            return AdviceSource.EXTERNAL
        return AdviceSource.FALLBACK

    async def aclose(self) -> None:
        """Close the HTTP client this synthesizer created; injected clients are left open."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None
            self._owns_client = False
            logger.info("AdviceSynthesizer client closed")

    async def synthesize_advice(
        self,
        trades: Optional[Iterable[TradeInput]],
        user_stats: Union[UserStats, Dict[str, Any], None] = None,
        metrics: Optional[TradeMetrics] = None,
    ) -> List[Advice]:
        """
        Produce advice for a trade history.

        Args:
            trades: Trade objects or raw records
            user_stats: Gamification stats for the user
            metrics: Precomputed metrics for the same trades, if available

        Returns:
            Advice list, empty when there are no closed trades
        """
        if metrics is None:
            metrics = aggregate_trades(trades, tz=self.tz)
        if metrics.is_empty:
            return []

        if self.source_for_configuration() == AdviceSource.EXTERNAL:
            try:
                advice = await self._external_advice(metrics, coerce_user_stats(user_stats))
                logger.info(f"Generated {len(advice)} advice items from the model")
                return advice
            except ExternalAPIError as e:
                e.log()
            except Exception as e:
                logger.error(f"Unexpected error generating advice: {e}", exc_info=True)
            logger.warning("Falling back to rule-based advice")

        return fallback_advice(metrics)

    async def _external_advice(self, metrics: TradeMetrics, user_stats: UserStats) -> List[Advice]:
        prompt = build_advice_prompt(metrics, user_stats)
        logger.debug(f"Requesting advice, prompt length {len(prompt)}")
        content = await self._request_completion(prompt)
        return parse_advice_reply(content)

    async def _request_completion(self, prompt: str) -> Optional[str]:
        start = time.perf_counter()
        error: Optional[ExternalAPIError] = None
        try:
            completion = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self.settings.OPENAI_MODEL,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    max_tokens=self.settings.ADVICE_MAX_TOKENS,
                    temperature=self.settings.ADVICE_TEMPERATURE,
                    response_format={"type": "json_object"},
                ),
                timeout=self.settings.ADVICE_TIMEOUT_SECONDS,
            )
            return completion.choices[0].message.content
        except (asyncio.TimeoutError, openai.APITimeoutError) as e:
            error = ExternalAPIError(ErrorCodes.EXTERNAL_LLM_TIMEOUT, original_error=e)
            raise error
        except openai.OpenAIError as e:
            error = ExternalAPIError(detail=type(e).__name__, original_error=e)
            raise error
        except (AttributeError, IndexError, TypeError) as e:
            error = ExternalAPIError(
                ErrorCodes.EXTERNAL_LLM_PARSE_ERROR,
                detail="unexpected completion shape",
                original_error=e,
            )
            raise error
        finally:
            business_logger.log_external_api_call(
                service="openai",
                endpoint="chat.completions",
                duration_ms=(time.perf_counter() - start) * 1000,
                error=error.code if error else None,
            )
