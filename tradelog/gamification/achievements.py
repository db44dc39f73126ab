"""
Daily Progress and Achievements

Score a trading day against the journal's daily goals and work out which
achievements a user's history unlocks.
"""

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from pydantic import Field

from tradelog.journal.trade import (
    JournalModel,
    Trade,
    TradeInput,
    UserStats,
    coerce_trades,
    coerce_user_stats,
)

logger = logging.getLogger(__name__)

# Points per goal met
PROFIT_TARGET_POINTS = 50
RISK_CONTROL_POINTS = 30
NO_OVERTRADING_POINTS = 20

MAX_LOSS_PERCENT = 1.0
CONTRACT_SIZE = 100_000
MAX_DAILY_TRADES = 5

PROFITABLE_STREAK_TRADES = 5
RISK_CONTROL_STREAK_DAYS = 10
PROFITABLE_STREAK_DAYS = 7
PERFECT_WEEK_DAYS = 7


class DailyProgress(JournalModel):
    """Goals met on a single trading day."""

    trading_date: Optional[date] = Field(default=None, alias="date")
    daily_profit_target: bool = False
    risk_control: bool = False
    no_overtrading: bool = False
    points_earned: int = Field(default=0, ge=0)

    @property
    def is_perfect(self) -> bool:
        return self.daily_profit_target and self.risk_control and self.no_overtrading

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def calculate_daily_points(progress: Union[DailyProgress, Dict[str, Any]]) -> int:
    """Points earned for the goals met in ``progress``."""
    if not isinstance(progress, DailyProgress):
        progress = DailyProgress.model_validate(progress or {})

    points = 0
    if progress.daily_profit_target:
        points += PROFIT_TARGET_POINTS
    if progress.risk_control:
        points += RISK_CONTROL_POINTS
    if progress.no_overtrading:
        points += NO_OVERTRADING_POINTS
    return points


def _loss_percent(trade: Trade) -> float:
    """Loss as a percentage of notional (lots x contract size); 0 for winners."""
    net = trade.net_profit
    if net >= 0 or trade.lots <= 0:
        return 0.0
    return abs(net) / (trade.lots * CONTRACT_SIZE) * 100


def calculate_daily_progress(
    trades: Optional[Iterable[TradeInput]],
    day: date,
    tz: Optional[tzinfo] = None,
) -> DailyProgress:
    """
    Evaluate the daily goals over trades closed on ``day``.

    Goals:
        profit target: net result of the day is positive
        risk control: no single loss above 1% of the position's notional
        no overtrading: at most five trades closed

    Args:
        trades: Trade objects or raw storage records
        day: Calendar day to evaluate
        tz: Timezone used to date aware close times

    Returns:
        DailyProgress with points already computed
    """
    if isinstance(day, datetime):
        day = day.date()

    day_trades = []
    for trade in coerce_trades(trades):
        if trade.close_time is None:
            continue
        closed_at = trade.close_time
        if tz is not None and closed_at.tzinfo is not None:
            closed_at = closed_at.astimezone(tz)
        if closed_at.date() == day:
            day_trades.append(trade)

    daily_profit = sum(t.net_profit for t in day_trades)
    max_loss_percent = max((_loss_percent(t) for t in day_trades), default=0.0)

    progress = DailyProgress(
        trading_date=day,
        daily_profit_target=daily_profit > 0,
        risk_control=max_loss_percent <= MAX_LOSS_PERCENT,
        no_overtrading=len(day_trades) <= MAX_DAILY_TRADES,
    )
    progress = progress.model_copy(update={"points_earned": calculate_daily_points(progress)})

    logger.debug(
        f"Daily progress for {day.isoformat()}: {len(day_trades)} trades, "
        f"{progress.points_earned} points"
    )
    return progress


def _leading_run(history: Sequence[DailyProgress], attr: str) -> int:
    run = 0
    for day in history:
        if not getattr(day, attr):
            break
        run += 1
    return run


def check_achievement_conditions(
    trades: Optional[Iterable[TradeInput]],
    user_stats: Union[UserStats, Dict[str, Any], None],
    history: Optional[Iterable[Union[DailyProgress, Dict[str, Any]]]],
) -> List[str]:
    """
    Return the ids of the achievements the user currently qualifies for.

    ``history`` is the user's daily progress ordered newest first.
    """
    validated = coerce_trades(trades)
    stats = coerce_user_stats(user_stats)
    days = [
        d if isinstance(d, DailyProgress) else DailyProgress.model_validate(d)
        for d in (history or [])
    ]
    unlocked: List[str] = []

    if validated:
        unlocked.append("trades_count_1")

    closed = [t for t in validated if t.close_time is not None]
    closed.sort(key=lambda t: t.close_time.timestamp(), reverse=True)
    recent = closed[:PROFITABLE_STREAK_TRADES]
    if len(recent) == PROFITABLE_STREAK_TRADES and all(t.net_profit > 0 for t in recent):
        unlocked.append("profitable_streak_5")

    if _leading_run(days, "risk_control") >= RISK_CONTROL_STREAK_DAYS:
        unlocked.append("risk_control_10_days")

    profitable_run = max(
        _leading_run(days, "daily_profit_target"), stats.consecutive_profitable_days
    )
    if profitable_run >= PROFITABLE_STREAK_DAYS:
        unlocked.append("profitable_days_7")

    last_week = days[:PERFECT_WEEK_DAYS]
    if len(last_week) == PERFECT_WEEK_DAYS and all(d.is_perfect for d in last_week):
        unlocked.append("perfect_week")

    return unlocked
