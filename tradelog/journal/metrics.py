"""
Trade Metrics Module

Aggregate closed journal trades into performance statistics: win rate,
net profit, win/loss sizes, streaks, and per-symbol, per-hour and
per-weekday breakdowns. Everything is computed from net profit
(profit + commission + swap).
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .trade import Trade, TradeInput, coerce_trades

logger = logging.getLogger(__name__)

# Minimum trades per hour before it is listed among best/worst hours
HOUR_RANKING_MIN_TRADES = 3
HOUR_RANKING_SIZE = 3


@dataclass
class SymbolPerformance:
    """Aggregated results for one instrument."""

    symbol: str
    trades: int = 0
    profit: float = 0.0
    wins: int = 0

    @property
    def win_rate(self) -> float:
        """Fraction of winning trades (0-1)."""
        return self.wins / self.trades if self.trades else 0.0

    @property
    def avg_profit(self) -> float:
        return self.profit / self.trades if self.trades else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "trades": self.trades,
            "profit": round(self.profit, 2),
            "wins": self.wins,
            "winRate": round(self.win_rate, 4),
            "avgProfit": round(self.avg_profit, 2),
        }


@dataclass
class PeriodPerformance:
    """Aggregated results for an hour of day or a weekday."""

    key: Union[int, str]
    trades: int = 0
    profit: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "trades": self.trades,
            "profit": round(self.profit, 2),
        }


@dataclass
class RiskPattern:
    """Win/loss size and streak statistics."""

    avg_win: float = 0.0
    avg_loss: float = 0.0  # absolute value
    largest_win: float = 0.0
    largest_loss: float = 0.0  # most negative net profit, 0 without losses
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    risk_reward_ratio: Optional[float] = None  # None without both wins and losses
    profit_factor: Optional[float] = None  # None without losses

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgWin": round(self.avg_win, 2),
            "avgLoss": round(self.avg_loss, 2),
            "largestWin": round(self.largest_win, 2),
            "largestLoss": round(self.largest_loss, 2),
            "maxConsecutiveWins": self.max_consecutive_wins,
            "maxConsecutiveLosses": self.max_consecutive_losses,
            "riskRewardRatio": (
                round(self.risk_reward_ratio, 4)
                if self.risk_reward_ratio is not None
                else None
            ),
            "profitFactor": (
                round(self.profit_factor, 4) if self.profit_factor is not None else None
            ),
        }


@dataclass
class TradingStyle:
    """How the user tends to trade."""

    avg_hold_time_hours: float = 0.0
    preferred_lot_sizes: List[float] = field(default_factory=list)
    most_profitable_setups: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgHoldTimeHours": round(self.avg_hold_time_hours, 2),
            "preferredLotSizes": self.preferred_lot_sizes,
            "mostProfitableSetups": self.most_profitable_setups,
        }


@dataclass
class TradeMetrics:
    """Aggregate statistics over a user's closed trades."""

    total_trades: int = 0
    open_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    win_rate: float = 0.0  # percent
    total_net_profit: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0  # absolute value

    risk: RiskPattern = field(default_factory=RiskPattern)
    style: TradingStyle = field(default_factory=TradingStyle)

    symbol_performance: Dict[str, SymbolPerformance] = field(default_factory=dict)
    hourly_performance: Dict[int, PeriodPerformance] = field(default_factory=dict)
    weekday_performance: Dict[str, PeriodPerformance] = field(default_factory=dict)
    best_hours: List[int] = field(default_factory=list)
    worst_hours: List[int] = field(default_factory=list)

    max_drawdown: float = 0.0
    trading_days: int = 0
    avg_trades_per_day: float = 0.0
    daily_performance: pd.DataFrame = field(
        default_factory=lambda: pd.DataFrame(columns=["date", "profit", "trades"])
    )
    monthly_performance: pd.DataFrame = field(
        default_factory=lambda: pd.DataFrame(columns=["month", "profit", "trades"])
    )

    # Closed trades in input order, kept for prompt samples
    closed_trades: List[Trade] = field(default_factory=list, repr=False)
    # Timezone the hour and weekday buckets were computed in
    tz: Optional[tzinfo] = field(default=None, repr=False)

    @classmethod
    def empty(cls) -> "TradeMetrics":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.total_trades == 0

    @property
    def winners(self) -> List[Trade]:
        return [t for t in self.closed_trades if t.net_profit > 0]

    @property
    def losers(self) -> List[Trade]:
        return [t for t in self.closed_trades if t.net_profit < 0]

    def ranked_symbols(self, min_trades: int) -> List[SymbolPerformance]:
        """Symbols with enough trades, sorted by net profit descending."""
        eligible = [s for s in self.symbol_performance.values() if s.trades >= min_trades]
        return sorted(eligible, key=lambda s: s.profit, reverse=True)

    def ranked_hours(self, min_trades: int) -> List[PeriodPerformance]:
        """Hours with enough trades, sorted by net profit descending."""
        eligible = [h for h in self.hourly_performance.values() if h.trades >= min_trades]
        return sorted(eligible, key=lambda h: h.profit, reverse=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "overall": {
                "totalTrades": self.total_trades,
                "openTrades": self.open_trades,
                "winningTrades": self.winning_trades,
                "losingTrades": self.losing_trades,
                "breakevenTrades": self.breakeven_trades,
                "winRate": round(self.win_rate, 2),
                "totalNetProfit": round(self.total_net_profit, 2),
                "grossProfit": round(self.gross_profit, 2),
                "grossLoss": round(self.gross_loss, 2),
                "maxDrawdown": round(self.max_drawdown, 2),
                "tradingDays": self.trading_days,
                "avgTradesPerDay": round(self.avg_trades_per_day, 2),
            },
            "risk": self.risk.to_dict(),
            "style": self.style.to_dict(),
            "symbolPerformance": [
                s.to_dict() for s in self.ranked_symbols(min_trades=1)
            ],
            "hourlyPerformance": [
                self.hourly_performance[h].to_dict()
                for h in sorted(self.hourly_performance)
            ],
            "weekdayPerformance": [
                self.weekday_performance[d].to_dict()
                for d in calendar.day_name
                if d in self.weekday_performance
            ],
            "bestHours": self.best_hours,
            "worstHours": self.worst_hours,
            "dailyPerformance": _frame_records(self.daily_performance),
            "monthlyPerformance": _frame_records(self.monthly_performance),
        }


def _frame_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    records = frame.to_dict(orient="records")
    return [
        {
            k: (round(float(v), 2) if k == "profit" else int(v) if k == "trades" else v)
            for k, v in record.items()
        }
        for record in records
    ]


def to_local_time(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    """Express a timestamp in the journal's timezone; naive values are taken as local."""
    if tz is not None and moment.tzinfo is not None:
        return moment.astimezone(tz)
    return moment


def aggregate_trades(
    trades: Optional[Iterable[TradeInput]],
    tz: Optional[tzinfo] = None,
) -> TradeMetrics:
    """
    Aggregate trades into TradeMetrics.

    Open trades are counted but excluded from every closed-trade statistic.
    A trade with net profit of exactly zero counts toward totals, is neither
    a win nor a loss, and ends both the current win and loss streaks.

    Args:
        trades: Trade objects or raw storage records
        tz: Timezone for hour/weekday bucketing of aware timestamps

    Returns:
        TradeMetrics (zeroed when there is nothing to aggregate)
    """
    validated = coerce_trades(trades)
    closed = [t for t in validated if not t.is_open]
    open_count = len(validated) - len(closed)

    if not closed:
        metrics = TradeMetrics.empty()
        metrics.tz = tz
        metrics.open_trades = open_count
        return metrics

    symbols: Dict[str, SymbolPerformance] = {}
    hours: Dict[int, PeriodPerformance] = {}
    weekdays: Dict[str, PeriodPerformance] = {}

    wins = losses = breakeven = 0
    gross_profit = gross_loss = 0.0
    largest_win = largest_loss = 0.0
    win_streak = loss_streak = max_win_streak = max_loss_streak = 0
    net_profits: List[float] = []
    dated: List[tuple] = []
    hold_times: List[float] = []

    for trade in closed:
        net = trade.net_profit
        net_profits.append(net)

        sym = symbols.setdefault(trade.symbol, SymbolPerformance(trade.symbol))
        sym.trades += 1
        sym.profit += net

        if net > 0:
            wins += 1
            sym.wins += 1
            gross_profit += net
            largest_win = max(largest_win, net)
            win_streak += 1
            loss_streak = 0
            max_win_streak = max(max_win_streak, win_streak)
        elif net < 0:
            losses += 1
            gross_loss += -net
            largest_loss = min(largest_loss, net)
            loss_streak += 1
            win_streak = 0
            max_loss_streak = max(max_loss_streak, loss_streak)
        else:
            breakeven += 1
            win_streak = 0
            loss_streak = 0

        if trade.open_time is not None:
            local = to_local_time(trade.open_time, tz)
            hour = hours.setdefault(local.hour, PeriodPerformance(local.hour))
            hour.trades += 1
            hour.profit += net
            day_name = calendar.day_name[local.weekday()]
            day = weekdays.setdefault(day_name, PeriodPerformance(day_name))
            day.trades += 1
            day.profit += net
            dated.append((local.replace(tzinfo=None), net))

        hold = trade.hold_time_hours
        if hold is not None and hold >= 0:
            hold_times.append(hold)

    total = len(closed)
    avg_win = gross_profit / wins if wins else 0.0
    avg_loss = gross_loss / losses if losses else 0.0

    risk = RiskPattern(
        avg_win=avg_win,
        avg_loss=avg_loss,
        largest_win=largest_win,
        largest_loss=largest_loss,
        max_consecutive_wins=max_win_streak,
        max_consecutive_losses=max_loss_streak,
        risk_reward_ratio=avg_win / avg_loss if wins and losses else None,
        profit_factor=gross_profit / gross_loss if losses else None,
    )

    metrics = TradeMetrics(
        total_trades=total,
        open_trades=open_count,
        winning_trades=wins,
        losing_trades=losses,
        breakeven_trades=breakeven,
        win_rate=wins / total * 100,
        total_net_profit=sum(net_profits),
        gross_profit=gross_profit,
        gross_loss=gross_loss,
        risk=risk,
        style=_trading_style(closed, hold_times),
        symbol_performance=symbols,
        hourly_performance=hours,
        weekday_performance=weekdays,
        max_drawdown=_max_drawdown(net_profits),
        closed_trades=closed,
        tz=tz,
    )

    ranked = metrics.ranked_hours(HOUR_RANKING_MIN_TRADES)
    metrics.best_hours = [h.key for h in ranked[:HOUR_RANKING_SIZE]]
    metrics.worst_hours = [h.key for h in reversed(ranked[-HOUR_RANKING_SIZE:])]

    if dated:
        _fill_calendar_performance(metrics, dated)

    logger.debug(
        f"Aggregated {total} closed trades ({open_count} open) "
        f"across {len(symbols)} symbols"
    )
    return metrics


def _max_drawdown(net_profits: List[float]) -> float:
    """Largest peak-to-trough fall of the cumulative net-profit curve, starting at 0."""
    if not net_profits:
        return 0.0
    equity = pd.Series(net_profits, dtype=float).cumsum()
    peak = equity.cummax().clip(lower=0.0)
    return float((peak - equity).max())


def _fill_calendar_performance(metrics: TradeMetrics, dated: List[tuple]) -> None:
    frame = pd.DataFrame(dated, columns=["open_time", "net_profit"])
    frame["open_time"] = pd.to_datetime(frame["open_time"])

    daily = (
        frame.groupby(frame["open_time"].dt.strftime("%Y-%m-%d"))["net_profit"]
        .agg(profit="sum", trades="count")
        .reset_index()
        .rename(columns={"open_time": "date"})
    )
    monthly = (
        frame.groupby(frame["open_time"].dt.strftime("%Y-%m"))["net_profit"]
        .agg(profit="sum", trades="count")
        .reset_index()
        .rename(columns={"open_time": "month"})
    )

    metrics.daily_performance = daily
    metrics.monthly_performance = monthly
    metrics.trading_days = len(daily)
    metrics.avg_trades_per_day = len(frame) / metrics.trading_days


def _trading_style(closed: List[Trade], hold_times: List[float]) -> TradingStyle:
    lot_sizes = sorted({t.lots for t in closed if t.lots > 0}, reverse=True)

    setups: Dict[str, float] = {}
    for trade in closed:
        if trade.type is None:
            continue
        setups[trade.type.value] = setups.get(trade.type.value, 0.0) + trade.net_profit
    best_setups = sorted(setups, key=setups.get, reverse=True)[:2]

    return TradingStyle(
        avg_hold_time_hours=float(np.mean(hold_times)) if hold_times else 0.0,
        preferred_lot_sizes=lot_sizes[:3],
        most_profitable_setups=best_setups,
    )
