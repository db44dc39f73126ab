"""
Tests for trade metrics aggregation.
"""

from zoneinfo import ZoneInfo

import pytest

from tradelog.journal.metrics import TradeMetrics, aggregate_trades
from tradelog.journal.trade import Trade


# =============================================================================
# Overall Statistics
# =============================================================================


class TestOverallStatistics:
    """Tests for totals, win rate and net profit."""

    @pytest.mark.parametrize("trades", [None, []])
    def test_empty_input(self, trades):
        metrics = aggregate_trades(trades)
        assert isinstance(metrics, TradeMetrics)
        assert metrics.is_empty
        assert metrics.win_rate == 0
        assert metrics.symbol_performance == {}
        assert metrics.risk.risk_reward_ratio is None

    def test_sample_journal(self, sample_trades):
        metrics = aggregate_trades(sample_trades)
        assert metrics.total_trades == 6
        assert metrics.winning_trades == 4
        assert metrics.losing_trades == 2
        assert metrics.win_rate == pytest.approx(4 / 6 * 100)
        assert metrics.total_net_profit == pytest.approx(120)
        assert metrics.gross_profit == pytest.approx(270)
        assert metrics.gross_loss == pytest.approx(150)

    def test_win_rate_bounds(self, trade_factory):
        all_wins = aggregate_trades([trade_factory(10), trade_factory(5)])
        all_losses = aggregate_trades([trade_factory(-10), trade_factory(-5)])
        assert all_wins.win_rate == 100
        assert all_losses.win_rate == 0

    def test_net_profit_decides_win_or_loss(self, trade_factory):
        metrics = aggregate_trades([trade_factory(10, commission=-12, swap=-1)])
        assert metrics.losing_trades == 1
        assert metrics.total_net_profit == pytest.approx(-3)

    def test_open_trades_are_excluded(self, trade_factory):
        metrics = aggregate_trades([trade_factory(10), trade_factory(500, is_open=True)])
        assert metrics.total_trades == 1
        assert metrics.open_trades == 1
        assert metrics.total_net_profit == 10

    def test_only_open_trades(self, trade_factory):
        metrics = aggregate_trades([trade_factory(0, is_open=True)])
        assert metrics.is_empty
        assert metrics.open_trades == 1

    def test_accepts_trade_objects(self):
        metrics = aggregate_trades([Trade(symbol="EURUSD", profit=100, commission=-5, swap=-2)])
        assert metrics.total_net_profit == 93


# =============================================================================
# Risk Statistics
# =============================================================================


class TestRiskStatistics:
    """Tests for win/loss sizes, ratios and streaks."""

    def test_streaks(self, trade_factory):
        trades = [trade_factory(p) for p in (10, 20, -5, 30, 40, 50)]
        risk = aggregate_trades(trades).risk
        assert risk.max_consecutive_wins == 3
        assert risk.max_consecutive_losses == 1

    def test_zero_profit_breaks_streaks(self, trade_factory):
        metrics = aggregate_trades([trade_factory(p) for p in (10, 0, 10, -5, 0, -5)])
        assert metrics.breakeven_trades == 2
        assert metrics.winning_trades == 2
        assert metrics.losing_trades == 2
        assert metrics.risk.max_consecutive_wins == 1
        assert metrics.risk.max_consecutive_losses == 1

    def test_sizes_and_ratios(self, trade_factory):
        risk = aggregate_trades([trade_factory(p) for p in (10, 30, -5, -15)]).risk
        assert risk.avg_win == 20
        assert risk.avg_loss == 10
        assert risk.largest_win == 30
        assert risk.largest_loss == -15
        assert risk.risk_reward_ratio == pytest.approx(2.0)
        assert risk.profit_factor == pytest.approx(2.0)

    def test_ratios_undefined_without_losses(self, trade_factory):
        risk = aggregate_trades([trade_factory(10), trade_factory(20)]).risk
        assert risk.risk_reward_ratio is None
        assert risk.profit_factor is None
        assert risk.largest_loss == 0

    def test_ratio_undefined_without_wins(self, trade_factory):
        risk = aggregate_trades([trade_factory(-10)]).risk
        assert risk.risk_reward_ratio is None
        assert risk.profit_factor == 0

    def test_max_drawdown(self, trade_factory):
        metrics = aggregate_trades([trade_factory(p) for p in (100, -50, -80, 20)])
        assert metrics.max_drawdown == pytest.approx(130)

    def test_drawdown_counts_from_zero(self, trade_factory):
        metrics = aggregate_trades([trade_factory(-10), trade_factory(-20)])
        assert metrics.max_drawdown == pytest.approx(30)


# =============================================================================
# Breakdowns
# =============================================================================


class TestBreakdowns:
    """Tests for per-symbol, per-hour and per-weekday aggregates."""

    def test_symbol_performance(self, sample_trades):
        symbols = aggregate_trades(sample_trades).symbol_performance
        assert set(symbols) == {"EURUSD", "GBPUSD"}
        assert symbols["EURUSD"].trades == 3
        assert symbols["EURUSD"].profit == pytest.approx(240)
        assert symbols["EURUSD"].win_rate == 1.0
        assert symbols["GBPUSD"].wins == 1
        assert symbols["GBPUSD"].avg_profit == pytest.approx(-40)

    def test_hours_come_from_open_time(self, trade_factory):
        metrics = aggregate_trades([trade_factory(10, hour=14, hold_hours=3)])
        assert list(metrics.hourly_performance) == [14]

    def test_trades_without_open_time_skip_time_buckets(self):
        metrics = aggregate_trades([{"symbol": "EURUSD", "profit": 25}])
        assert metrics.total_trades == 1
        assert metrics.symbol_performance["EURUSD"].profit == 25
        assert metrics.hourly_performance == {}
        assert metrics.weekday_performance == {}
        assert metrics.trading_days == 0

    def test_weekday_names(self, sample_trades):
        weekdays = aggregate_trades(sample_trades).weekday_performance
        assert set(weekdays) == {"Monday", "Tuesday", "Wednesday"}
        assert weekdays["Monday"].profit == pytest.approx(60)

    def test_best_and_worst_hours_need_three_trades(self, sample_trades, trade_factory):
        metrics = aggregate_trades(sample_trades + [trade_factory(500, hour=20)])
        assert metrics.best_hours == [9, 14]
        assert metrics.worst_hours == [14, 9]

    def test_aware_times_use_configured_zone(self):
        trade = {"symbol": "EURUSD", "profit": 10, "openTime": "2024-03-04T13:00:00+00:00"}
        metrics = aggregate_trades([trade], tz=ZoneInfo("America/New_York"))
        assert list(metrics.hourly_performance) == [8]

    def test_daily_and_monthly_performance(self, sample_trades):
        metrics = aggregate_trades(sample_trades)
        assert metrics.trading_days == 3
        assert metrics.avg_trades_per_day == pytest.approx(2)
        assert list(metrics.daily_performance["date"]) == [
            "2024-03-04",
            "2024-03-05",
            "2024-03-06",
        ]
        assert list(metrics.monthly_performance["month"]) == ["2024-03"]
        assert metrics.monthly_performance["profit"].iloc[0] == pytest.approx(120)

    def test_trading_style(self, trade_factory):
        trades = [
            trade_factory(10, lots=0.5, trade_type="Sell", hold_hours=1),
            trade_factory(-5, lots=0.1, hold_hours=3),
        ]
        style = aggregate_trades(trades).style
        assert style.preferred_lot_sizes == [0.5, 0.1]
        assert style.most_profitable_setups == ["Sell", "Buy"]
        assert style.avg_hold_time_hours == pytest.approx(2)

    def test_unknown_direction_counts_toward_totals(self, trade_factory):
        trades = [trade_factory(100), trade_factory(50, trade_type="BuyLimit")]
        metrics = aggregate_trades(trades)
        assert metrics.total_trades == 2
        assert metrics.total_net_profit == pytest.approx(150)
        assert metrics.symbol_performance["EURUSD"].trades == 2
        assert metrics.style.most_profitable_setups == ["Buy"]

    def test_blank_direction_only(self, trade_factory):
        metrics = aggregate_trades([trade_factory(-20, trade_type="")])
        assert metrics.total_trades == 1
        assert metrics.losing_trades == 1
        assert metrics.style.most_profitable_setups == []


class TestMetricsSerialization:
    """Tests for TradeMetrics.to_dict."""

    def test_to_dict(self, sample_trades):
        data = aggregate_trades(sample_trades).to_dict()
        assert data["overall"]["totalTrades"] == 6
        assert data["overall"]["winRate"] == pytest.approx(66.67)
        assert data["symbolPerformance"][0]["symbol"] == "EURUSD"
        assert data["dailyPerformance"][0] == {"date": "2024-03-04", "profit": 60.0, "trades": 2}
        assert [h["key"] for h in data["hourlyPerformance"]] == [9, 14]

    def test_empty_to_dict(self):
        data = aggregate_trades([]).to_dict()
        assert data["overall"]["totalTrades"] == 0
        assert data["dailyPerformance"] == []
        assert data["risk"]["riskRewardRatio"] is None
