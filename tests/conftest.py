"""
Shared test fixtures for Tradelog test suite.
"""

import json
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradelog.config.settings import AdvisorSettings

# Monday
BASE_TIME = datetime(2024, 3, 4, 9, 0)


def make_trade(
    profit,
    symbol="EURUSD",
    hour=9,
    day_offset=0,
    lots=0.1,
    commission=0.0,
    swap=0.0,
    trade_type="Buy",
    is_open=False,
    hold_hours=2,
):
    """Build a storage-shaped (camelCase) trade record."""
    open_time = BASE_TIME.replace(hour=hour) + timedelta(days=day_offset)
    close_time = None if is_open else open_time + timedelta(hours=hold_hours)
    return {
        "symbol": symbol,
        "type": trade_type,
        "lots": lots,
        "openPrice": 1.1,
        "closePrice": None if is_open else 1.1,
        "openTime": open_time.isoformat(),
        "closeTime": close_time.isoformat() if close_time else None,
        "profit": profit,
        "commission": commission,
        "swap": swap,
        "isOpen": is_open,
    }


@pytest.fixture
def trade_factory():
    """Factory for storage-shaped trade records."""
    return make_trade


@pytest.fixture
def sample_trades():
    """
    A small journal spanning two symbols, two hours and three days.

    EURUSD: +120, +80, +40 (3 trades, +240)
    GBPUSD: -60, -90, +30 (3 trades, -120)
    """
    return [
        make_trade(120, "EURUSD", hour=9, day_offset=0),
        make_trade(-60, "GBPUSD", hour=14, day_offset=0),
        make_trade(80, "EURUSD", hour=9, day_offset=1),
        make_trade(-90, "GBPUSD", hour=14, day_offset=1),
        make_trade(40, "EURUSD", hour=9, day_offset=2),
        make_trade(30, "GBPUSD", hour=14, day_offset=2),
    ]


@pytest.fixture
def unconfigured_settings():
    """Advisor settings without an API key (rule-based advice only)."""
    return AdvisorSettings(OPENAI_API_KEY=None)


@pytest.fixture
def configured_settings():
    """Advisor settings with a test API key."""
    return AdvisorSettings(OPENAI_API_KEY="sk-test", ADVICE_TIMEOUT_SECONDS=1.0)


def completion_with(content):
    """Shape a chat completion the way the OpenAI client returns it."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


@pytest.fixture
def llm_advice_payload():
    """A well-formed JSON advice reply."""
    return {
        "advice": [
            {
                "category": "symbol_selection",
                "title": "Lean into EURUSD",
                "advice": "EURUSD produced all of your profit this week",
                "reasoning": "Three winning EURUSD trades",
                "basedOnData": "3 EURUSD trades, +$240",
                "priority": "high",
                "confidenceScore": 88,
                "potentialImpact": "More consistent profits",
            },
            {
                "category": "risk_management",
                "title": "Cut GBPUSD size",
                "advice": "Halve your GBPUSD position size",
                "reasoning": "GBPUSD lost $120 over three trades",
                "basedOnData": "3 GBPUSD trades, -$120",
                "priority": "Medium",
                "confidenceScore": 75,
                "potentialImpact": "Smaller drawdowns",
            },
        ]
    }


@pytest.fixture
def mock_llm_client(llm_advice_payload):
    """AsyncOpenAI-shaped client returning the advice payload."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=completion_with(json.dumps(llm_advice_payload))
    )
    return client


@pytest.fixture
def completion_factory():
    """Factory for chat completion objects with the given content."""
    return completion_with
