"""
Trade Records

Validated trade and user-statistics models. Records arrive from storage as
loosely shaped dicts (camelCase keys, nulls, the occasional string number);
they are normalized here once so the analysis code can rely on types.
"""

import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError as PydanticValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from tradelog.core.errors import DataError, ValidationError

logger = logging.getLogger(__name__)

_DATETIME = TypeAdapter(datetime)


class TradeType(str, Enum):
    """Trade direction."""

    BUY = "Buy"
    SELL = "Sell"


def _to_float(value: Any, default: Optional[float]) -> Optional[float]:
    """Coerce a loosely typed numeric field, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


class JournalModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Trade(JournalModel):
    """A single journal trade, read-only for analysis."""

    symbol: str = Field(..., min_length=1)
    type: Optional[TradeType] = None  # None when the direction is unknown
    lots: float = 0.0
    open_price: Optional[float] = None
    close_price: Optional[float] = None
    open_time: Optional[datetime] = None
    close_time: Optional[datetime] = None
    profit: float = 0.0
    commission: float = 0.0
    swap: float = 0.0
    pips: Optional[float] = None
    is_open: bool = False

    ticket_id: Optional[str] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, TradeType) or v is None:
            return v
        lowered = str(v).strip().lower()
        if lowered in ("buy", "long"):
            return TradeType.BUY
        if lowered in ("sell", "short"):
            return TradeType.SELL
        logger.debug(f"Unknown trade direction {v!r}, treating as missing")
        return None

    @field_validator("lots", "profit", "commission", "swap", mode="before")
    @classmethod
    def numeric_or_zero(cls, v):
        return _to_float(v, 0.0)

    @field_validator(
        "open_price", "close_price", "pips", "stop_loss", "take_profit", mode="before"
    )
    @classmethod
    def numeric_or_none(cls, v):
        return _to_float(v, None)

    @field_validator("open_time", "close_time", mode="before")
    @classmethod
    def unreadable_time_is_missing(cls, v):
        if v is None or isinstance(v, datetime):
            return v
        try:
            return _DATETIME.validate_python(v)
        except PydanticValidationError:
            logger.debug(f"Unreadable trade timestamp {v!r}, treating as missing")
            return None

    @field_validator("is_open", mode="before")
    @classmethod
    def null_is_closed(cls, v):
        return False if v is None else v

    @field_validator("ticket_id", mode="before")
    @classmethod
    def ticket_as_str(cls, v):
        return None if v is None else str(v)

    @property
    def net_profit(self) -> float:
        """Realized result including commission and swap."""
        return self.profit + self.commission + self.swap

    @property
    def hold_time_hours(self) -> Optional[float]:
        if self.open_time is None or self.close_time is None:
            return None
        try:
            delta = self.close_time - self.open_time
        except TypeError:
            # naive/aware mix
            return None
        return delta.total_seconds() / 3600

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UserStats(JournalModel):
    """Gamification counters kept for a user."""

    current_points: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    current_level: int = Field(default=1, ge=1)
    total_profitable_days: int = 0
    total_risk_control_days: int = 0
    consecutive_profitable_days: int = 0
    account_size: Optional[float] = None

    @field_validator("current_points", "current_level", mode="before")
    @classmethod
    def null_is_default(cls, v, info):
        if v is None:
            return 1 if info.field_name == "current_level" else 0
        return v


TradeInput = Union[Trade, Dict[str, Any]]


def coerce_trade(record: TradeInput) -> Optional[Trade]:
    """
    Build a Trade from a storage record.

    Returns None (and logs) when the record cannot be validated at all.
    """
    if isinstance(record, Trade):
        return record
    try:
        return Trade.model_validate(record)
    except PydanticValidationError as e:
        logger.warning(
            f"Skipping malformed trade record: {e.error_count()} validation error(s)",
            extra={"ctx_ticket_id": _ticket_of(record)},
        )
        return None


def coerce_trades(records: Optional[Iterable[TradeInput]]) -> List[Trade]:
    """
    Validate a batch of records, dropping the ones that cannot be read.

    Raises:
        DataError: If ``records`` is a single record or a string rather than a batch
    """
    if not records:
        return []
    if isinstance(records, (str, bytes, dict, BaseModel)):
        raise DataError(detail="expected a list of trade records")
    trades = []
    for record in records:
        trade = coerce_trade(record)
        if trade is not None:
            trades.append(trade)
    return trades


def coerce_user_stats(stats: Union[UserStats, Dict[str, Any], None]) -> UserStats:
    """
    Build UserStats from a storage record.

    Raises:
        ValidationError: If the counters are out of range (e.g. negative points)
    """
    if isinstance(stats, UserStats):
        return stats
    if not stats:
        return UserStats()
    try:
        return UserStats.model_validate(stats)
    except PydanticValidationError as e:
        raise ValidationError(detail="invalid user stats", original_error=e)


def _ticket_of(record: Any) -> Optional[str]:
    if isinstance(record, dict):
        value = record.get("ticketId", record.get("ticket_id"))
        return None if value is None else str(value)
    return None
