"""
Tradelog API Router Base Utilities

Shared response models, dependencies and helpers for all API routers.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from fastapi import HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from tradelog.journal.analyzer import JournalAnalyzer

logger = logging.getLogger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class ApiResponse(BaseModel):
    """
    Standard API response wrapper.

    All endpoints return responses wrapped in this model for consistent
    client-side handling.
    """

    success: bool = Field(..., description="Whether the request succeeded")
    data: Optional[Any] = Field(default=None, description="Response payload")
    error: Optional[str] = Field(default=None, description="Error message if failed")
    timestamp: str = Field(..., description="ISO timestamp of response")


# =============================================================================
# Common Request Models
# =============================================================================


class TradesRequest(BaseModel):
    """Request carrying a batch of journal trade records."""

    model_config = ConfigDict(populate_by_name=True)

    trades: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Trade records as stored (camelCase or snake_case keys)",
    )


class AnalysisRequest(TradesRequest):
    """Trades plus the user's gamification stats."""

    user_stats: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="userStats",
        description="Current points, level and streak counters",
    )


# =============================================================================
# Helper Functions
# =============================================================================


def get_timestamp() -> str:
    """Get current ISO timestamp with Z suffix."""
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def convert_numpy_types(obj: Any) -> Any:
    """
    Convert numpy and pandas values to native Python types for JSON.

    NaN becomes None.
    """
    if isinstance(obj, dict):
        return {k: convert_numpy_types(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy_types(v) for v in obj]
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, (np.floating, float)):
        return float(obj) if not np.isnan(obj) else None
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, pd.Timestamp):
        return obj.isoformat()
    return obj


def create_response(
    data: Any = None,
    error: Optional[str] = None,
    success: bool = True,
) -> ApiResponse:
    """
    Create a standardized API response.

    Args:
        data: Response payload (converted for JSON compatibility)
        error: Error message if the request failed
        success: Whether the request succeeded (forced False when error is set)
    """
    converted_data = convert_numpy_types(data) if data is not None else None

    return ApiResponse(
        success=success and error is None,
        data=converted_data,
        error=error,
        timestamp=get_timestamp(),
    )


# =============================================================================
# Dependencies
# =============================================================================


def get_analyzer(request: Request) -> JournalAnalyzer:
    """Dependency returning the app's journal analyzer, 503 until startup ran."""
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(status_code=503, detail="Journal analyzer not initialized")
    return analyzer
