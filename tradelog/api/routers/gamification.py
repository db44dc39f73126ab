"""
Tradelog Gamification Router

Endpoints:
    GET  /api/gamification/level           - Level and progress for a point total
    POST /api/gamification/daily-progress  - Daily goals met on a given day
    POST /api/gamification/achievements    - Achievements currently unlocked
"""

import logging
from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, Query, Request
from pydantic import Field

from tradelog.gamification.achievements import (
    calculate_daily_progress,
    check_achievement_conditions,
)
from tradelog.gamification.levels import calculate_level

from .base import AnalysisRequest, ApiResponse, TradesRequest, create_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gamification", tags=["Gamification"])


class DailyProgressRequest(TradesRequest):
    """Trades and the calendar day to score."""

    day: date = Field(..., alias="date", description="Day to evaluate (YYYY-MM-DD)")


class AchievementsRequest(AnalysisRequest):
    history: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Daily progress records, newest first",
    )


@router.get(
    "/level",
    response_model=ApiResponse,
    summary="Level for a point total",
)
async def get_level(
    points: float = Query(..., description="Cumulative points"),
) -> ApiResponse:
    """Negative or non-numeric totals are rejected with 422."""
    return create_response(data=calculate_level(points).to_dict())


@router.post(
    "/daily-progress",
    response_model=ApiResponse,
    summary="Score a trading day",
)
async def daily_progress(payload: DailyProgressRequest, request: Request) -> ApiResponse:
    tz = getattr(request.app.state, "tz", None)
    progress = calculate_daily_progress(payload.trades, payload.day, tz=tz)
    return create_response(data=progress.to_dict())


@router.post(
    "/achievements",
    response_model=ApiResponse,
    summary="Check unlocked achievements",
)
async def achievements(payload: AchievementsRequest) -> ApiResponse:
    unlocked = check_achievement_conditions(
        payload.trades, payload.user_stats, payload.history
    )
    return create_response(data={"unlocked": unlocked})
