"""
Tradelog Journal Router

Trade analysis endpoints: performance metrics, detected patterns,
personalized advice and the combined journal report.

Endpoints:
    POST /api/journal/metrics   - Aggregated trade statistics
    POST /api/journal/patterns  - Ranked trading patterns
    POST /api/journal/advice    - AI or rule-based advice
    POST /api/journal/analysis  - Full journal report
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from tradelog.core.errors import TradelogError
from tradelog.journal.analyzer import JournalAnalyzer

from .base import AnalysisRequest, ApiResponse, TradesRequest, create_response, get_analyzer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/journal", tags=["Journal"])


@router.post(
    "/metrics",
    response_model=ApiResponse,
    summary="Compute trade metrics",
)
async def compute_metrics(
    payload: TradesRequest,
    analyzer: JournalAnalyzer = Depends(get_analyzer),
) -> ApiResponse:
    """Win rate, net profit, risk and per-symbol/hour/weekday breakdowns."""
    try:
        metrics = analyzer.analyze_metrics(payload.trades)
        return create_response(data=metrics.to_dict())
    except (HTTPException, TradelogError):
        raise
    except Exception as e:
        logger.error(f"Error computing metrics: {e}", exc_info=True)
        return create_response(error=str(e), success=False)


@router.post(
    "/patterns",
    response_model=ApiResponse,
    summary="Detect trading patterns",
)
async def detect_patterns(
    payload: TradesRequest,
    analyzer: JournalAnalyzer = Depends(get_analyzer),
) -> ApiResponse:
    """Up to five patterns ordered by priority."""
    try:
        patterns = analyzer.detect_patterns(payload.trades)
        return create_response(data=[p.to_dict() for p in patterns])
    except (HTTPException, TradelogError):
        raise
    except Exception as e:
        logger.error(f"Error detecting patterns: {e}", exc_info=True)
        return create_response(error=str(e), success=False)


@router.post(
    "/advice",
    response_model=ApiResponse,
    summary="Generate trading advice",
    description="Uses the configured language model, falling back to rule-based advice.",
)
async def generate_advice(
    payload: AnalysisRequest,
    analyzer: JournalAnalyzer = Depends(get_analyzer),
) -> ApiResponse:
    try:
        advice = await analyzer.generate_advice(payload.trades, payload.user_stats)
        return create_response(data=[a.to_dict() for a in advice])
    except (HTTPException, TradelogError):
        raise
    except Exception as e:
        logger.error(f"Error generating advice: {e}", exc_info=True)
        return create_response(error=str(e), success=False)


@router.post(
    "/analysis",
    response_model=ApiResponse,
    summary="Full journal analysis",
)
async def analyze_journal(
    payload: AnalysisRequest,
    analyzer: JournalAnalyzer = Depends(get_analyzer),
) -> ApiResponse:
    """
    Run the whole pipeline.

    Returns metrics, patterns, advice and level progress in one report.
    """
    try:
        report = await analyzer.analyze(payload.trades, payload.user_stats)
        return create_response(data=report.to_dict())
    except (HTTPException, TradelogError):
        raise
    except Exception as e:
        logger.error(f"Error analyzing journal: {e}", exc_info=True)
        return create_response(error=str(e), success=False)
