"""
Tradelog System Router

Endpoints:
    GET /api/health  - Health check with component status
"""

import logging
from typing import Dict

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from tradelog import __version__

from .base import get_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status: healthy, degraded, or unhealthy")
    version: str = Field(..., description="API version")
    components: Dict[str, bool] = Field(..., description="Component health status")
    advice_source: str = Field(..., description="external or fallback")
    timestamp: str = Field(..., description="ISO timestamp of the check")


@router.get("/api/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    The advice model is optional: without an API key the service reports
    healthy and serves rule-based advice.
    """
    components = {"api": True, "journal_analyzer": False}
    advice_source = "fallback"

    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is not None:
        components["journal_analyzer"] = analyzer.health_check()
        advice_source = analyzer.advice_synthesizer.source_for_configuration().value

    if all(components.values()):
        status = "healthy"
    elif components["api"]:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=__version__,
        components=components,
        advice_source=advice_source,
        timestamp=get_timestamp(),
    )
