"""Prometheus scrape endpoint.

Returns every metric in progression/core/metrics.py in the Prometheus
text exposition format, e.g.

  xp_awarded_total{reason="lesson_completed"} 1230.0
  quiz_attempts_total{result="passed"} 41.0

Keep /metrics off the public ingress in production; it exposes request
rates and award volumes.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
