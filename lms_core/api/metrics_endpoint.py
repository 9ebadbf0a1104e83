"""Prometheus scrape endpoint.

Returns every metric in lms_core.core.metrics in text exposition format:

  # HELP certificate_generations_total Certificate check-and-generate outcomes
  # TYPE certificate_generations_total counter
  certificate_generations_total{outcome="generated"} 12.0
  certificate_generations_total{outcome="existing"} 31.0

Counters are per process; Prometheus sums across replicas.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
