"""Health and readiness endpoints.

  /health (liveness):
    "Is this process alive?"  Also reports the in-process cache state so
    an operator can see at a glance whether the progress cache is warm
    and whether certificate generations are piling up.

  /ready (readiness):
    "Can this instance take traffic?"  503 until the lifespan has built
    the services; the load balancer stops routing here without
    restarting the container.

HEALTH RESPONSE STRUCTURE
---------------------------
  status:        "ok" or "degraded"
  progressCache: totalEntries / completedCourses / activeCourses
  certificates:  totalEntries / activeGenerations / entries

"degraded" means generations are in flight for longer than the
generator timeout, i.e. the timeout is not freeing slots and the sweep
has not caught them yet.  The response is still 200: restarting the
process for a slow generator would be too aggressive.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from lms_core.api.dependencies import get_services
from lms_core.services.container import CoreServices

router = APIRouter(tags=["health"])


class ProgressCacheOut(BaseModel):
    totalEntries: int
    completedCourses: int
    activeCourses: int


class CertificateEntryOut(BaseModel):
    key: str
    isGenerating: bool
    age: float


class CertificateCacheOut(BaseModel):
    totalEntries: int
    activeGenerations: int
    entries: list[CertificateEntryOut]


class HealthOut(BaseModel):
    status: str  # ok|degraded
    progressCache: ProgressCacheOut
    certificates: CertificateCacheOut


@router.get("/health", response_model=HealthOut)
async def health(
    services: Annotated[CoreServices, Depends(get_services)],
) -> HealthOut:
    progress = services.progress_cache.stats()
    certificates = services.certificates.cache_status()

    timeout = services.certificates.generation_timeout_seconds
    stuck = any(
        entry.is_generating and entry.age_seconds > timeout
        for entry in certificates.entries
    )

    return HealthOut(
        status="degraded" if stuck else "ok",
        progressCache=ProgressCacheOut(**progress.to_dict()),
        certificates=CertificateCacheOut.model_validate(certificates.to_dict()),
    )


@router.get("/ready")
async def ready(request: Request) -> Response:
    if getattr(request.app.state, "services", None) is None:
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
