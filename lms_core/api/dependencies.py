from __future__ import annotations

from fastapi import HTTPException, Request, status

from lms_core.services.certificates import CertificateCoordinator
from lms_core.services.completion import CacheBackedCompletionOracle
from lms_core.services.container import CoreServices
from lms_core.services.entitlements import EntitlementService
from lms_core.services.lesson_progress import LessonProgressService
from lms_core.services.progress_cache import ProgressCache


def get_services(request: Request) -> CoreServices:
    """Return the services built by the app lifespan.

    Used as a FastAPI dependency; 503 if the lifespan has not run yet.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialised",
        )
    return services


def get_entitlement_service(request: Request) -> EntitlementService:
    return get_services(request).entitlements


def get_progress_cache(request: Request) -> ProgressCache:
    return get_services(request).progress_cache


def get_completion_oracle(request: Request) -> CacheBackedCompletionOracle:
    return get_services(request).completion


def get_certificate_coordinator(request: Request) -> CertificateCoordinator:
    return get_services(request).certificates


def get_lesson_progress_service(request: Request) -> LessonProgressService:
    return get_services(request).lesson_progress
