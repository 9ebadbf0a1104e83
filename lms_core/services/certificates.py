"""Certificate issuance: issue exactly one certificate per completed course
or learning path.

THE PROBLEM
------------
Finishing the last lesson usually fires several requests at once (the
player's completion ping, the progress page refresh, a second tab).  Each
one asks "completed? then issue the certificate".  The generator renders
a PDF, uploads it and mails it; it is slow and NOT idempotent, so two
concurrent calls would mint two certificates.

THE FLOW
---------
  check_and_generate(actor, course)          (or _path(actor, path))
    1. completion oracle says no            -> not_completed (nothing touched)
    2. lookup cache / store has a record    -> existing(id)
    3. someone is already generating        -> await their handle
    4. otherwise claim the handle, generate -> generated(id) for us,
                                               existing(id) for joiners

Course and path certificates share all of the machinery below; they only
differ in the completion check, the generator call and the record built.

REQUEST COALESCING
-------------------
``_in_flight`` maps (actor_id, subject_id, type) to an asyncio.Future
shared by every caller for that key.  The check-then-claim in step 3/4
runs with no ``await`` in between, and the event loop only switches tasks
at an ``await``, so exactly one caller ends up owning the handle.

The generator runs in its own task, not in the claiming caller.  If the
claiming request is cancelled (client disconnect), generation carries on
and the handle still resolves for everyone else.  Waiters await the handle
through ``asyncio.shield`` so one waiter's cancellation cannot cancel the
shared future.

The handle is removed only after it resolves, together with writing the
lookup cache on success, so a late caller sees either the handle or the
cached id, never neither.

CROSS-PROCESS
--------------
All of the above is per process.  Two processes can still race to the
store; the unique constraints on (user, subject, type) decide the winner,
and the loser's DuplicateCertificateError is reported as a dedup hit, not
a failure.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from lms_core.core.metrics import ACTIVE_GENERATIONS, CERTIFICATE_GENERATIONS
from lms_core.models.certificate import (
    CertificateRecord,
    CertificateType,
    GeneratedCertificate,
    new_certificate_id,
)
from lms_core.repos.certificate_repo import CertificateRepo, DuplicateCertificateError
from lms_core.services.completion import CompletionOracle

logger = logging.getLogger(__name__)

Fingerprint = tuple[str, str, CertificateType]  # (actor_id, subject_id, type)

MSG_NOT_COMPLETED = "Course not yet completed"
MSG_PATH_NOT_COMPLETED = "Learning path not yet completed"
MSG_GENERATED = "Certificate generated successfully"
MSG_EXISTING = "Certificate already issued"
MSG_FAILED = "Course completed but certificate generation failed"
MSG_PATH_FAILED = "Learning path completed but certificate generation failed"

# A generation is only abandoned once it has outlived the generator
# timeout by this factor, leaving room for the store write after it.
ORPHAN_GRACE_FACTOR = 2


class CertificateGenerator(Protocol):
    async def generate(self, course_id: str, actor_id: str) -> GeneratedCertificate: ...
    async def generate_path(
        self, path_id: str, actor_id: str
    ) -> GeneratedCertificate: ...


class LocalCertificateGenerator:
    """In-process generator used when no external renderer is wired in."""

    async def generate(self, course_id: str, actor_id: str) -> GeneratedCertificate:
        return _local_certificate()

    async def generate_path(self, path_id: str, actor_id: str) -> GeneratedCertificate:
        return _local_certificate()


def _local_certificate() -> GeneratedCertificate:
    return GeneratedCertificate(
        certificate_id=new_certificate_id(),
        issued_at=datetime.datetime.now(datetime.UTC),
    )


@dataclass(frozen=True, slots=True)
class CertificateResult:
    success: bool
    message: str
    is_completed: bool = True
    certificate_id: str | None = None
    newly_generated: bool = False
    error: str | None = None

    @staticmethod
    def not_completed(message: str = MSG_NOT_COMPLETED) -> CertificateResult:
        return CertificateResult(success=True, message=message, is_completed=False)

    @staticmethod
    def existing(certificate_id: str) -> CertificateResult:
        return CertificateResult(
            success=True, message=MSG_EXISTING, certificate_id=certificate_id
        )

    @staticmethod
    def generated(certificate_id: str) -> CertificateResult:
        return CertificateResult(
            success=True,
            message=MSG_GENERATED,
            certificate_id=certificate_id,
            newly_generated=True,
        )

    @staticmethod
    def failed(error: str, message: str = MSG_FAILED) -> CertificateResult:
        return CertificateResult(success=False, message=message, error=error)

    def to_dict(self) -> dict[str, object]:
        if not self.success:
            return {"success": False, "message": self.message, "error": self.error}
        if not self.is_completed:
            return {"success": True, "isCompleted": False, "message": self.message}
        return {
            "success": True,
            "message": self.message,
            "certificateId": self.certificate_id,
            "newlyGenerated": self.newly_generated,
        }


@dataclass(frozen=True, slots=True)
class CertificateCacheEntry:
    key: str
    is_generating: bool
    age_seconds: float


@dataclass(frozen=True, slots=True)
class CertificateCacheStatus:
    total_entries: int
    active_generations: int
    entries: list[CertificateCacheEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "totalEntries": self.total_entries,
            "activeGenerations": self.active_generations,
            "entries": [
                {"key": e.key, "isGenerating": e.is_generating, "age": e.age_seconds}
                for e in self.entries
            ],
        }


@dataclass(frozen=True, slots=True)
class _Outcome:
    """What the generation task resolves the shared handle with."""

    certificate_id: str | None = None
    newly_generated: bool = False
    error: str | None = None


@dataclass(slots=True)
class _Lookup:
    certificate_id: str
    cached_at: float


@dataclass(slots=True)
class _InFlight:
    handle: asyncio.Future[_Outcome]
    task: asyncio.Task[None] | None
    started_at: float


def _key_label(key: Fingerprint) -> str:
    actor_id, subject_id, kind = key
    if kind == CertificateType.PATH:
        return f"{actor_id}-path-{subject_id}"
    return f"{actor_id}-{subject_id}"


def _log_ctx(key: Fingerprint) -> dict[str, str]:
    actor_id, subject_id, kind = key
    if kind == CertificateType.PATH:
        return {"user_id": actor_id, "learning_path_id": subject_id}
    return {"user_id": actor_id, "course_id": subject_id}


class CertificateCoordinator:
    """Idempotent check-and-issue for course and learning path certificates."""

    def __init__(
        self,
        completion: CompletionOracle,
        certificate_repo: CertificateRepo,
        generator: CertificateGenerator,
        *,
        lookup_ttl_seconds: float = 3600,
        generation_timeout_seconds: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._completion = completion
        self._repo = certificate_repo
        self._generator = generator
        self._lookup_ttl = lookup_ttl_seconds
        self._timeout = generation_timeout_seconds
        self._clock = clock
        self._lookups: dict[Fingerprint, _Lookup] = {}
        self._in_flight: dict[Fingerprint, _InFlight] = {}

    @property
    def generation_timeout_seconds(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def check_and_generate(
        self, actor_id: str, course_id: str
    ) -> CertificateResult:
        completed = await self._completion.has_completed_course(actor_id, course_id)
        return await self._issue(
            (actor_id, course_id, CertificateType.COURSE), completed
        )

    async def check_and_generate_path(
        self, actor_id: str, path_id: str
    ) -> CertificateResult:
        completed = await self._completion.has_completed_path(actor_id, path_id)
        return await self._issue((actor_id, path_id, CertificateType.PATH), completed)

    def cache_status(self) -> CertificateCacheStatus:
        now = self._clock()
        entries = [
            CertificateCacheEntry(
                key=_key_label(key),
                is_generating=False,
                age_seconds=now - lookup.cached_at,
            )
            for key, lookup in self._lookups.items()
        ]
        entries.extend(
            CertificateCacheEntry(
                key=_key_label(key),
                is_generating=True,
                age_seconds=now - flight.started_at,
            )
            for key, flight in self._in_flight.items()
        )
        return CertificateCacheStatus(
            total_entries=len(entries),
            active_generations=sum(
                1 for flight in self._in_flight.values() if not flight.handle.done()
            ),
            entries=entries,
        )

    def cleanup(self) -> int:
        """Evict stale lookups and orphaned generation handles.

        A generation is orphaned once it has run for ORPHAN_GRACE_FACTOR
        times the generator timeout.  Returns the number of entries
        removed.  Safe on an empty cache and outside a running event loop.
        """
        now = self._clock()
        stale = [
            key
            for key, lookup in self._lookups.items()
            if now - lookup.cached_at >= self._lookup_ttl
        ]
        for key in stale:
            del self._lookups[key]

        orphan_after = self._timeout * ORPHAN_GRACE_FACTOR
        orphaned = [
            key
            for key, flight in self._in_flight.items()
            if now - flight.started_at >= orphan_after
        ]
        for key in orphaned:
            flight = self._in_flight.pop(key)
            # Wake anyone still waiting before dropping the handle.
            if not flight.handle.done():
                flight.handle.set_result(
                    _Outcome(error="certificate generation was abandoned")
                )
            if flight.task is not None and not flight.task.done():
                flight.task.cancel()
            logger.warning(
                "Dropped orphaned certificate generation", extra=_log_ctx(key)
            )

        return len(stale) + len(orphaned)

    def clear(self) -> None:
        for flight in self._in_flight.values():
            if flight.task is not None and not flight.task.done():
                flight.task.cancel()
        self._in_flight.clear()
        self._lookups.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _issue(self, key: Fingerprint, completed: bool) -> CertificateResult:
        actor_id, subject_id, kind = key
        is_path = kind == CertificateType.PATH

        if not completed:
            CERTIFICATE_GENERATIONS.labels(outcome="not_completed").inc()
            return CertificateResult.not_completed(
                MSG_PATH_NOT_COMPLETED if is_path else MSG_NOT_COMPLETED
            )

        cached_id = self._cached_certificate_id(key)
        if cached_id is not None:
            CERTIFICATE_GENERATIONS.labels(outcome="existing").inc()
            return CertificateResult.existing(cached_id)

        if key not in self._in_flight:
            record = await self._repo.find_certificate(actor_id, subject_id, kind)
            if record is not None:
                self._remember(key, record.certificate_id)
                CERTIFICATE_GENERATIONS.labels(outcome="existing").inc()
                return CertificateResult.existing(record.certificate_id)

        # --- no await from here until the handle is claimed or joined ---
        cached_id = self._cached_certificate_id(key)
        if cached_id is not None:
            CERTIFICATE_GENERATIONS.labels(outcome="existing").inc()
            return CertificateResult.existing(cached_id)

        in_flight = self._in_flight.get(key)
        initiator = in_flight is None
        if in_flight is None:
            in_flight = self._claim(key)
        else:
            logger.debug(
                "Joining in-flight certificate generation", extra=_log_ctx(key)
            )
        # --- claimed or joined ---

        outcome = await asyncio.shield(in_flight.handle)
        return self._result_for(
            outcome,
            initiator=initiator,
            failed_message=MSG_PATH_FAILED if is_path else MSG_FAILED,
        )

    def _cached_certificate_id(self, key: Fingerprint) -> str | None:
        lookup = self._lookups.get(key)
        if lookup is None:
            return None
        if self._clock() - lookup.cached_at >= self._lookup_ttl:
            return None
        return lookup.certificate_id

    def _remember(self, key: Fingerprint, certificate_id: str) -> None:
        self._lookups[key] = _Lookup(
            certificate_id=certificate_id, cached_at=self._clock()
        )

    def _claim(self, key: Fingerprint) -> _InFlight:
        loop = asyncio.get_running_loop()
        in_flight = _InFlight(
            handle=loop.create_future(), task=None, started_at=self._clock()
        )
        self._in_flight[key] = in_flight
        ACTIVE_GENERATIONS.inc()
        in_flight.task = loop.create_task(self._run_generation(key, in_flight))
        return in_flight

    async def _run_generation(self, key: Fingerprint, in_flight: _InFlight) -> None:
        """Owns the handle: every exit path resolves it and releases the slot."""
        handle = in_flight.handle
        try:
            outcome = await self._generate_and_persist(key)
        except asyncio.CancelledError:
            if not handle.done():
                handle.set_result(
                    _Outcome(error="certificate generation was cancelled")
                )
            raise
        except Exception as e:
            # Store faults propagate to every waiter unchanged.
            if not handle.done():
                handle.set_exception(e)
        else:
            if outcome.certificate_id is not None:
                self._remember(key, outcome.certificate_id)
            if not handle.done():
                handle.set_result(outcome)
            if outcome.error is not None:
                logger.warning(
                    "Certificate generation failed: %s",
                    outcome.error,
                    extra=_log_ctx(key),
                )
        finally:
            if self._in_flight.get(key) is in_flight:
                del self._in_flight[key]
            ACTIVE_GENERATIONS.dec()

    async def _generate(self, key: Fingerprint) -> GeneratedCertificate:
        actor_id, subject_id, kind = key
        if kind == CertificateType.PATH:
            return await self._generator.generate_path(subject_id, actor_id)
        return await self._generator.generate(subject_id, actor_id)

    async def _generate_and_persist(self, key: Fingerprint) -> _Outcome:
        actor_id, subject_id, kind = key
        log_ctx = _log_ctx(key)

        try:
            generated = await asyncio.wait_for(
                self._generate(key), timeout=self._timeout
            )
        except TimeoutError:
            return _Outcome(
                error=f"certificate generation timed out after {self._timeout}s"
            )
        except Exception as e:
            return _Outcome(error=str(e) or type(e).__name__)

        if kind == CertificateType.PATH:
            record = CertificateRecord.for_path(
                user_id=actor_id, learning_path_id=subject_id, generated=generated
            )
        else:
            record = CertificateRecord.for_course(
                user_id=actor_id, course_id=subject_id, generated=generated
            )
        try:
            await self._repo.create_certificate(record)
        except DuplicateCertificateError:
            # Another process issued first; theirs is the certificate.
            existing = await self._repo.find_certificate(actor_id, subject_id, kind)
            if existing is None:
                raise
            logger.warning(
                "Certificate %s discarded, store already holds %s",
                generated.certificate_id,
                existing.certificate_id,
                extra=log_ctx,
            )
            return _Outcome(certificate_id=existing.certificate_id)

        logger.info(
            "Certificate issued",
            extra={**log_ctx, "certificate_id": record.certificate_id},
        )
        return _Outcome(certificate_id=record.certificate_id, newly_generated=True)

    def _result_for(
        self, outcome: _Outcome, *, initiator: bool, failed_message: str
    ) -> CertificateResult:
        if outcome.certificate_id is None:
            CERTIFICATE_GENERATIONS.labels(outcome="failed").inc()
            return CertificateResult.failed(
                outcome.error or "unknown error", failed_message
            )
        if initiator and outcome.newly_generated:
            CERTIFICATE_GENERATIONS.labels(outcome="generated").inc()
            return CertificateResult.generated(outcome.certificate_id)
        CERTIFICATE_GENERATIONS.labels(outcome="existing").inc()
        return CertificateResult.existing(outcome.certificate_id)
