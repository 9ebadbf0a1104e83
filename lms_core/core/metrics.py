"""Application metrics using the Prometheus client library.

All metrics are defined here so there is one inventory of what the core
measures.  Modules import the metric they own and increment it at the
point of action.

  access_decisions_total            COUNTER  by source
                                             (admin|purchase|subscription|none)
  progress_cache_operations_total   COUNTER  by operation (hit|miss|set|update|evict)
  certificate_generations_total     COUNTER  by outcome
                                             (generated|existing|failed|not_completed)
  certificate_active_generations    GAUGE    in-flight generator calls right now

The gauge is the interesting one operationally: if it climbs and stays
up, the external generator is hanging and the timeout is doing the work.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

ACCESS_DECISIONS = Counter(
    "access_decisions_total",
    "Course access decisions by granting source",
    ["source"],
)

PROGRESS_CACHE_OPERATIONS = Counter(
    "progress_cache_operations_total",
    "Progress cache operations by kind",
    ["operation"],
)

CERTIFICATE_GENERATIONS = Counter(
    "certificate_generations_total",
    "Certificate check-and-generate outcomes",
    ["outcome"],
)

ACTIVE_GENERATIONS = Gauge(
    "certificate_active_generations",
    "Certificate generator calls currently in flight",
)
