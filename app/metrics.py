"""Prometheus metrics for the warehouse workflow."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

ALLOCATIONS = Counter(
    "material_allocations_total",
    "Inventory unit allocations by outcome",
    ["result"],  # result: allocated, rejected, cancelled
)

REQUEST_DECISIONS = Counter(
    "material_request_decisions_total",
    "Approve/reject decisions on material requests",
    ["status"],
)

EVENTS_DISPATCHED = Counter(
    "event_outbox_dispatched_total",
    "Outbox events processed by the dispatcher",
    ["status"],  # status: processed, failed
)

ALLOCATION_BATCH_SECONDS = Histogram(
    "material_allocation_batch_seconds",
    "Time to validate and commit one allocation batch",
)
