"""Prometheus metrics for provider allocation and request lifecycle."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

ALLOCATION_DECISIONS = Counter(
    "provisioning_allocation_decisions_total",
    "Allocation calls by outcome",
    ["mode", "outcome"],  # mode: ranked, pinned, fixed_carrier; outcome: allocated or error code
)

ALLOCATION_LATENCY = Histogram(
    "provisioning_allocation_seconds",
    "Time spent resolving a provider for a location",
    ["mode"],
)

LIFECYCLE_TRANSITIONS = Counter(
    "provisioning_lifecycle_transitions_total",
    "Lifecycle commands by record kind, action and outcome",
    ["kind", "action", "outcome"],  # outcome: updated, no_change, created, error
)
