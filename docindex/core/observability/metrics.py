from __future__ import annotations

from collections import Counter
from typing import Dict, Optional

from prometheus_client import Counter as PromCounter

# Requests counters (HTTP-level)
_REQUESTS = Counter()

# Named counters (custom)
_NAMED = Counter()

_PROM_DELIVERIES = PromCounter(
    "docindex_deliveries_total",
    "Fragment delivery attempts",
    ["channel", "outcome"],
)

_PROM_DESCRIPTORS = PromCounter(
    "docindex_descriptors_merged_total",
    "Descriptors merged into a registry",
    ["channel"],
)


def reset_metrics() -> None:
    """
    Test helper: clears all counters to avoid cross-test leakage.
    Safe to call multiple times.
    """
    _REQUESTS.clear()
    _NAMED.clear()


def inc_http(method: str, path: str, status: Optional[int] = None) -> None:
    """
    Canonical HTTP metric increment used by middleware.
    """
    m = (method or "UNKNOWN").upper()
    p = path or "/"
    s = status if status is not None else "unknown"

    _REQUESTS["requests_total"] += 1
    _REQUESTS[f"requests_{m}"] += 1
    _REQUESTS[f"path_{p}"] += 1
    _REQUESTS[f"path_{p}|{s}"] += 1


def inc_named(name: str, value: int = 1) -> None:
    """
    Increment a named counter (used by health endpoints, delivery accounting, etc.).
    """
    if not name:
        return
    _NAMED[name] += int(value)


def record_delivery(channel: str, outcome: str) -> None:
    # outcome: "merged" | "queued" | "refused" | "unavailable"
    _PROM_DELIVERIES.labels(channel=channel, outcome=outcome).inc()
    inc_named(f"deliveries_{outcome}")


def record_merge(channel: str, descriptors: int) -> None:
    if descriptors:
        _PROM_DESCRIPTORS.labels(channel=channel).inc(descriptors)
    inc_named("merges_total")
    inc_named("descriptors_merged", descriptors)


def snapshot_requests() -> Dict[str, int]:
    return dict(_REQUESTS)


def snapshot_named() -> Dict[str, int]:
    return dict(_NAMED)
