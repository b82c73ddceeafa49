"""Prometheus counters for loader outcomes and emitted markers."""

from __future__ import annotations

from prometheus_client import Counter

loader_lists_total = Counter(
    "kubestatus_loader_lists_total",
    "Resource list calls made by the loader fan-out, by outcome.",
    ["kind", "outcome"],
)

markers_total = Counter(
    "kubestatus_markers_total",
    "Markers reported after namespace filtering, by severity.",
    ["severity"],
)
