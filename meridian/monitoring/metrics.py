"""Meridian – In-process metrics.

A small thread-safe registry of the latest value per metric name and
tag set. Engines emit gauges here (report scores, alert counts,
simulation sizes and durations); callers read them back or forward them
to their own backend. There is no external metrics dependency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, List, Mapping, MutableMapping, Optional, Tuple

from meridian.core.logging import get_logger


logger = get_logger(__name__)

_TagKey = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class MetricPoint:
    """Single metric observation.

    Attributes:
        name: Metric name (e.g. "risk.report.score").
        value: Numeric value.
        tags: Tag mapping (e.g. {"scenario": "monte_carlo"}).
        timestamp: UTC timestamp of the observation.
    """

    name: str
    value: float
    tags: Mapping[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_latest_metrics: MutableMapping[Tuple[str, _TagKey], MetricPoint] = {}
_lock = Lock()


def _normalise_tags(tags: Optional[Mapping[str, str]]) -> _TagKey:
    if not tags:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in tags.items()))


def record_metric(name: str, value: float, tags: Optional[Mapping[str, str]] = None) -> None:
    """Record the latest value of a metric for a (name, tags) combination."""

    key = (name, _normalise_tags(tags))
    point = MetricPoint(name=name, value=float(value), tags=dict(key[1]))
    with _lock:
        _latest_metrics[key] = point
    logger.debug("metric recorded: %s=%s tags=%s", name, value, dict(key[1]))


def get_latest_metrics(prefix: Optional[str] = None) -> List[MetricPoint]:
    """Return the latest recorded metrics, optionally filtered by name prefix."""

    with _lock:
        points = list(_latest_metrics.values())

    if prefix is None:
        return points
    return [p for p in points if p.name.startswith(prefix)]


def get_metric(name: str, tags: Optional[Mapping[str, str]] = None) -> Optional[MetricPoint]:
    with _lock:
        return _latest_metrics.get((name, _normalise_tags(tags)))


def reset_metrics() -> None:
    """Clear all in-memory metrics (useful in tests)."""

    with _lock:
        _latest_metrics.clear()


def snapshot() -> Dict[str, float]:
    """Return ``{name: value}`` for untagged metrics and ``name{k=v}`` otherwise."""

    out: Dict[str, float] = {}
    for point in get_latest_metrics():
        if point.tags:
            label = ",".join(f"{k}={v}" for k, v in sorted(point.tags.items()))
            out[f"{point.name}{{{label}}}"] = point.value
        else:
            out[point.name] = point.value
    return out
