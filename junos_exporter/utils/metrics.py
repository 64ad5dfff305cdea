"""Metric schema and sample data structures shared by all collectors."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

NAMESPACE = "junos"

_INVALID_NAME_CHARS = re.compile(r'[^a-zA-Z0-9_]')


class MetricKind(str, Enum):
    """Prometheus value type of a metric."""
    GAUGE = "gauge"
    COUNTER = "counter"


def sanitize_name(name: str) -> str:
    """Replace characters that are not allowed in metric or label names."""
    sanitized = _INVALID_NAME_CHARS.sub('_', name)
    if sanitized and sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def metric_key_name(key: str) -> str:
    """Metric name of a user-defined interface metric key."""
    return sanitize_name(key.lower())


def build_fq_name(*parts: str) -> str:
    """
    Join namespace, subsystem and metric name into a fully-qualified name.

    Empty parts are skipped, so build_fq_name("junos", "", "scrapes_total")
    gives "junos_scrapes_total".

    Args:
        parts: Name components in order

    Returns:
        str: Underscore-joined metric name
    """
    return "_".join(part for part in parts if part)


@dataclass(frozen=True)
class MetricDesc:
    """Declared schema of one metric: name, help text, label names and kind."""

    name: str
    documentation: str
    labels: Tuple[str, ...] = ()
    kind: MetricKind = MetricKind.GAUGE

    def sample(self, value: float, *label_values: str) -> "MetricSample":
        """
        Build a sample for this metric.

        Args:
            value: Sample value
            label_values: One value per declared label, in declaration order

        Returns:
            MetricSample: Immutable sample bound to this desc

        Raises:
            ValueError: If the number of label values differs from the declared labels
        """
        if len(label_values) != len(self.labels):
            raise ValueError(
                f"{self.name}: expected {len(self.labels)} label values, got {len(label_values)}"
            )
        return MetricSample(desc=self, value=float(value), label_values=tuple(label_values))


def gauge(subsystem: str, name: str, documentation: str, labels: Optional[List[str]] = None) -> MetricDesc:
    """Declare a gauge under the junos namespace."""
    return MetricDesc(
        name=build_fq_name(NAMESPACE, subsystem, name),
        documentation=documentation,
        labels=tuple(labels or ()),
        kind=MetricKind.GAUGE,
    )


def counter(subsystem: str, name: str, documentation: str, labels: Optional[List[str]] = None) -> MetricDesc:
    """Declare a counter under the junos namespace."""
    return MetricDesc(
        name=build_fq_name(NAMESPACE, subsystem, name),
        documentation=documentation,
        labels=tuple(labels or ()),
        kind=MetricKind.COUNTER,
    )


@dataclass(frozen=True)
class MetricSample:
    """One labelled value of a declared metric."""

    desc: MetricDesc
    value: float
    label_values: Tuple[str, ...] = ()


@dataclass
class CollectorOutcome:
    """Result of one collector run within a scrape."""

    collector_name: str
    samples: List[MetricSample] = field(default_factory=list)
    errors: List[Exception] = field(default_factory=list)
    error_total: float = 0.0
    duration: float = 0.0

    @property
    def up(self) -> bool:
        """True when the run finished without errors."""
        return not self.errors
