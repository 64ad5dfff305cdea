"""Lenient text-to-sample conversion used by every collector."""

import logging
import re
from typing import List, Optional

from .metrics import MetricDesc, MetricSample

_DIGITS = re.compile(r'[0-9]+')

MEGABYTE = 1000000
GBPS_TO_BYTES = 125000000
MBPS_TO_BYTES = 125000


def parse_float(text: Optional[str]) -> Optional[float]:
    """
    Parse a numeric field from an RPC reply.

    Args:
        text: Raw element text, possibly surrounded by whitespace

    Returns:
        Optional[float]: Parsed value, or None when the field is empty

    Raises:
        ValueError: If the text is present but not numeric
    """
    if text is None or not text.strip():
        return None
    return float(text.strip())


def parse_megabytes(text: Optional[str]) -> Optional[float]:
    """
    Parse a size field such as "2048 MB" into bytes.

    Only the first run of digits is used.

    Raises:
        ValueError: If the text is present but contains no digits
    """
    if text is None or not text.strip():
        return None
    match = _DIGITS.search(text)
    if match is None:
        raise ValueError(f"no digits in {text.strip()!r}")
    return float(match.group(0)) * MEGABYTE


def parse_speed(text: Optional[str]) -> Optional[float]:
    """
    Parse an interface speed such as "10Gbps" or "100mbps" into bytes per second.

    Returns None for empty text and for speeds in any other unit ("Auto", "Unlimited").

    Raises:
        ValueError: If a Gbps/mbps speed does not have an integer prefix
    """
    if text is None:
        return None
    speed = text.strip()
    if "Gbps" in speed:
        return float(int(speed.rstrip("Gbps"))) * GBPS_TO_BYTES
    if "mbps" in speed:
        return float(int(speed.rstrip("mbps"))) * MBPS_TO_BYTES
    return None


def state_value(text: Optional[str], healthy: str) -> float:
    """Return 1.0 when text equals the healthy value ignoring case and whitespace, else 0.0."""
    if text is None:
        return 0.0
    return 1.0 if text.strip().lower() == healthy.lower() else 0.0


class SampleBatch:
    """
    Accumulates the samples of one collector run.

    Conversion failures are logged through the collector's logger and the
    affected sample is skipped; later fields are still processed.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.samples: List[MetricSample] = []

    def add(self, desc: MetricDesc, value: float, *labels: str) -> None:
        self.samples.append(desc.sample(value, *labels))

    def add_text(self, desc: MetricDesc, text: Optional[str], *labels: str) -> None:
        """Add a numeric field; empty text adds nothing."""
        self._convert(parse_float, desc, text, labels)

    def add_megabytes(self, desc: MetricDesc, text: Optional[str], *labels: str) -> None:
        self._convert(parse_megabytes, desc, text, labels)

    def add_speed(self, desc: MetricDesc, text: Optional[str], *labels: str) -> None:
        self._convert(parse_speed, desc, text, labels)

    def add_state(self, desc: MetricDesc, text: Optional[str], healthy: str, *labels: str) -> None:
        """Add 1 when text matches the healthy value, 0 otherwise. Always emits."""
        self.add(desc, state_value(text, healthy), *labels)

    def _convert(self, parser, desc: MetricDesc, text: Optional[str], labels) -> None:
        try:
            value = parser(text)
        except ValueError as e:
            self.logger.error(f"could not convert metric to float64: {desc.name}: {e}")
            return
        if value is not None:
            self.add(desc, value, *labels)
