"""Shared pytest configuration and fixtures."""

import pytest
from collections import defaultdict
from typing import Dict, List, Optional, Tuple, Union

from junos_exporter.config.models import TargetConfig
from junos_exporter.errors import RpcExecutionError
from junos_exporter.utils.logger import setup_logger
from junos_exporter.utils.metrics import MetricSample


class BlockingFakeSession:
    """
    Stands in for a blocking NetconfSession.

    Replies are looked up by a tag that appears in the RPC document, e.g.
    {"get-fpc-information": "<rpc-reply>...</rpc-reply>"}. Unknown RPCs fail
    like a device that does not support them.
    """

    def __init__(self, replies: Optional[Dict[str, Union[str, Exception]]] = None, target: str = "192.0.2.1"):
        self.replies = replies or {}
        self.target = target
        self.calls: List[str] = []
        self.closed = False

    def execute(self, rpc_xml: str) -> str:
        self.calls.append(rpc_xml)
        for key, reply in self.replies.items():
            if key in rpc_xml:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        raise RpcExecutionError(f"unsupported rpc {rpc_xml}")

    def close(self) -> None:
        self.closed = True


class FakeSession(BlockingFakeSession):
    """Stands in for the SharedSession handed to collectors."""

    async def execute(self, rpc_xml: str) -> str:
        return super().execute(rpc_xml)

    async def close(self) -> None:
        super().close()


def values_of(samples: List[MetricSample], name: str) -> Dict[Tuple[str, ...], float]:
    """Map label values to sample value for every sample of one metric."""
    values = {}
    for sample in samples:
        if sample.desc.name == name:
            values[sample.label_values] = sample.value
    return values


def names_of(samples: List[MetricSample]) -> Dict[str, int]:
    """Count samples per metric name."""
    counts = defaultdict(int)
    for sample in samples:
        counts[sample.desc.name] += 1
    return dict(counts)


@pytest.fixture
def logger():
    """Create logger for tests."""
    return setup_logger("test")


@pytest.fixture
def fake_session():
    """Factory building a FakeSession from canned replies."""
    return FakeSession


@pytest.fixture
def metric_values():
    return values_of


@pytest.fixture
def metric_names():
    return names_of


@pytest.fixture
def target_config():
    """Scrape configuration for a single lab device."""
    return TargetConfig(
        target="192.0.2.1",
        host="192.0.2.1",
        username="prometheus",
        password="secret",
        enabled_collectors=("interface", "bgp"),
    )


@pytest.fixture
def blocking_session():
    """Factory building a BlockingFakeSession from canned replies."""
    return BlockingFakeSession
