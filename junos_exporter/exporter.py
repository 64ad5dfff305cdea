"""Scrape orchestration: one session per scrape, collectors run concurrently."""

import asyncio
import logging
import platform
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from prometheus_client import REGISTRY, CollectorRegistry, Info, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from .collectors.base import BaseCollector
from .collectors.bgp_collector import BGPCollector
from .collectors.environment_collector import EnvironmentCollector
from .collectors.fpc_collector import FPCCollector
from .collectors.interface_collector import InterfaceCollector
from .collectors.ipsec_collector import IPsecCollector
from .collectors.netconf_session import open_shared_session
from .collectors.optics_collector import OpticsCollector
from .collectors.ospf_collector import OSPFCollector
from .collectors.power_collector import PowerCollector
from .collectors.route_engine_collector import RouteEngineCollector
from .config.models import TargetConfig
from .utils.metrics import CollectorOutcome, MetricKind, MetricSample, counter, gauge
from .version import VERSION

COLLECTOR_CLASSES = [
    InterfaceCollector,
    BGPCollector,
    EnvironmentCollector,
    PowerCollector,
    RouteEngineCollector,
    IPsecCollector,
    OpticsCollector,
    OSPFCollector,
    FPCCollector,
]

COLLECTOR_LABELS = ["collector"]

SCRAPES_TOTAL = counter("", "scrapes_total", "Total number of times Junos has been scraped.")
SCRAPE_ERRORS_TOTAL = gauge("", "scrape_errors_total", "Total number of errors from a collector.",
                            COLLECTOR_LABELS)
SCRAPE_DURATION = gauge("", "scrape_duration_seconds", "Time it took for a collector's scrape to complete.",
                        COLLECTOR_LABELS)
COLLECTOR_UP = gauge("", "collector_up",
                     "Whether the collector's last scrape was successful (1 = successful, 0 = unsuccessful).",
                     COLLECTOR_LABELS)

# Registered with the process-wide registry next to the process and GC metrics
BUILD_INFO = Info(
    "junos_exporter_build",
    "A metric with a constant '1' value labeled by version and pythonversion from which junos_exporter was built.",
)
BUILD_INFO.info({"version": VERSION, "pythonversion": platform.python_version()})


def collector_names() -> List[str]:
    """Names of all collectors the exporter provides."""
    return [cls.name for cls in COLLECTOR_CLASSES]


@dataclass
class ScrapeResult:
    """All samples of one scrape plus the per-collector outcomes they were built from."""

    target: str
    samples: List[MetricSample] = field(default_factory=list)
    outcomes: List[CollectorOutcome] = field(default_factory=list)


class JunosExporter:
    """
    Scrapes Junos devices.

    Collector instances and the scrape counter live as long as the exporter;
    sessions, replies and samples belong to a single scrape.
    """

    def __init__(
        self,
        logger: logging.Logger,
        collectors: Optional[List[BaseCollector]] = None,
        session_factory: Optional[Callable] = None
    ):
        """
        Initialize exporter.

        Args:
            logger: Logger instance
            collectors: Collector instances; defaults to one of each registered collector
            session_factory: Callable (config, logger) -> session, used instead of NETCONF in tests
        """
        self.logger = logger.getChild(self.__class__.__name__)
        self.collectors = collectors if collectors is not None else [cls(logger) for cls in COLLECTOR_CLASSES]
        self.session_factory = session_factory
        self._scrapes_total = 0.0
        self._scrapes_lock = threading.Lock()

    def _count_scrape(self) -> float:
        with self._scrapes_lock:
            self._scrapes_total += 1
            return self._scrapes_total

    def enabled_collectors(self, config: TargetConfig) -> List[BaseCollector]:
        """Collectors enabled for the target, in registration order."""
        known = {collector.name for collector in self.collectors}
        for name in config.enabled_collectors:
            if name not in known:
                self.logger.warning(f'Ignoring unknown collector "{name}"')
        return [c for c in self.collectors if c.name in config.enabled_collectors]

    async def scrape(self, config: TargetConfig) -> ScrapeResult:
        """
        Run all enabled collectors against one device.

        Args:
            config: Target configuration

        Returns:
            ScrapeResult: Collector samples followed by per-collector bookkeeping

        Raises:
            TransportOpenError: If no session could be opened; nothing is collected
        """
        result = ScrapeResult(target=config.target)
        result.samples.append(SCRAPES_TOTAL.sample(self._count_scrape()))

        session = await open_shared_session(config, self.logger, self.session_factory)
        try:
            collectors = self.enabled_collectors(config)
            self.logger.debug(f"Scraping {config.target} with {[c.name for c in collectors]}")
            outcomes = await asyncio.gather(
                *(self._run_collector(c, session, config) for c in collectors)
            )
        finally:
            await session.close()

        for outcome in outcomes:
            result.outcomes.append(outcome)
            result.samples.extend(outcome.samples)
            result.samples.extend(self._bookkeeping(outcome))
        return result

    async def _run_collector(self, collector: BaseCollector, session, config: TargetConfig) -> CollectorOutcome:
        """Run one collector; an unexpected exception fails only that collector."""
        start = time.perf_counter()
        try:
            return await collector.get(session, config)
        except Exception as e:
            self.logger.error(f'collector "{collector.name}" crashed: {e}', exc_info=True)
            errors: List[Exception] = []
            error_total = collector.record_error(errors, e)
            return CollectorOutcome(
                collector_name=collector.name,
                errors=errors,
                error_total=error_total,
                duration=time.perf_counter() - start,
            )

    def _bookkeeping(self, outcome: CollectorOutcome) -> List[MetricSample]:
        name = outcome.collector_name
        for error in outcome.errors:
            self.logger.error(f'collector "{name}" scrape failed: {error}')
        return [
            SCRAPE_ERRORS_TOTAL.sample(outcome.error_total, name),
            COLLECTOR_UP.sample(1.0 if outcome.up else 0.0, name),
            SCRAPE_DURATION.sample(outcome.duration, name),
        ]


class ScrapeCollector:
    """prometheus_client custom collector exposing the samples of a finished scrape."""

    def __init__(self, samples: Iterable[MetricSample]):
        self.samples = list(samples)

    def collect(self):
        families: Dict[str, object] = {}
        for sample in self.samples:
            desc = sample.desc
            family = families.get(desc.name)
            if family is None:
                family_cls = CounterMetricFamily if desc.kind == MetricKind.COUNTER else GaugeMetricFamily
                family = family_cls(desc.name, desc.documentation, labels=list(desc.labels))
                families[desc.name] = family
            family.add_metric(list(sample.label_values), sample.value)
        yield from families.values()


def render(samples: Iterable[MetricSample], registry: CollectorRegistry = REGISTRY) -> bytes:
    """
    Encode a scrape in the Prometheus text exposition format.

    The process-wide registry (process, platform and GC metrics plus build
    info) is rendered first, then the samples of the scrape from a registry
    that lives only for this request.

    Args:
        samples: Samples of one finished scrape
        registry: Long-lived registry exposed with every scrape

    Returns:
        bytes: Exposition text
    """
    scrape_registry = CollectorRegistry(auto_describe=False)
    scrape_registry.register(ScrapeCollector(samples))
    return generate_latest(registry) + generate_latest(scrape_registry)
