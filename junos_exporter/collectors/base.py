"""Base collector abstract class for all Junos collectors."""

from abc import ABC, abstractmethod
import logging
import threading
import time
from typing import List

from lxml import etree

from ..config.models import TargetConfig
from ..errors import ReplyDecodeError, RpcExecutionError
from ..utils.conversion import SampleBatch
from ..utils.metrics import CollectorOutcome
from ..utils.xml_reply import parse_reply


class BaseCollector(ABC):
    """
    Abstract base class for all collectors.

    A collector instance lives for the whole process and owns a cumulative
    error counter; everything else it produces is scoped to one run.
    """

    name: str = ""

    def __init__(self, logger: logging.Logger):
        """
        Initialize base collector.

        Args:
            logger: Logger instance
        """
        self.logger = logger.getChild(self.__class__.__name__)
        self._error_total = 0.0
        self._error_lock = threading.Lock()

    @property
    def error_total(self) -> float:
        with self._error_lock:
            return self._error_total

    def record_error(self, errors: List[Exception], error: Exception) -> float:
        """
        Append an error to the run's list and bump the cumulative counter.

        Returns:
            float: Cumulative error count after the increment
        """
        errors.append(error)
        with self._error_lock:
            self._error_total += 1
            return self._error_total

    async def get(self, session, config: TargetConfig) -> CollectorOutcome:
        """
        Run the collector once against an open session.

        RPC and reply decoding failures end the run early and are reported in
        the outcome; samples gathered before the failure are kept.

        Args:
            session: Shared session of the current scrape
            config: Target configuration

        Returns:
            CollectorOutcome: Samples, errors and timing of this run
        """
        errors: List[Exception] = []
        batch = SampleBatch(self.logger)
        start = time.perf_counter()
        try:
            await self.collect(session, config, batch)
        except (RpcExecutionError, ReplyDecodeError) as e:
            self.record_error(errors, e)
        return CollectorOutcome(
            collector_name=self.name,
            samples=batch.samples,
            errors=errors,
            error_total=self.error_total,
            duration=time.perf_counter() - start,
        )

    @abstractmethod
    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        """
        Execute RPCs and add samples to the batch.

        Raises:
            RpcExecutionError: If an RPC fails
            ReplyDecodeError: If a reply is not valid XML
        """

    async def _rpc(self, session, rpc_xml: str) -> etree._Element:
        """Execute one RPC on the shared session and return the parsed reply root."""
        self.logger.debug(f"Executing {rpc_xml} on {session.target}")
        raw = await session.execute(rpc_xml)
        return parse_reply(raw)
