"""FPC (line card) collector."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import find_all, text
from .base import BaseCollector

SUBSYSTEM = "fpc"

LABELS = ["slot"]
CPU_LABELS = LABELS + ["timespan"]

STATE = gauge(SUBSYSTEM, "state", "State (0 = Offline, 1 = Online, 2 = Empty, 3 = Other).", LABELS)
TEMPERATURE = gauge(SUBSYSTEM, "temperature_celsius", "Temperature in Celsius", LABELS)
CPU_TOTAL = gauge(SUBSYSTEM, "cpu_total", "Total CPU utilization.", LABELS)
CPU_INTERRUPT = gauge(SUBSYSTEM, "cpu_interrupt", "CPU Interrupt utilization.", LABELS)
CPU_AVG = gauge(SUBSYSTEM, "cpu_avg", "Average CPU utilization across timespan.", CPU_LABELS)
MEMORY_DRAM_SIZE = gauge(SUBSYSTEM, "memory_dram_size", "Memory DRAM Size.", LABELS)
MEMORY_HEAP = gauge(SUBSYSTEM, "memory_heap_utilization", "Memory heap utilization.", LABELS)
MEMORY_BUFFER = gauge(SUBSYSTEM, "memory_buffer_utilization", "Memory buffer utilization.", LABELS)

STATE_VALUES = {"offline": 0.0, "online": 1.0, "empty": 2.0}
OTHER_STATE = 3.0

CPU_AVERAGES = [
    ("cpu-1min-avg", "1m"),
    ("cpu-5min-avg", "5m"),
    ("cpu-15min-avg", "15m"),
]


class FPCCollector(BaseCollector):
    """Collect state, CPU and memory of each FPC slot."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-fpc-information/>")
        for fpc in find_all(reply, ".//fpc-information/fpc"):
            slot = text(fpc, "slot")
            state = STATE_VALUES.get(text(fpc, "state").lower(), OTHER_STATE)

            # Offline and empty slots report no utilization
            if state == 1.0:
                batch.add_text(TEMPERATURE, text(fpc, "temperature"), slot)
                batch.add_text(CPU_TOTAL, text(fpc, "cpu-total"), slot)
                batch.add_text(CPU_INTERRUPT, text(fpc, "cpu-interrupt"), slot)
                for tag, timespan in CPU_AVERAGES:
                    batch.add_text(CPU_AVG, text(fpc, tag), slot, timespan)
                batch.add_text(MEMORY_DRAM_SIZE, text(fpc, "memory-dram-size"), slot)
                batch.add_text(MEMORY_HEAP, text(fpc, "memory-heap-utilization"), slot)
                batch.add_text(MEMORY_BUFFER, text(fpc, "memory-buffer-utilization"), slot)

            batch.add(STATE, state, slot)
