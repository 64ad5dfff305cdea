"""Route engine collector."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import attr, find_all, text
from .base import BaseCollector

SUBSYSTEM = "route_engine"

LABELS = ["slot"]
CPU_LABELS = LABELS + ["timespan"]

STATE = gauge(SUBSYSTEM, "state", "RE state (1 = OK, 0 = Not OK).", LABELS)
TEMPERATURE = gauge(SUBSYSTEM, "temperature_celsius", "Route engine temperature in degrees celsius.", LABELS)
CPU_TEMPERATURE = gauge(SUBSYSTEM, "cpu_temperature_celsius", "Route engine CPU temperature in degrees celsius.", LABELS)
MEMORY_TOTAL = gauge(SUBSYSTEM, "memory_total_bytes", "Total route engine memory in bytes.", LABELS)
MEMORY_USED = gauge(SUBSYSTEM, "memory_used_bytes", "Used route engine memory in bytes.", LABELS)
MEMORY_BUFFER = gauge(SUBSYSTEM, "memory_buffer_utilization_percent", "Memory buffer utilization as a percent.", LABELS)
MEMORY_DRAM = gauge(SUBSYSTEM, "memory_dram_size_bytes", "Memory DRAM size in bytes.", LABELS)
MEMORY_INSTALLED = gauge(SUBSYSTEM, "memory_installed_size_bytes", "Memory installed size in bytes.", LABELS)
CPU_USER = gauge(SUBSYSTEM, "cpu_user_percent", "User CPU utilization as a percent.", CPU_LABELS)
CPU_BACKGROUND = gauge(SUBSYSTEM, "cpu_background_percent", "Background CPU utilization as a percent.", CPU_LABELS)
CPU_SYSTEM = gauge(SUBSYSTEM, "cpu_system_percent", "System CPU utilization as a percent.", CPU_LABELS)
CPU_INTERRUPT = gauge(SUBSYSTEM, "cpu_interrupt_percent", "Interrupt CPU utilization as a percent.", CPU_LABELS)
CPU_IDLE = gauge(SUBSYSTEM, "cpu_idle_percent", "Idle CPU utilization as a percent.", CPU_LABELS)
LOAD_AVERAGE = gauge(SUBSYSTEM, "load_average", "LoadAverage.", CPU_LABELS)
UPTIME = gauge(SUBSYSTEM, "uptime_seconds", "Uptime in seconds.", LABELS)
MASTERSHIP_STATE = gauge(SUBSYSTEM, "mastership_state", "Mastership state (1 = Master, 0 = Backup).", LABELS)
MASTERSHIP_PRIORITY = gauge(SUBSYSTEM, "mastership_priority", "Mastership priority (1 = Master, 0 = Backup).", LABELS)

SINGLE_RE_SLOT = "singleRE"

# Tag suffix of each CPU sampling window
TIMESPANS = [("", "5s"), ("1", "1m"), ("2", "5m"), ("3", "15m")]

CPU_FIELDS = [
    ("cpu-user", CPU_USER),
    ("cpu-background", CPU_BACKGROUND),
    ("cpu-system", CPU_SYSTEM),
    ("cpu-interrupt", CPU_INTERRUPT),
    ("cpu-idle", CPU_IDLE),
]

LOAD_AVERAGES = [
    ("load-average-one", "1m"),
    ("load-average-five", "5m"),
    ("load-average-fifteen", "15m"),
]


class RouteEngineCollector(BaseCollector):
    """Collect health, memory and CPU of each routing engine."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-route-engine-information/>")
        for engine in find_all(reply, ".//route-engine-information/route-engine"):
            slot = text(engine, "slot") or SINGLE_RE_SLOT

            batch.add_state(STATE, text(engine, "status"), "ok", slot)
            batch.add_text(TEMPERATURE, attr(engine, "temperature", "celsius"), slot)
            batch.add_text(CPU_TEMPERATURE, attr(engine, "cpu-temperature", "celsius"), slot)
            batch.add_megabytes(MEMORY_TOTAL, text(engine, "memory-system-total"), slot)
            batch.add_megabytes(MEMORY_USED, text(engine, "memory-system-total-used"), slot)
            batch.add_megabytes(MEMORY_DRAM, text(engine, "memory-dram-size"), slot)
            batch.add_megabytes(MEMORY_INSTALLED, text(engine, "memory-installed-size"), slot)
            batch.add_text(MEMORY_BUFFER, text(engine, "memory-buffer-utilization"), slot)

            for suffix, timespan in TIMESPANS:
                for tag, desc in CPU_FIELDS:
                    batch.add_text(desc, text(engine, tag + suffix), slot, timespan)

            for tag, timespan in LOAD_AVERAGES:
                batch.add_text(LOAD_AVERAGE, text(engine, tag), slot, timespan)

            batch.add_text(UPTIME, attr(engine, "up-time", "seconds"), slot)

            mastership = text(engine, "mastership-state")
            batch.add_state(MASTERSHIP_STATE, mastership, "master", slot)
            priority = text(engine, "mastership-priority") or mastership
            batch.add(MASTERSHIP_PRIORITY, 1.0 if "master" in priority.lower() else 0.0, slot)
