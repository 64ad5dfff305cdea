"""Transceiver optics diagnostics collector."""

from typing import List, Tuple

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import MetricDesc, gauge
from ..utils.xml_reply import attr, find_all, text
from .base import BaseCollector

SUBSYSTEM = "optics"

LABELS = ["interface"]
LANE_LABELS = ["interface", "lane"]

# Alarm and warning flags read "off" while the condition is clear
FLAG_CLEAR = "off"


def _declare(tags: List[str], labels: List[str], suffix: str = "") -> List[Tuple[str, MetricDesc]]:
    """Declare one gauge per reply tag, named after the tag."""
    declared = []
    for tag in tags:
        name = tag.replace("-", "_")
        documentation = name.replace("_", " ").title().replace("Dbm", "dBm") + suffix
        declared.append((tag, gauge(SUBSYSTEM, name, documentation, labels)))
    return declared


MODULE_TEMPERATURE = gauge(SUBSYSTEM, "module_temperature", "Module Temperature", LABELS)
MODULE_VOLTAGE = gauge(SUBSYSTEM, "module_voltage", "Module Voltage", LABELS)

MODULE_FLAGS = _declare([
    "module-temperature-high-alarm",
    "module-temperature-low-alarm",
    "module-temperature-high-warn",
    "module-temperature-low-warn",
    "module-voltage-high-alarm",
    "module-voltage-low-alarm",
    "module-voltage-high-warn",
    "module-voltage-low-warn",
], LABELS, " (1 = off, 0 = on)")

# Reported in the celsius attribute
TEMPERATURE_THRESHOLDS = _declare([
    "module-temperature-high-alarm-threshold",
    "module-temperature-low-alarm-threshold",
    "module-temperature-high-warn-threshold",
    "module-temperature-low-warn-threshold",
], LABELS)

THRESHOLDS = _declare([
    "module-voltage-high-alarm-threshold",
    "module-voltage-low-alarm-threshold",
    "module-voltage-high-warn-threshold",
    "module-voltage-low-warn-threshold",
    "laser-bias-current-high-alarm-threshold",
    "laser-bias-current-low-alarm-threshold",
    "laser-bias-current-high-warn-threshold",
    "laser-bias-current-low-warn-threshold",
    "laser-tx-power-high-alarm-threshold",
    "laser-tx-power-high-alarm-threshold-dbm",
    "laser-tx-power-low-alarm-threshold",
    "laser-tx-power-low-alarm-threshold-dbm",
    "laser-tx-power-high-warn-threshold",
    "laser-tx-power-high-warn-threshold-dbm",
    "laser-tx-power-low-warn-threshold",
    "laser-tx-power-low-warn-threshold-dbm",
    "laser-rx-power-high-alarm-threshold",
    "laser-rx-power-high-alarm-threshold-dbm",
    "laser-rx-power-low-alarm-threshold",
    "laser-rx-power-low-alarm-threshold-dbm",
    "laser-rx-power-high-warn-threshold",
    "laser-rx-power-high-warn-threshold-dbm",
    "laser-rx-power-low-warn-threshold",
    "laser-rx-power-low-warn-threshold-dbm",
], LABELS)

LANE_VALUES = _declare([
    "lane-index",
    "laser-bias-current",
    "laser-output-power",
    "laser-output-power-dbm",
    "laser-rx-optical-power",
    "laser-rx-optical-power-dbm",
], LANE_LABELS)

LANE_FLAGS = _declare([
    "laser-bias-current-high-alarm",
    "laser-bias-current-low-alarm",
    "laser-bias-current-high-warn",
    "laser-bias-current-low-warn",
    "laser-rx-power-high-alarm",
    "laser-rx-power-low-alarm",
    "laser-rx-power-high-warn",
    "laser-rx-power-low-warn",
    "tx-loss-of-signal-functionality-alarm",
    "rx-loss-of-signal-alarm",
    "tx-laser-disabled-alarm",
], LANE_LABELS, " (1 = off, 0 = on)")


class OpticsCollector(BaseCollector):
    """Collect module and per-lane optics diagnostics of each transceiver."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-interface-optics-diagnostics-information/>")
        for interface in find_all(reply, ".//interface-information/physical-interface"):
            diagnostics = interface.find("optics-diagnostics")
            if diagnostics is None:
                continue
            name = text(interface, "name")

            batch.add_text(MODULE_TEMPERATURE, attr(diagnostics, "module-temperature", "celsius"), name)
            batch.add_text(MODULE_VOLTAGE, text(diagnostics, "module-voltage"), name)
            for tag, desc in MODULE_FLAGS:
                batch.add_state(desc, text(diagnostics, tag), FLAG_CLEAR, name)
            for tag, desc in TEMPERATURE_THRESHOLDS:
                batch.add_text(desc, attr(diagnostics, tag, "celsius"), name)
            for tag, desc in THRESHOLDS:
                batch.add_text(desc, text(diagnostics, tag), name)

            for lane in find_all(diagnostics, "optics-diagnostics-lane-values"):
                lane_index = text(lane, "lane-index")
                for tag, desc in LANE_VALUES:
                    batch.add_text(desc, text(lane, tag), name, lane_index)
                for tag, desc in LANE_FLAGS:
                    batch.add_state(desc, text(lane, tag), FLAG_CLEAR, name, lane_index)
