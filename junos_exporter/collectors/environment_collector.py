"""Chassis environment collector: module health, temperatures and thresholds."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import attr, find_all, text
from .base import BaseCollector

SUBSYSTEM = "environment"

LABELS = ["module"]

MODULE_STATE = gauge(SUBSYSTEM, "module_state", "Module Environmental State (1 = OK, 0 = Not OK).", LABELS)
MODULE_TEMPERATURE = gauge(SUBSYSTEM, "module_temperature_celsius", "Module Temperature in Celsius", LABELS)

THRESHOLDS = [
    ("fan-normal-speed", gauge(SUBSYSTEM, "module_fan_normal_speed_temperature_celsius",
                               "Fan Normal Speed Temperature Threshold", LABELS)),
    ("fan-high-speed", gauge(SUBSYSTEM, "module_fan_high_speed_temperature_celsius",
                             "Fan High Speed Temperature Threshold", LABELS)),
    ("bad-fan-yellow-alarm", gauge(SUBSYSTEM, "module_bad_fan_yellow_alarm_temperature_celsius",
                                   "Bad Fan Yellow Alarm Temperature Threshold", LABELS)),
    ("bad-fan-red-alarm", gauge(SUBSYSTEM, "module_bad_fan_red_alarm_temperature_celsius",
                                "Bad Fan Red Alarm Temperature Threshold", LABELS)),
    ("yellow-alarm", gauge(SUBSYSTEM, "module_yellow_alarm_temperature_celsius",
                           "Yellow Alarm Temperature Threshold", LABELS)),
    ("red-alarm", gauge(SUBSYSTEM, "module_red_alarm_temperature_celsius",
                        "Red Alarm Temperature Threshold", LABELS)),
    ("fire-shutdown", gauge(SUBSYSTEM, "module_fire_shutdown_temperature_celsius",
                            "Fire Shutdown Temperature Threshold", LABELS)),
]


class EnvironmentCollector(BaseCollector):
    """Collect environment items and their temperature thresholds."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-environment-information/>")
        for item in find_all(reply, ".//environment-information/environment-item"):
            module = text(item, "name")
            batch.add_state(MODULE_STATE, text(item, "status"), "OK", module)
            batch.add_text(MODULE_TEMPERATURE, attr(item, "temperature", "celsius"), module)

        reply = await self._rpc(session, "<get-temperature-threshold-information/>")
        for threshold in find_all(reply, ".//temperature-threshold-information/temperature-threshold"):
            module = text(threshold, "name")
            for tag, desc in THRESHOLDS:
                batch.add_text(desc, text(threshold, tag), module)
