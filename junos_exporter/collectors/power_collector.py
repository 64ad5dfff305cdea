"""Power supply and power zone collector."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import find_all, text
from .base import BaseCollector

SUBSYSTEM = "power"

MODULE_LABELS = ["module"]
MODULE_ZONE_LABELS = ["module", "zone"]
ZONE_LABELS = ["zone"]

MODULE_STATE = gauge(SUBSYSTEM, "module_state", "Module Power State (1 = Online, 0 = Offline).", MODULE_LABELS)
CAPACITY_ACTUAL = gauge(SUBSYSTEM, "module_capacity_actual_watts", "Module Actual Capacity in Watts", MODULE_LABELS)
CAPACITY_MAX = gauge(SUBSYSTEM, "module_capacity_maximum_watts", "Module Maximum Capacity in Watts", MODULE_LABELS)
AC_INPUT_STATE = gauge(SUBSYSTEM, "module_ac_input_state", "Module AC Input State (1 = OK, 0 = Not OK).",
                       MODULE_LABELS)
AC_EXPECTED_FEEDS = gauge(SUBSYSTEM, "module_ac_input_expected_feeds", "Module AC Input Expected Feeds.",
                          MODULE_LABELS)
AC_CONNECTED_FEEDS = gauge(SUBSYSTEM, "module_ac_input_connected_feeds", "Module AC Input Connected Feeds.",
                           MODULE_LABELS)
DC_USAGE = gauge(SUBSYSTEM, "module_dc_usage_watts", "Module DC Usage in Watts.", MODULE_LABELS)

DC_OUTPUT = [
    ("dc-power", gauge(SUBSYSTEM, "module_dc_output_watts", "Module DC Output Watts (Power).",
                       MODULE_ZONE_LABELS)),
    ("dc-current", gauge(SUBSYSTEM, "module_dc_output_amperes", "Module DC Output Amps (Current).",
                         MODULE_ZONE_LABELS)),
    ("dc-voltage", gauge(SUBSYSTEM, "module_dc_output_volts", "Module DC Output Volts (Voltage).",
                         MODULE_ZONE_LABELS)),
    ("dc-load", gauge(SUBSYSTEM, "module_dc_output_load_ratio", "Module DC Output Load as a Percent.",
                      MODULE_ZONE_LABELS)),
]

ZONE_CAPACITY = [
    ("capacity-actual", gauge(SUBSYSTEM, "system_zone_capacity_actual_watts",
                              "System Zone Actual Capacity in Watts", ZONE_LABELS)),
    ("capacity-max", gauge(SUBSYSTEM, "system_zone_capacity_maximum_watts",
                           "System Zone Maximum Capacity in Watts", ZONE_LABELS)),
    ("capacity-allocated", gauge(SUBSYSTEM, "system_zone_allocated_watts",
                                 "System Zone Allocated Capacity in Watts", ZONE_LABELS)),
    ("capacity-remaining", gauge(SUBSYSTEM, "system_zone_remaining_watts",
                                 "System Zone Remaining Capacity in Watts", ZONE_LABELS)),
    ("capacity-actual-usage", gauge(SUBSYSTEM, "system_zone_usage_watts",
                                    "System Zone Usage in Watts", ZONE_LABELS)),
]

SYSTEM_CAPACITY = [
    ("capacity-sys-actual", gauge(SUBSYSTEM, "system_capacity_actual_watts", "System Actual Capacity in Watts")),
    ("capacity-sys-max", gauge(SUBSYSTEM, "system_capacity_maximum_watts", "System Maximum Capacity in Watts")),
    ("capacity-sys-remaining", gauge(SUBSYSTEM, "system_remaining_watts", "System Remaining Capacity in Watts")),
]


class PowerCollector(BaseCollector):
    """Collect PEM, power zone and FRU power usage."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-power-usage-information-detail/>")
        info = reply.find(".//power-usage-information")
        if info is None:
            return

        for item in find_all(info, "power-usage-item"):
            module = text(item, "name")
            batch.add_state(MODULE_STATE, text(item, "state"), "Online", module)
            batch.add_text(CAPACITY_ACTUAL, text(item, "pem-capacity-detail/capacity-actual"), module)
            batch.add_text(CAPACITY_MAX, text(item, "pem-capacity-detail/capacity-max"), module)
            batch.add_state(AC_INPUT_STATE, text(item, "ac-input-detail/ac-input"), "OK", module)
            batch.add_text(AC_EXPECTED_FEEDS, text(item, "ac-input-detail/ac-expect-feed"), module)
            batch.add_text(AC_CONNECTED_FEEDS, text(item, "ac-input-detail/ac-actual-feed"), module)

            dc_output = item.find("dc-output-detail")
            zone = text(dc_output, "zone")
            for tag, desc in DC_OUTPUT:
                batch.add_text(desc, text(dc_output, tag), module, zone)

        for system in find_all(info, "power-usage-system"):
            for zone_info in find_all(system, "power-usage-zone-information"):
                zone = text(zone_info, "zone")
                for tag, desc in ZONE_CAPACITY:
                    batch.add_text(desc, text(zone_info, tag), zone)
            for tag, desc in SYSTEM_CAPACITY:
                batch.add_text(desc, text(system, tag))

        for fru in find_all(info, "power-usage-fru-item"):
            batch.add_text(DC_USAGE, text(fru, "dc-power"), text(fru, "name"))
