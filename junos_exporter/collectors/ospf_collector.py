"""OSPF neighbor collector."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import find_all, text
from .base import BaseCollector

SUBSYSTEM = "ospf"

NEIGHBOR_STATUS = gauge(
    SUBSYSTEM, "neighbor_status", "OSPF Neighbor Status (1 = Full, 0 = any other state)",
    ["neighbor_address", "neighbor_id", "local_interface"],
)


class OSPFCollector(BaseCollector):
    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-ospf-neighbor-information/>")
        for neighbor in find_all(reply, ".//ospf-neighbor-information/ospf-neighbor"):
            batch.add_state(
                NEIGHBOR_STATUS,
                text(neighbor, "ospf-neighbor-state"),
                "Full",
                text(neighbor, "neighbor-address"),
                text(neighbor, "neighbor-id"),
                text(neighbor, "interface-name"),
            )
