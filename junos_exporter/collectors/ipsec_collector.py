"""IPsec tunnel status collector."""

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import gauge
from ..utils.xml_reply import find_all, text
from .base import BaseCollector

SUBSYSTEM = "ipsec"

TUNNEL_STATUS_UP = gauge(
    SUBSYSTEM, "tunnel_status_up", "Tunnel Status (1 UP, 0 DOWN)", ["saremotegateway", "satunnelindex"]
)

INACTIVE_BLOCKS = ".//ipsec-unestablished-tunnel-information/ipsec-security-associations-block"
ACTIVE_BLOCKS = ".//ipsec-security-associations-information/ipsec-security-associations-block"


class IPsecCollector(BaseCollector):
    """Report inactive tunnels as down and tunnels with security associations as up."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(session, "<get-inactive-tunnels/>")
        self._add_tunnels(batch, find_all(reply, INACTIVE_BLOCKS), 0.0)

        reply = await self._rpc(session, "<get-security-associations-information/>")
        self._add_tunnels(batch, find_all(reply, ACTIVE_BLOCKS), 1.0)

    @staticmethod
    def _add_tunnels(batch: SampleBatch, blocks, status: float) -> None:
        for block in blocks:
            association = block.find("ipsec-security-associations")
            batch.add(
                TUNNEL_STATUS_UP,
                status,
                text(association, "sa-remote-gateway"),
                text(association, "sa-tunnel-index"),
            )
