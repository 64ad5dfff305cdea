"""BGP collector: per routing instance summaries and per peer state."""

import json
from dataclasses import dataclass
from typing import Dict, List, Set
from xml.sax.saxutils import escape

from lxml import etree

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import counter, gauge
from ..utils.xml_reply import attr, find_all, first_text, text
from .base import BaseCollector

SUBSYSTEM = "bgp"

RIB_LABELS = ["routing_instance"]
PEER_LABELS = ["peer", "interface", "peer_address_family", "routing_instance"]
PEER_TYPE_LABELS = ["type"]

# Instances Junos creates internally; polling them is not useful
RESERVED_INSTANCE_MARKERS = ("__master", "__juniper", "mgmt_junos")

GROUPS = gauge(SUBSYSTEM, "groups", "Number of Configured Groups.", RIB_LABELS)
PEERS = gauge(SUBSYSTEM, "peers", "Number of Configured Peers.", RIB_LABELS)
DOWN_PEERS = gauge(SUBSYSTEM, "down_peers", "Number of Peers that are Down.", RIB_LABELS)

RIB_TOTALS = [
    ("total-prefix-count", gauge(SUBSYSTEM, "rib_total_prefixes",
                                 "Total Number of Prefixes in the RIB.", RIB_LABELS)),
    ("history-prefix-count", gauge(SUBSYSTEM, "rib_history_prefixes",
                                   "History Prefix Count in the RIB.", RIB_LABELS)),
    ("damped-prefix-count", gauge(SUBSYSTEM, "rib_damped_prefixes",
                                  "Number of Dampened Prefixes in the RIB.", RIB_LABELS)),
    ("total-external-prefix-count", gauge(SUBSYSTEM, "rib_total_external_prefixes",
                                          "Total Number of External Prefixes in the RIB.", RIB_LABELS)),
    ("active-external-prefix-count", gauge(SUBSYSTEM, "rib_active_external_prefixes",
                                           "Number of Active External Prefixes in the RIB.", RIB_LABELS)),
    ("accepted-external-prefix-count", gauge(SUBSYSTEM, "rib_accepted_external_prefixes",
                                             "Number of Accepted External Prefixes in the RIB.", RIB_LABELS)),
    ("suppressed-external-prefix-count", gauge(SUBSYSTEM, "rib_suppressed_external_prefixes",
                                               "Number of Suppressed External Prefixes in the RIB.", RIB_LABELS)),
    ("total-internal-prefix-count", gauge(SUBSYSTEM, "rib_total_internal_prefixes",
                                          "Total Number of Internal Prefixes in the RIB.", RIB_LABELS)),
    ("active-internal-prefix-count", gauge(SUBSYSTEM, "rib_active_internal_prefixes",
                                           "Number of Active Internal Prefixes in the RIB.", RIB_LABELS)),
    ("accepted-internal-prefix-count", gauge(SUBSYSTEM, "rib_accepted_internal_prefixes",
                                             "Number of Accepted Internal Prefixes in the RIB.", RIB_LABELS)),
    ("suppressed-internal-prefix-count", gauge(SUBSYSTEM, "rib_suppressed_internal_prefixes",
                                               "Number of Suppressed Internal Prefixes in the RIB.", RIB_LABELS)),
    ("pending-prefix-count", gauge(SUBSYSTEM, "rib_pending_prefixes",
                                   "Number of Pending Prefixes in the RIB.", RIB_LABELS)),
]

PEER_UP = gauge(SUBSYSTEM, "peer_up", "State of the Peer. (1 = Established, 0 = Down).", PEER_LABELS)
PEER_INPUT_MESSAGES = counter(SUBSYSTEM, "peer_input_messages", "Number of Input Messages for a Peer.",
                              PEER_LABELS)
PEER_OUTPUT_MESSAGES = counter(SUBSYSTEM, "peer_output_messages", "Number of Output Messages for a Peer.",
                               PEER_LABELS)
PEER_FLAPS = counter(SUBSYSTEM, "peer_flaps", "Number of Time the Peer has Flapped.", PEER_LABELS)
PEER_ROUTE_QUEUE = gauge(SUBSYSTEM, "peer_route_queue", "Number of Route Queues for a Peer.", PEER_LABELS)
PEER_ELAPSED_TIME = gauge(SUBSYSTEM, "peer_elapsed_time_seconds", "Length of Time the Peer has Been Up.",
                          PEER_LABELS)

PEER_RIB_ADVERTISED = gauge(SUBSYSTEM, "peer_rib_advertised_prefixes",
                            "Number of Advertised Prefixes for the Peer.", PEER_LABELS)

PEER_RIB = [
    ("active-prefix-count", gauge(SUBSYSTEM, "peer_rib_active_prefixes",
                                  "Number of Active Prefixes for the Peer.", PEER_LABELS)),
    ("received-prefix-count", gauge(SUBSYSTEM, "peer_rib_received_prefixes",
                                    "Number of Received Prefixes for the Peer.", PEER_LABELS)),
    ("accepted-prefix-count", gauge(SUBSYSTEM, "peer_rib_accepted_prefixes",
                                    "Number of Accepted Prefixes for the Peer.", PEER_LABELS)),
    ("suppressed-prefix-count", gauge(SUBSYSTEM, "peer_rib_suppressed_prefixes",
                                      "Number of Suppressed Prefixes for the Peer.", PEER_LABELS)),
    ("advertised-prefix-count", PEER_RIB_ADVERTISED),
]

PEER_TYPES_UP = gauge(SUBSYSTEM, "peer_types_up", "Total Number of Peer Types that are Up.", PEER_TYPE_LABELS)


# <peer-address> on Junos 17 and 18, <bgp-peer-header><peer-address> from Junos 19
PEER_ADDRESS_PATHS = ("peer-address", "bgp-peer-header/peer-address")


def peer_address(peer: etree._Element) -> str:
    """First populated peer address variant, without the "+port" suffix."""
    return first_text(peer, PEER_ADDRESS_PATHS).split("+")[0]


@dataclass
class RoutingInstances:
    """Routing instances and the RIBs that belong to them."""

    names: List[str]
    rib_to_instance: Dict[str, str]

    @classmethod
    def from_reply(cls, reply: etree._Element) -> "RoutingInstances":
        names = []
        rib_to_instance = {}
        for core in find_all(reply, ".//instance-information/instance-core"):
            instance = text(core, "instance-name")
            names.append(instance)
            for rib in find_all(core, "instance-rib"):
                rib_to_instance[text(rib, "irib-name")] = instance
        return cls(names=names, rib_to_instance=rib_to_instance)

    def pollable(self) -> List[str]:
        """Sorted user-defined instance names."""
        return sorted({
            name for name in self.names
            if name and not any(marker in name for marker in RESERVED_INSTANCE_MARKERS)
        })


def peer_types(description: str, type_keys) -> List[str]:
    """
    Extract peer type values from a JSON peer description.

    Args:
        description: Free text description of the peer
        type_keys: Keys whose values name the peer type

    Returns:
        List[str]: Non-empty type values found, in key order
    """
    if not type_keys or not description:
        return []
    try:
        data = json.loads(description)
    except ValueError:
        return []
    if not isinstance(data, dict):
        return []
    types = []
    for key in type_keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            types.append(str(value).strip())
    return types


def instance_summary_rpc(instance: str) -> str:
    return (
        "<get-bgp-summary-information><instance>"
        f"{escape(instance)}"
        "</instance></get-bgp-summary-information>"
    )


class BGPCollector(BaseCollector):
    """
    Collect BGP state.

    RPCs run in a fixed order: global summary, neighbors, routing instances,
    then one summary per user-defined routing instance. The first failing RPC
    ends the run.
    """

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        # Parsed so a malformed reply is reported; its counters belong to reserved instances
        await self._rpc(session, "<get-bgp-summary-information/>")
        neighbors = await self._rpc(session, "<get-bgp-neighbor-information/>")
        instances = RoutingInstances.from_reply(
            await self._rpc(session, "<get-instance-information/>")
        )

        summaries = {}
        for instance in instances.pollable():
            summaries[instance] = await self._rpc(session, instance_summary_rpc(instance))

        self._add_instance_summaries(batch, summaries, instances)
        self._add_peers(batch, neighbors, config.bgp_peer_type_keys)

    def _add_instance_summaries(self, batch: SampleBatch, summaries: Dict[str, etree._Element],
                                instances: RoutingInstances) -> None:
        emitted: Set[str] = set()
        for instance, reply in summaries.items():
            info = reply.find(".//bgp-information")
            batch.add_text(GROUPS, text(info, "group-count"), instance)
            batch.add_text(PEERS, text(info, "peer-count"), instance)
            batch.add_text(DOWN_PEERS, text(info, "down-peer-count"), instance)

            for rib in find_all(info, "bgp-rib"):
                if instance in emitted or instances.rib_to_instance.get(text(rib, "name")) != instance:
                    continue
                emitted.add(instance)
                for tag, desc in RIB_TOTALS:
                    batch.add_text(desc, text(rib, tag), instance)

    def _add_peers(self, batch: SampleBatch, neighbors: etree._Element, type_keys) -> None:
        peers = find_all(neighbors, ".//bgp-information/bgp-peer")

        interfaces = {}
        for peer in peers:
            address = peer_address(peer)
            if address:
                interfaces[address] = text(peer, "local-interface-name")

        types_up: Dict[str, float] = {}
        for peer in peers:
            address = peer_address(peer)
            labels = (
                address,
                interfaces.get(address, ""),
                text(peer, "nlri-type-peer"),
                text(peer, "peer-cfg-rti"),
            )

            established = text(peer, "peer-state").lower() == "established"
            for peer_type in peer_types(text(peer, "description"), type_keys):
                types_up.setdefault(peer_type, 0.0)
                if established:
                    types_up[peer_type] += 1

            batch.add(PEER_UP, 1.0 if established else 0.0, *labels)
            batch.add_text(PEER_INPUT_MESSAGES, text(peer, "input-messages"), *labels)
            batch.add_text(PEER_OUTPUT_MESSAGES, text(peer, "output-messages"), *labels)
            batch.add_text(PEER_ROUTE_QUEUE, text(peer, "route-queue-count"), *labels)
            batch.add_text(PEER_FLAPS, text(peer, "flap-count"), *labels)
            batch.add_text(PEER_ELAPSED_TIME, attr(peer, "elapsed-time", "seconds"), *labels)

            rib = peer.find("bgp-rib")
            for tag, desc in PEER_RIB:
                # Advertised prefixes are reported for addressed peers only
                if desc is PEER_RIB_ADVERTISED and not address:
                    continue
                batch.add_text(desc, text(rib, tag), *labels)

        for peer_type, count in sorted(types_up.items()):
            batch.add(PEER_TYPES_UP, count, peer_type)
