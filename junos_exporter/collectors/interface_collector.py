"""Interface collector: physical and logical interface statistics."""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from lxml import etree

from ..config.models import TargetConfig
from ..utils.conversion import SampleBatch
from ..utils.metrics import NAMESPACE, MetricDesc, counter, gauge, metric_key_name, sanitize_name
from ..utils.xml_reply import attr, exists, find_all, text
from .base import BaseCollector

SUBSYSTEM = "interface"

LABELS = ["interface"]
CLASS_LABELS = ["interface", "class"]


def _counters(pairs: List[Tuple[str, str, str]], labels: List[str] = LABELS) -> List[Tuple[str, MetricDesc]]:
    return [(tag, counter(SUBSYSTEM, name, doc, labels)) for tag, name, doc in pairs]


UP = gauge(SUBSYSTEM, "up", "Interface operational status (1 = up, 0 = down).", LABELS)
SPEED = gauge(SUBSYSTEM, "speed_bytes", "Interface speed in bytes per second.", LABELS)
SNMP_INDEX = gauge(SUBSYSTEM, "snmp_index", "SNMP index of the interface.", LABELS)
FLAPPED = counter(SUBSYSTEM, "interface_flapped_seconds", "Seconds since the interface last flapped.", LABELS)

TRAFFIC = [
    ("input-bytes", counter(SUBSYSTEM, "input_bytes", "Number of input bytes.", LABELS)),
    ("output-bytes", counter(SUBSYSTEM, "output_bytes", "Number of output bytes.", LABELS)),
    ("input-packets", counter(SUBSYSTEM, "input_packets", "Number of input packets.", LABELS)),
    ("output-packets", counter(SUBSYSTEM, "output_packets", "Number of output packets.", LABELS)),
    ("input-bps", gauge(SUBSYSTEM, "input_bps", "Input bits per second.", LABELS)),
    ("output-bps", gauge(SUBSYSTEM, "output_bps", "Output bits per second.", LABELS)),
    ("input-pps", gauge(SUBSYSTEM, "input_pps", "Input packets per second.", LABELS)),
    ("output-pps", gauge(SUBSYSTEM, "output_pps", "Output packets per second.", LABELS)),
]

IPV6_TRAFFIC = _counters([
    ("input-bytes", "ipv6_input_bytes", "Number of IPv6 input bytes."),
    ("output-bytes", "ipv6_output_bytes", "Number of IPv6 output bytes."),
    ("input-packets", "ipv6_input_packets", "Number of IPv6 input packets."),
    ("output-packets", "ipv6_output_packets", "Number of IPv6 output packets."),
])

INPUT_ERRORS = _counters([
    ("input-errors", "input_errors", "Number of input errors."),
    ("input-drops", "input_drops", "Number of input drops."),
    ("framing-errors", "framing_errors", "Number of framing errors."),
    ("input-runts", "input_runts", "Number of input runts."),
    ("input-giants", "input_giants", "Number of input giants."),
    ("input-discards", "input_discards", "Number of input discards."),
    ("input-resource-errors", "input_resource_errors", "Number of input resource errors."),
    ("input-l3-incompletes", "input_l3_incompletes", "Number of input L3 incompletes."),
    ("input-l2-channel-errors", "input_l2_channel_errors", "Number of input L2 channel errors."),
    ("input-l2-mismatch-timeouts", "input_l2_mismatch_timeouts", "Number of input L2 mismatch timeouts."),
    ("input-fifo-errors", "input_fifo_errors", "Number of input FIFO errors."),
])

OUTPUT_ERRORS = _counters([
    ("carrier-transitions", "carrier_transitions", "Number of carrier transitions."),
    ("output-errors", "output_errors", "Number of output errors."),
    ("output-drops", "output_drops", "Number of output drops."),
    ("mtu-errors", "mtu_errors", "Number of MTU errors."),
    ("output-resource-errors", "output_resource_errors", "Number of output resource errors."),
    ("output-collisions", "output_collisions", "Number of output collisions."),
    ("aged-packets", "aged_packets", "Number of aged packets."),
    ("hs-link-crc-errors", "hslink_crc_errors", "Number of HS link CRC errors."),
    ("output-fifo-errors", "output_fifo_errors", "Number of output FIFO errors."),
])

STP = _counters([
    ("stp-input-bytes-dropped", "stp_input_bytes_dropped", "Number of input bytes dropped by STP."),
    ("stp-output-bytes-dropped", "stp_output_bytes_dropped", "Number of output bytes dropped by STP."),
    ("stp-input-packets-dropped", "stp_input_packets_dropped", "Number of input packets dropped by STP."),
    ("stp-output-packets-dropped", "stp_output_packets_dropped", "Number of output packets dropped by STP."),
])

PCS = _counters([
    ("bit-error-seconds", "pcs_bit_error_seconds", "Number of PCS bit error seconds."),
    ("errored-blocks-seconds", "pcs_errored_blocks_seconds", "Number of PCS errored blocks seconds."),
])

MAC = _counters([
    ("input-bytes", "mac_input_bytes", "Number of MAC input bytes."),
    ("output-bytes", "mac_output_bytes", "Number of MAC output bytes."),
    ("input-packets", "mac_input_packets", "Number of MAC input packets."),
    ("output-packets", "mac_output_packets", "Number of MAC output packets."),
    ("input-unicasts", "mac_input_unicasts", "Number of MAC input unicasts."),
    ("output-unicasts", "mac_output_unicasts", "Number of MAC output unicasts."),
    ("input-broadcasts", "mac_input_broadcasts", "Number of MAC input broadcasts."),
    ("output-broadcasts", "mac_output_broadcasts", "Number of MAC output broadcasts."),
    ("input-multicasts", "mac_input_multicasts", "Number of MAC input multicasts."),
    ("output-multicasts", "mac_output_multicasts", "Number of MAC output multicasts."),
    ("input-crc-errors", "mac_input_crc_errors", "Number of MAC input CRC errors."),
    ("output-crc-errors", "mac_output_crc_errors", "Number of MAC output CRC errors."),
    ("input-fifo-errors", "mac_input_fifo_errors", "Number of MAC input FIFO errors."),
    ("output-fifo-errors", "mac_output_fifo_errors", "Number of MAC output FIFO errors."),
    ("input-mac-control-frames", "mac_input_control_frames", "Number of MAC input control frames."),
    ("output-mac-control-frames", "mac_output_control_frames", "Number of MAC output control frames."),
    ("input-mac-pause-frames", "mac_input_pause_frames", "Number of MAC input pause frames."),
    ("output-mac-pause-frames", "mac_output_pause_frames", "Number of MAC output pause frames."),
    ("input-oversized-frames", "mac_input_oversized_frames", "Number of MAC input oversized frames."),
    ("input-jabber-frames", "mac_input_jabber_frames", "Number of MAC input jabber frames."),
    ("input-fragment-frames", "mac_input_fragment_frames", "Number of MAC input fragment frames."),
    ("input-vlan-tagged-frames", "mac_input_vlan_tagged_frames", "Number of MAC input VLAN tagged frames."),
    ("input-code-violations", "mac_input_code_violations", "Number of MAC input code violations."),
    ("input-total-errors", "mac_input_errors", "Number of MAC input errors."),
    ("output-total-errors", "mac_output_errors", "Number of MAC output errors."),
])

FILTER = _counters([
    ("input-packets", "filtered_input_packets", "Number of filtered input packets."),
    ("input-reject-count", "filtered_input_rejects", "Number of filtered input rejects."),
    ("input-reject-destination-address-count", "filtered_input_destination_address_rejects",
     "Number of filtered input destination address rejects."),
    ("input-reject-source-address-count", "filtered_input_source_address_rejects",
     "Number of filtered input source address rejects."),
    ("output-packets", "filtered_output_packets", "Number of filtered output packets."),
    ("output-packet-pad-count", "filtered_output_packet_pads", "Number of filtered output packet pads."),
    ("output-packet-error-count", "filtered_output_packet_errors", "Number of filtered output packet errors."),
    ("cam-destination-filter-count", "filtered_cam_destinations", "Number of filtered CAM destinations."),
    ("cam-source-filter-count", "filtered_cam_sources", "Number of filtered CAM sources."),
])

PRECL = _counters([
    ("precl-rx-packets", "precl_input_packets", "Number of preclassifier input packets per class."),
    ("precl-tx-packets", "precl_output_packets", "Number of preclassifier output packets per class."),
    ("precl-dropped-packets", "precl_dropped_packets", "Number of preclassifier dropped packets per class."),
], CLASS_LABELS)

FEC = _counters([
    ("fec_ccw_count", "fec_ccw", "Number of FEC corrected codewords."),
    ("fec_nccw_count", "fec_nccw", "Number of FEC uncorrected codewords."),
    ("fec_ccw_error_rate", "fec_ccw_error_rate", "FEC corrected codeword error rate."),
    ("fec_nccw_error_rate", "fec_nccw_error_rate", "FEC uncorrected codeword error rate."),
])

MACSEC = _counters([
    ("macsec-tx-sc-protected", "macsec_output_protected_packets", "Number of MACsec protected output packets."),
    ("macsec-tx-sc-encrypted", "macsec_output_encrypted_packets", "Number of MACsec encrypted output packets."),
    ("macsec-tx-sc-protectedbytes", "macsec_output_protected_bytes", "Number of MACsec protected output bytes."),
    ("macsec-tx-sc-encryptedbytes", "macsec_output_encrypted_bytes", "Number of MACsec encrypted output bytes."),
    ("macsec-rx-sc-ok", "macsec_input_accepted", "Number of MACsec accepted input packets."),
    ("macsec-rx-sc-validatedbytes", "macsec_input_validated_bytes", "Number of MACsec validated input bytes."),
    ("macsec-rx-sc-decryptedbytes", "macsec_input_decrypted_bytes", "Number of MACsec decrypted input bytes."),
])

MULTILINK = _counters([
    ("oversized-frames", "multilink_oversized_frames", "Number of multilink oversized frames."),
    ("input-error-frames", "multilink_input_error_frames", "Number of multilink input error frames."),
    ("input-disabled-bundle", "multilink_input_disabled_bundle", "Number of multilink input disabled bundle."),
    ("output-disabled-bundle", "multilink_output_disabled_bundle", "Number of multilink output disabled bundle."),
    ("queuing-drops", "multilink_queuing_drops", "Number of multilink queuing drops."),
    ("packet-buffer-overflow", "multilink_packet_buffer_overflows", "Number of multilink packet buffer overflows."),
    ("fragment-buffer-overflow", "multilink_fragment_buffer_overflows",
     "Number of multilink fragment buffer overflows."),
    ("fragment-timeout", "multilink_fragment_timeouts", "Number of multilink fragment timeouts."),
    ("sequence-number-missing", "multilink_sequence_number_missing",
     "Number of multilink sequence numbers missing."),
    ("out-of-order-sequence-number", "multilink_out_of_order_sequence_number",
     "Number of multilink out of order sequence numbers."),
    ("out-of-range-sequence-number", "multilink_out_of_range_sequence_number",
     "Number of multilink out of range sequence numbers."),
    ("data-memory-error", "multilink_data_memory_errors", "Number of multilink data memory errors."),
    ("control-memory-error", "multilink_control_memory_errors", "Number of multilink control memory errors."),
])

# Counter names follow the tag except for two abbreviations
FLOW_ERROR_RENAMES = {
    "flow-error-security-association-missing": "flow_error_sa_missing",
    "flow-error-user-authentication": "flow_error_user_auth",
}

FLOW_ERROR_TAGS = [
    "flow-error-address-spoofing",
    "flow-error-authentication-failed",
    "flow-error-incoming-nat",
    "flow-error-invalid-zone",
    "flow-error-multiple-auth",
    "flow-error-multiple-incoming-nat",
    "flow-error-no-gate-parent",
    "flow-error-no-interest-self-packet",
    "flow-error-no-minor-session",
    "flow-error-no-more-session",
    "flow-error-no-nat-gate",
    "flow-error-no-route-present",
    "flow-error-no-sa-for-spi",
    "flow-error-no-tunnel",
    "flow-error-no-session-gate",
    "flow-error-null-zone",
    "flow-error-policy-denied",
    "flow-error-security-association-missing",
    "flow-error-seq-outside-window",
    "flow-error-syn-protection",
    "flow-error-user-authentication",
]

FLOW_ERRORS = _counters([
    (tag, FLOW_ERROR_RENAMES.get(tag, tag.replace("-", "_")),
     "Number of flow errors: " + tag[len("flow-error-"):].replace("-", " ") + ".")
    for tag in FLOW_ERROR_TAGS
])

FLOW_INPUT = _counters([
    ("flow-input-self-packets", "flow_input_self_packets", "Number of flow input self packets."),
    ("flow-input-icmp-packets", "flow_input_icmp_packets", "Number of flow input ICMP packets."),
    ("flow-input-vpn-packets", "flow_input_vpn_packets", "Number of flow input VPN packets."),
    ("flow-input-multicast-packets", "flow_input_multicast_packets", "Number of flow input multicast packets."),
    ("flow-input-policy-bytes", "flow_input_policy_bytes", "Number of flow input policy bytes."),
    ("flow-input-connections", "flow_input_connections", "Number of flow input connections."),
])

FLOW_OUTPUT = _counters([
    ("flow-output-multicast-packets", "flow_output_multicast_packets", "Number of flow output multicast packets."),
    ("flow-output-policy-bytes", "flow_output_policy_bytes", "Number of flow output policy bytes."),
])

# Statistics blocks of a physical interface, emitted with the interface label only
PHYSICAL_SECTIONS = [
    ("input-error-list", INPUT_ERRORS),
    ("output-error-list", OUTPUT_ERRORS),
    ("stp-traffic-statistics", STP),
    ("ethernet-pcs-statistics", PCS),
    ("ethernet-mac-statistics", MAC),
    ("ethernet-filter-statistics", FILTER),
    ("ethernet-fec-statistics", FEC),
    ("macsec-statistics", MACSEC),
    ("multilink-interface-errors", MULTILINK),
]

LOGICAL_SECTIONS = [
    ("security-error-flow-statistics", FLOW_ERRORS),
    ("security-input-flow-statistics", FLOW_INPUT),
    ("security-output-flow-statistics", FLOW_OUTPUT),
]


def parse_description(description: str) -> Dict[str, object]:
    """
    Decode the JSON object embedded in an interface description.

    Junos OS Evolved escapes the quotes inside the description, so escaped
    quotes are unescaped before decoding. Anything that is not a JSON object
    yields an empty dict.
    """
    if not description:
        return {}
    try:
        data = json.loads(description.replace('\\"', '"'))
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def description_desc(keys) -> MetricDesc:
    return counter(
        SUBSYSTEM, "description", "Interface description keys",
        LABELS + [sanitize_name(key) for key in keys],
    )


def metric_key_desc(key: str) -> MetricDesc:
    return counter(SUBSYSTEM, metric_key_name(key), "User-defined Metric from Description Key", LABELS)


def builtin_metric_names() -> Set[str]:
    """Names of the metrics this collector always declares, without the "junos_interface_" prefix."""
    descs = [UP, SPEED, SNMP_INDEX, FLAPPED, description_desc([])]
    tables = [TRAFFIC, IPV6_TRAFFIC, PRECL] + [fields for _, fields in PHYSICAL_SECTIONS + LOGICAL_SECTIONS]
    for fields in tables:
        descs.extend(desc for _, desc in fields)
    prefix = f"{NAMESPACE}_{SUBSYSTEM}_"
    return {desc.name[len(prefix):] for desc in descs}


@dataclass
class TrafficSource:
    """Traffic statistics of a logical interface, LAG bundle view preferred."""

    lag_bundle: Optional[etree._Element]
    transit: Optional[etree._Element]

    @classmethod
    def from_element(cls, logical: etree._Element) -> "TrafficSource":
        return cls(
            lag_bundle=logical.find("lag-traffic-statistics/lag-bundle"),
            transit=logical.find("transit-traffic-statistics"),
        )

    def resolve(self) -> Optional[etree._Element]:
        if text(self.lag_bundle, "input-bps"):
            return self.lag_bundle
        return self.transit


def unique_class_names(names: List[str]) -> List[str]:
    """Suffix repeated traffic class names with their occurrence index: a, a_1, a_2."""
    seen: Dict[str, int] = {}
    unique = []
    for name in names:
        if name in seen:
            seen[name] += 1
            unique.append(f"{name}_{seen[name]}")
        else:
            seen[name] = 0
            unique.append(name)
    return unique


class InterfaceCollector(BaseCollector):
    """Collect physical and logical interface statistics from "show interfaces extensive"."""

    name = SUBSYSTEM

    async def collect(self, session, config: TargetConfig, batch: SampleBatch) -> None:
        reply = await self._rpc(
            session, "<get-interface-information><extensive/></get-interface-information>"
        )
        descr_keys = list(config.interface_description_keys)
        metric_keys = list(config.interface_metric_keys)

        for physical in find_all(reply, ".//interface-information/physical-interface"):
            self._add_physical(batch, physical, descr_keys, metric_keys)
            for logical in find_all(physical, "logical-interface"):
                self._add_logical(batch, logical, descr_keys, metric_keys)

    def _add_physical(self, batch: SampleBatch, physical: etree._Element,
                      descr_keys: List[str], metric_keys: List[str]) -> None:
        name = text(physical, "name")

        if text(physical, "admin-status") == "up":
            batch.add(UP, 1.0 if text(physical, "oper-status") == "up" else 0.0, name)
        batch.add_speed(SPEED, text(physical, "speed"), name)

        self._add_description(batch, name, text(physical, "description"), descr_keys, metric_keys)

        batch.add_text(FLAPPED, attr(physical, "interface-flapped", "seconds"), name)
        traffic = physical.find("traffic-statistics")
        self._add_traffic(batch, traffic, name)

        for section, fields in PHYSICAL_SECTIONS:
            self._add_section(batch, physical.find(section), fields, name)
        batch.add_text(SNMP_INDEX, text(physical, "snmp-index"), name)

        per_class = find_all(physical, "precl-statistics/precl-information/precl-per-class-statistics")
        class_names = unique_class_names([text(stats, "precl-traffic-class") for stats in per_class])
        for stats, class_name in zip(per_class, class_names):
            for tag, desc in PRECL:
                batch.add_text(desc, text(stats, tag), name, class_name)

    def _add_logical(self, batch: SampleBatch, logical: etree._Element,
                     descr_keys: List[str], metric_keys: List[str]) -> None:
        name = text(logical, "name")

        batch.add(UP, 1.0 if exists(logical, "if-config-flags/iff-up") else 0.0, name)
        self._add_description(batch, name, text(logical, "description"), descr_keys, metric_keys)
        self._add_traffic(batch, TrafficSource.from_element(logical).resolve(), name)
        for section, fields in LOGICAL_SECTIONS:
            self._add_section(batch, logical.find(section), fields, name)
        batch.add_text(SNMP_INDEX, text(logical, "snmp-index"), name)

    @staticmethod
    def _add_description(batch: SampleBatch, name: str, description: str,
                         descr_keys: List[str], metric_keys: List[str]) -> None:
        values = parse_description(description)
        if descr_keys:
            labels = ["" if values.get(key) is None else str(values[key]) for key in descr_keys]
            batch.add(description_desc(descr_keys), 1.0, name, *labels)
        for key in metric_keys:
            if values.get(key) is not None:
                batch.add_text(metric_key_desc(key), str(values[key]), name)

    @staticmethod
    def _add_traffic(batch: SampleBatch, traffic: Optional[etree._Element], name: str) -> None:
        for tag, desc in TRAFFIC:
            batch.add_text(desc, text(traffic, tag), name)
        ipv6 = traffic.find("ipv6-transit-statistics") if traffic is not None else None
        for tag, desc in IPV6_TRAFFIC:
            batch.add_text(desc, text(ipv6, tag), name)

    @staticmethod
    def _add_section(batch: SampleBatch, section: Optional[etree._Element],
                     fields: List[Tuple[str, MetricDesc]], name: str) -> None:
        if section is None:
            return
        for tag, desc in fields:
            batch.add_text(desc, text(section, tag), name)
