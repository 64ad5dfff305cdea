"""Tests for BGPCollector."""

import pytest

from junos_exporter.collectors.bgp_collector import (
    BGPCollector,
    RoutingInstances,
    instance_summary_rpc,
    peer_address,
    peer_types,
)
from junos_exporter.config.models import TargetConfig
from junos_exporter.errors import RpcExecutionError
from junos_exporter.utils.xml_reply import parse_reply


GLOBAL_SUMMARY_REPLY = """
<rpc-reply>
  <bgp-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-routing">
    <group-count>3</group-count>
    <peer-count>4</peer-count>
    <down-peer-count>1</down-peer-count>
  </bgp-information>
</rpc-reply>
"""

NEIGHBOR_REPLY = """
<rpc-reply xmlns:junos="http://xml.juniper.net/junos/21.4R0/junos">
  <bgp-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-routing">
    <bgp-peer junos:style="detail">
      <peer-address>10.0.0.1+179</peer-address>
      <local-interface-name>ge-0/0/0</local-interface-name>
      <peer-state>Established</peer-state>
      <peer-cfg-rti>CUSTOMER-A</peer-cfg-rti>
      <description>{"type": "transit"}</description>
      <nlri-type-peer>inet-unicast</nlri-type-peer>
      <flap-count>2</flap-count>
      <input-messages>1200</input-messages>
      <output-messages>1100</output-messages>
      <route-queue-count>0</route-queue-count>
      <elapsed-time junos:seconds="7200">2:00:00</elapsed-time>
      <bgp-rib>
        <name>CUSTOMER-A.inet.0</name>
        <active-prefix-count>10</active-prefix-count>
        <received-prefix-count>12</received-prefix-count>
        <accepted-prefix-count>11</accepted-prefix-count>
        <suppressed-prefix-count>0</suppressed-prefix-count>
        <advertised-prefix-count>5</advertised-prefix-count>
      </bgp-rib>
    </bgp-peer>
    <bgp-peer>
      <bgp-peer-header>
        <peer-address>2001:db8::2+51234</peer-address>
      </bgp-peer-header>
      <peer-state>Active</peer-state>
      <peer-cfg-rti>master</peer-cfg-rti>
      <description>{"type": "transit"}</description>
      <nlri-type-peer>inet6-unicast</nlri-type-peer>
    </bgp-peer>
    <bgp-peer>
      <peer-address>10.0.0.9</peer-address>
      <peer-state>Established</peer-state>
      <peer-cfg-rti>master</peer-cfg-rti>
      <description>core uplink</description>
    </bgp-peer>
  </bgp-information>
</rpc-reply>
"""

INSTANCE_REPLY = """
<rpc-reply>
  <instance-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-routing">
    <instance-core>
      <instance-name>__master.anon__</instance-name>
      <instance-rib>
        <irib-name>inet.0</irib-name>
      </instance-rib>
    </instance-core>
    <instance-core>
      <instance-name>CUSTOMER-A</instance-name>
      <instance-rib>
        <irib-name>CUSTOMER-A.inet.0</irib-name>
      </instance-rib>
    </instance-core>
    <instance-core>
      <instance-name>mgmt_junos</instance-name>
    </instance-core>
  </instance-information>
</rpc-reply>
"""

CUSTOMER_SUMMARY_REPLY = """
<rpc-reply>
  <bgp-information>
    <group-count>1</group-count>
    <peer-count>1</peer-count>
    <down-peer-count>0</down-peer-count>
    <bgp-rib>
      <name>inet.0</name>
      <total-prefix-count>999</total-prefix-count>
    </bgp-rib>
    <bgp-rib>
      <name>CUSTOMER-A.inet.0</name>
      <total-prefix-count>40</total-prefix-count>
      <active-external-prefix-count>10</active-external-prefix-count>
      <pending-prefix-count>0</pending-prefix-count>
    </bgp-rib>
    <bgp-rib>
      <name>CUSTOMER-A.inet.0</name>
      <total-prefix-count>41</total-prefix-count>
    </bgp-rib>
  </bgp-information>
</rpc-reply>
"""


DOWN_PEER_REPLY = """
<rpc-reply>
  <bgp-information>
    <bgp-peer>
      <peer-address>10.0.0.5</peer-address>
      <peer-state>Active</peer-state>
      <description>{"type": "peering"}</description>
    </bgp-peer>
  </bgp-information>
</rpc-reply>
"""

ADDRESSLESS_PEER_REPLY = """
<rpc-reply>
  <bgp-information>
    <bgp-peer>
      <peer-state>Idle</peer-state>
      <peer-cfg-rti>master</peer-cfg-rti>
      <bgp-rib>
        <received-prefix-count>4</received-prefix-count>
        <advertised-prefix-count>3</advertised-prefix-count>
      </bgp-rib>
    </bgp-peer>
  </bgp-information>
</rpc-reply>
"""


def bgp_replies():
    # The per-instance summary must be matched before the global one
    return {
        "<instance>CUSTOMER-A</instance>": CUSTOMER_SUMMARY_REPLY,
        "get-bgp-summary-information": GLOBAL_SUMMARY_REPLY,
        "get-bgp-neighbor-information": NEIGHBOR_REPLY,
        "get-instance-information": INSTANCE_REPLY,
    }


@pytest.fixture
def bgp_config(target_config):
    return target_config.model_copy(update={"bgp_peer_type_keys": ("type",)})


class TestBGPCollector:
    """Test suite for BGPCollector."""

    @pytest.mark.asyncio
    async def test_rpc_order_skips_reserved_instances(self, logger, fake_session, bgp_config):
        session = fake_session(bgp_replies())

        outcome = await BGPCollector(logger).get(session, bgp_config)

        assert outcome.up
        assert session.calls == [
            "<get-bgp-summary-information/>",
            "<get-bgp-neighbor-information/>",
            "<get-instance-information/>",
            "<get-bgp-summary-information><instance>CUSTOMER-A</instance></get-bgp-summary-information>",
        ]

    @pytest.mark.asyncio
    async def test_peer_labels(self, logger, fake_session, bgp_config, metric_values):
        session = fake_session(bgp_replies())

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_peer_up") == {
            ("10.0.0.1", "ge-0/0/0", "inet-unicast", "CUSTOMER-A"): 1.0,
            ("2001:db8::2", "", "inet6-unicast", "master"): 0.0,
            ("10.0.0.9", "", "", "master"): 1.0,
        }

    @pytest.mark.asyncio
    async def test_peer_counters_and_rib(self, logger, fake_session, bgp_config, metric_values):
        session = fake_session(bgp_replies())
        labels = ("10.0.0.1", "ge-0/0/0", "inet-unicast", "CUSTOMER-A")

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_peer_input_messages") == {labels: 1200.0}
        assert metric_values(samples, "junos_bgp_peer_flaps") == {labels: 2.0}
        assert metric_values(samples, "junos_bgp_peer_elapsed_time_seconds") == {labels: 7200.0}
        assert metric_values(samples, "junos_bgp_peer_rib_received_prefixes") == {labels: 12.0}
        assert metric_values(samples, "junos_bgp_peer_rib_advertised_prefixes") == {labels: 5.0}

    @pytest.mark.asyncio
    async def test_instance_summaries(self, logger, fake_session, bgp_config, metric_values):
        session = fake_session(bgp_replies())

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_groups") == {("CUSTOMER-A",): 1.0}
        assert metric_values(samples, "junos_bgp_down_peers") == {("CUSTOMER-A",): 0.0}
        # Only the first RIB of the instance is reported
        assert metric_values(samples, "junos_bgp_rib_total_prefixes") == {("CUSTOMER-A",): 40.0}
        assert metric_values(samples, "junos_bgp_rib_active_external_prefixes") == {("CUSTOMER-A",): 10.0}

    @pytest.mark.asyncio
    async def test_peer_types_up(self, logger, fake_session, bgp_config, metric_values):
        session = fake_session(bgp_replies())

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_peer_types_up") == {("transit",): 1.0}

    @pytest.mark.asyncio
    async def test_peer_type_of_down_peers_only(self, logger, fake_session, bgp_config, metric_values):
        replies = bgp_replies()
        replies["get-bgp-neighbor-information"] = DOWN_PEER_REPLY
        session = fake_session(replies)

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_peer_types_up") == {("peering",): 0.0}

    @pytest.mark.asyncio
    async def test_advertised_prefixes_need_peer_address(self, logger, fake_session, bgp_config, metric_values):
        replies = bgp_replies()
        replies["get-bgp-neighbor-information"] = ADDRESSLESS_PEER_REPLY
        session = fake_session(replies)

        samples = (await BGPCollector(logger).get(session, bgp_config)).samples

        assert metric_values(samples, "junos_bgp_peer_rib_received_prefixes") == {("", "", "", "master"): 4.0}
        assert metric_values(samples, "junos_bgp_peer_rib_advertised_prefixes") == {}

    @pytest.mark.asyncio
    async def test_no_peer_types_without_keys(self, logger, fake_session, target_config, metric_values):
        session = fake_session(bgp_replies())

        samples = (await BGPCollector(logger).get(session, target_config)).samples

        assert metric_values(samples, "junos_bgp_peer_types_up") == {}

    @pytest.mark.asyncio
    async def test_instance_rpc_failure_stops_run(self, logger, fake_session, bgp_config, metric_values):
        replies = bgp_replies()
        replies["<instance>CUSTOMER-A</instance>"] = RpcExecutionError("timeout")
        session = fake_session(replies)

        outcome = await BGPCollector(logger).get(session, bgp_config)

        assert len(outcome.errors) == 1
        assert "could not execute netconf RPC call" in str(outcome.errors[0])
        assert metric_values(outcome.samples, "junos_bgp_peer_up") == {}

    @pytest.mark.asyncio
    async def test_malformed_neighbor_reply(self, logger, fake_session, bgp_config):
        replies = bgp_replies()
        replies["get-bgp-neighbor-information"] = "<rpc-reply><bgp-information>"
        session = fake_session(replies)

        outcome = await BGPCollector(logger).get(session, bgp_config)

        assert "could not unmarshal netconf reply xml" in str(outcome.errors[0])
        assert len(session.calls) == 2


class TestBGPHelpers:
    """Test suite for BGP reply helpers."""

    def test_peer_address_prefers_direct(self):
        both = parse_reply(
            "<bgp-peer><peer-address>10.0.0.1+179</peer-address>"
            "<bgp-peer-header><peer-address>10.0.0.2</peer-address></bgp-peer-header></bgp-peer>"
        )
        header_only = parse_reply(
            "<bgp-peer><peer-address/>"
            "<bgp-peer-header><peer-address>10.0.0.2+179</peer-address></bgp-peer-header></bgp-peer>"
        )

        assert peer_address(both) == "10.0.0.1"
        assert peer_address(header_only) == "10.0.0.2"
        assert peer_address(parse_reply("<bgp-peer/>")) == ""

    def test_routing_instances(self):
        instances = RoutingInstances.from_reply(parse_reply(INSTANCE_REPLY))

        assert instances.pollable() == ["CUSTOMER-A"]
        assert instances.rib_to_instance["CUSTOMER-A.inet.0"] == "CUSTOMER-A"
        assert instances.rib_to_instance["inet.0"] == "__master.anon__"

    def test_pollable_is_sorted(self):
        instances = RoutingInstances(names=["VRF-B", "__juniper_private1__", "VRF-A", "VRF-B"], rib_to_instance={})
        assert instances.pollable() == ["VRF-A", "VRF-B"]

    def test_instance_name_is_escaped(self):
        assert instance_summary_rpc("A&B") == (
            "<get-bgp-summary-information><instance>A&amp;B</instance></get-bgp-summary-information>"
        )

    @pytest.mark.parametrize("description,expected", [
        ('{"type": "transit", "tier": "1"}', ["transit", "1"]),
        ('{"type": ""}', []),
        ("not json", []),
        ('["transit"]', []),
        ("", []),
    ])
    def test_peer_types(self, description, expected):
        assert peer_types(description, ["type", "tier"]) == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
