"""Tests for OSPFCollector."""

import pytest

from junos_exporter.collectors.ospf_collector import OSPFCollector


OSPF_REPLY = """
<rpc-reply>
  <ospf-neighbor-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-routing">
    <ospf-neighbor>
      <neighbor-address>10.0.0.2</neighbor-address>
      <interface-name>ge-0/0/0.0</interface-name>
      <ospf-neighbor-state>Full</ospf-neighbor-state>
      <neighbor-id>192.0.2.2</neighbor-id>
    </ospf-neighbor>
    <ospf-neighbor>
      <neighbor-address>10.0.1.2</neighbor-address>
      <interface-name>ge-0/0/1.0</interface-name>
      <ospf-neighbor-state>ExStart</ospf-neighbor-state>
      <neighbor-id>192.0.2.3</neighbor-id>
    </ospf-neighbor>
  </ospf-neighbor-information>
</rpc-reply>
"""


@pytest.mark.asyncio
async def test_neighbor_status(logger, fake_session, target_config, metric_values):
    session = fake_session({"get-ospf-neighbor-information": OSPF_REPLY})

    outcome = await OSPFCollector(logger).get(session, target_config)

    assert metric_values(outcome.samples, "junos_ospf_neighbor_status") == {
        ("10.0.0.2", "192.0.2.2", "ge-0/0/0.0"): 1.0,
        ("10.0.1.2", "192.0.2.3", "ge-0/0/1.0"): 0.0,
    }


@pytest.mark.asyncio
async def test_no_neighbors(logger, fake_session, target_config):
    session = fake_session({"get-ospf-neighbor-information": "<rpc-reply><ospf-neighbor-information/></rpc-reply>"})

    outcome = await OSPFCollector(logger).get(session, target_config)

    assert outcome.up
    assert outcome.samples == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
