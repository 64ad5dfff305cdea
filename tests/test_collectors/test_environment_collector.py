"""Tests for EnvironmentCollector."""

import pytest

from junos_exporter.collectors.environment_collector import EnvironmentCollector
from junos_exporter.errors import RpcExecutionError


ENVIRONMENT_REPLY = """
<rpc-reply xmlns:junos="http://xml.juniper.net/junos/21.4R0/junos">
  <environment-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-chassis">
    <environment-item>
      <name>Routing Engine 0</name>
      <class>Temp</class>
      <status>OK</status>
      <temperature junos:celsius="37">37 degrees C / 98 degrees F</temperature>
    </environment-item>
    <environment-item>
      <name>Fan Tray 1</name>
      <class>Fans</class>
      <status>Failed</status>
    </environment-item>
  </environment-information>
</rpc-reply>
"""

THRESHOLD_REPLY = """
<rpc-reply>
  <temperature-threshold-information>
    <temperature-threshold>
      <name>Routing Engine 0</name>
      <fan-normal-speed>50</fan-normal-speed>
      <fan-high-speed>65</fan-high-speed>
      <bad-fan-yellow-alarm>70</bad-fan-yellow-alarm>
      <bad-fan-red-alarm>80</bad-fan-red-alarm>
      <yellow-alarm>75</yellow-alarm>
      <red-alarm>85</red-alarm>
      <fire-shutdown>100</fire-shutdown>
    </temperature-threshold>
  </temperature-threshold-information>
</rpc-reply>
"""


class TestEnvironmentCollector:
    """Test suite for EnvironmentCollector."""

    @pytest.mark.asyncio
    async def test_module_state_and_temperature(self, logger, fake_session, target_config, metric_values):
        session = fake_session({
            "get-environment-information": ENVIRONMENT_REPLY,
            "get-temperature-threshold-information": THRESHOLD_REPLY,
        })

        outcome = await EnvironmentCollector(logger).get(session, target_config)
        samples = outcome.samples

        assert outcome.up
        assert metric_values(samples, "junos_environment_module_state") == {
            ("Routing Engine 0",): 1.0,
            ("Fan Tray 1",): 0.0,
        }
        assert metric_values(samples, "junos_environment_module_temperature_celsius") == {
            ("Routing Engine 0",): 37.0,
        }
        assert metric_values(samples, "junos_environment_module_fire_shutdown_temperature_celsius") == {
            ("Routing Engine 0",): 100.0,
        }
        assert metric_values(samples, "junos_environment_module_bad_fan_yellow_alarm_temperature_celsius") == {
            ("Routing Engine 0",): 70.0,
        }

    @pytest.mark.asyncio
    async def test_threshold_rpc_failure_keeps_module_samples(self, logger, fake_session, target_config, metric_values):
        session = fake_session({
            "get-environment-information": ENVIRONMENT_REPLY,
            "get-temperature-threshold-information": RpcExecutionError("not supported"),
        })

        outcome = await EnvironmentCollector(logger).get(session, target_config)

        assert not outcome.up
        assert len(metric_values(outcome.samples, "junos_environment_module_state")) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
