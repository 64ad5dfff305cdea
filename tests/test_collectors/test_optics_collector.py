"""Tests for OpticsCollector."""

import pytest

from junos_exporter.collectors.optics_collector import OpticsCollector


OPTICS_REPLY = """
<rpc-reply xmlns:junos="http://xml.juniper.net/junos/21.4R0/junos">
  <interface-information xmlns="http://xml.juniper.net/junos/21.4R0/junos-interface">
    <physical-interface>
      <name>et-0/0/0</name>
      <optics-diagnostics>
        <module-temperature junos:celsius="34">34 degrees C / 93 degrees F</module-temperature>
        <module-voltage>3.2900</module-voltage>
        <module-temperature-high-alarm>off</module-temperature-high-alarm>
        <module-temperature-low-alarm>on</module-temperature-low-alarm>
        <module-temperature-high-alarm-threshold junos:celsius="75">75 degrees C</module-temperature-high-alarm-threshold>
        <laser-rx-power-low-alarm-threshold-dbm>-13.00</laser-rx-power-low-alarm-threshold-dbm>
        <optics-diagnostics-lane-values>
          <lane-index>0</lane-index>
          <laser-bias-current>7.5</laser-bias-current>
          <laser-rx-optical-power-dbm>-2.10</laser-rx-optical-power-dbm>
          <laser-rx-power-low-alarm>off</laser-rx-power-low-alarm>
          <rx-loss-of-signal-alarm>on</rx-loss-of-signal-alarm>
        </optics-diagnostics-lane-values>
        <optics-diagnostics-lane-values>
          <lane-index>1</lane-index>
          <laser-bias-current>7.6</laser-bias-current>
          <laser-rx-optical-power-dbm>- Inf</laser-rx-optical-power-dbm>
        </optics-diagnostics-lane-values>
      </optics-diagnostics>
    </physical-interface>
    <physical-interface>
      <name>ge-0/0/0</name>
    </physical-interface>
  </interface-information>
</rpc-reply>
"""


class TestOpticsCollector:
    """Test suite for OpticsCollector."""

    @pytest.mark.asyncio
    async def test_module_values(self, logger, fake_session, target_config, metric_values):
        session = fake_session({"get-interface-optics-diagnostics-information": OPTICS_REPLY})

        outcome = await OpticsCollector(logger).get(session, target_config)
        samples = outcome.samples

        assert outcome.up
        assert metric_values(samples, "junos_optics_module_temperature") == {("et-0/0/0",): 34.0}
        assert metric_values(samples, "junos_optics_module_voltage") == {("et-0/0/0",): 3.29}
        assert metric_values(samples, "junos_optics_module_temperature_high_alarm_threshold") == {
            ("et-0/0/0",): 75.0,
        }
        assert metric_values(samples, "junos_optics_laser_rx_power_low_alarm_threshold_dbm") == {
            ("et-0/0/0",): -13.0,
        }

    @pytest.mark.asyncio
    async def test_flags_are_one_when_off(self, logger, fake_session, target_config, metric_values):
        session = fake_session({"get-interface-optics-diagnostics-information": OPTICS_REPLY})

        samples = (await OpticsCollector(logger).get(session, target_config)).samples

        assert metric_values(samples, "junos_optics_module_temperature_high_alarm") == {("et-0/0/0",): 1.0}
        assert metric_values(samples, "junos_optics_module_temperature_low_alarm") == {("et-0/0/0",): 0.0}
        assert metric_values(samples, "junos_optics_laser_rx_power_low_alarm")[("et-0/0/0", "0")] == 1.0
        assert metric_values(samples, "junos_optics_rx_loss_of_signal_alarm")[("et-0/0/0", "0")] == 0.0

    @pytest.mark.asyncio
    async def test_lanes(self, logger, fake_session, target_config, metric_values):
        session = fake_session({"get-interface-optics-diagnostics-information": OPTICS_REPLY})

        samples = (await OpticsCollector(logger).get(session, target_config)).samples

        assert metric_values(samples, "junos_optics_laser_bias_current") == {
            ("et-0/0/0", "0"): 7.5,
            ("et-0/0/0", "1"): 7.6,
        }
        # Unparseable readings are dropped for that lane only
        assert metric_values(samples, "junos_optics_laser_rx_optical_power_dbm") == {("et-0/0/0", "0"): -2.1}

    @pytest.mark.asyncio
    async def test_interfaces_without_optics_are_skipped(self, logger, fake_session, target_config):
        session = fake_session({"get-interface-optics-diagnostics-information": OPTICS_REPLY})

        samples = (await OpticsCollector(logger).get(session, target_config)).samples

        assert all(sample.label_values[0] == "et-0/0/0" for sample in samples)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
