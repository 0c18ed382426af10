"""Tests for measure configuration and evaluation.

Run from the repo root:
    python3 tests/test_measure.py
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "python"))

from coretemp.client import StreamClient
from coretemp.errors import ConfigError
from coretemp.measure import (
    Measure, MeasureConfig, MeasureType, MeasureRegistry,
    client_from_options, format_number, get_option,
)
from coretemp.payload import CpuInfo, CoreTempPayload


class FakeClient:
    """Stands in for StreamClient; only latest_payload is read."""

    def __init__(self, payload=None):
        self.latest_payload = payload


def make_payload():
    return CoreTempPayload(CpuInfo(
        tj_max=(95,),
        temperatures=(41.0, 43.5, 55.0),
        cpu_speed=3592.5,
    ))


def options(**kw):
    opts = {"CoreTempHostname": "cpu-host"}
    opts.update(kw)
    return opts


def test_option_lookup():
    """Option names are matched without regard to case."""
    print("test_option_lookup...", end="")

    opts = {"coretemptype": "cpuspeed", "MaxValue": "5000"}
    assert get_option(opts, "CoreTempType") == "cpuspeed"
    assert get_option(opts, "MaxValue") == "5000"
    assert get_option(opts, "CoreTempIndex", "0") == "0"

    config = MeasureConfig.from_options(opts)
    assert config.type is MeasureType.CPU_SPEED
    assert config.core_index == 0
    assert config.max_value == 5000.0

    print(" OK")


def test_config_errors():
    """Bad type or index raise ConfigError; bad MaxValue falls back."""
    print("test_config_errors...", end="")

    for bad in ({"CoreTempType": "Voltage"},
                {"CoreTempType": ""},
                {"CoreTempType": "Temperature", "CoreTempIndex": "two"},
                {"CoreTempType": "Temperature", "CoreTempIndex": "-1"}):
        try:
            MeasureConfig.from_options(bad)
            assert False, f"Should have raised ConfigError for {bad}"
        except ConfigError:
            pass

    config = MeasureConfig.from_options({"CoreTempType": "TjMax", "MaxValue": "lots"})
    assert config.max_value == 100.0

    print(" OK")


def test_tj_max_measure():
    """TjMax is sampled from the payload on reload."""
    print("test_tj_max_measure...", end="")

    client = FakeClient(make_payload())
    measure = Measure(client)
    assert measure.reload(options(CoreTempType="TJMAX", MaxValue="150")) == 150.0
    assert measure.update() == 95.0
    assert measure.get_string() == "95"

    # Without a payload the number is neutral but the text keeps TjMax
    client.latest_payload = None
    assert measure.update() == 0.0
    assert measure.get_string() == "95"

    # Reloaded before any data: default TjMax
    measure.reload(options(CoreTempType="tjmax"))
    assert measure.get_string() == "100"

    print(" OK")


def test_temperature_measure():
    """Per-core temperature for the configured index."""
    print("test_temperature_measure...", end="")

    client = FakeClient(make_payload())
    measure = Measure(client)
    measure.reload(options(CoreTempType="Temperature", CoreTempIndex="1"))
    assert measure.update() == 43.5
    assert measure.get_string() == "43.5"

    measure.reload(options(CoreTempType="Temperature", CoreTempIndex="2"))
    assert measure.get_string() == "55"

    client.latest_payload = None
    assert measure.update() == 0.0
    assert measure.get_string() == ""

    print(" OK")


def test_speed_measure():
    """CPU speed measure."""
    print("test_speed_measure...", end="")

    measure = Measure(FakeClient(make_payload()))
    measure.reload(options(CoreTempType="CpuSpeed", MaxValue="5000"))
    assert measure.update() == 3592.5
    assert measure.get_string() == "3592.5"
    assert measure.max_value == 5000.0

    print(" OK")


def test_index_beyond_cores_disables_measure():
    """An index past the last core reports neutral values."""
    print("test_index_beyond_cores_disables_measure...", end="")

    measure = Measure(FakeClient(make_payload()))
    measure.reload(options(CoreTempType="Temperature", CoreTempIndex="8"))
    assert not measure.do_nothing
    assert measure.update() == 0.0
    assert measure.do_nothing
    assert measure.get_string() == ""

    print(" OK")


def test_bad_config_disables_measure():
    """Invalid options never raise out of reload/update."""
    print("test_bad_config_disables_measure...", end="")

    measure = Measure(FakeClient(make_payload()))
    assert measure.reload(options(CoreTempType="Bogus")) == 100.0
    assert measure.do_nothing
    assert measure.update() == 0.0
    assert measure.get_string() == ""

    measure.reload(options(CoreTempType="Temperature", CoreTempIndex="x"))
    assert measure.do_nothing
    assert measure.update() == 0.0

    # A later valid reload re-enables it
    measure.reload(options(CoreTempType="Temperature", CoreTempIndex="0"))
    assert measure.update() == 41.0

    # No client at all
    orphan = Measure(None)
    assert orphan.reload(options(CoreTempType="Temperature")) == 100.0
    assert orphan.update() == 0.0
    assert orphan.get_string() == ""

    print(" OK")


def test_client_from_options():
    """Hostname and port options build an unstarted client."""
    print("test_client_from_options...", end="")

    client = client_from_options({"CoreTempHostname": "cpu-host",
                                  "CoreTempPort": "5300"}, cooldown=1.0)
    assert isinstance(client, StreamClient)
    assert client.hostname == "cpu-host"
    assert client.port == 5300
    assert client.cooldown == 1.0
    assert not client.is_running

    client = client_from_options({"CoreTempHostname": "cpu-host"})
    assert client.port == 5200

    client = client_from_options({"CoreTempHostname": "cpu-host",
                                  "CoreTempPort": "http"})
    assert client.port == 5200

    assert client_from_options({}) is None
    assert client_from_options({"CoreTempHostname": "  "}) is None

    print(" OK")


def test_registry():
    """Handles map to measures until released."""
    print("test_registry...", end="")

    client = FakeClient(make_payload())
    registry = MeasureRegistry()
    a = registry.create(client)
    b = registry.create(client)
    assert a != b
    assert len(registry) == 2
    assert registry.get(a) is not registry.get(b)
    assert registry.get(a).client is client

    registry.release(a)
    assert len(registry) == 1
    try:
        registry.get(a)
        assert False, "Should have raised KeyError"
    except KeyError:
        pass

    # Releasing twice is harmless
    registry.release(a)
    assert len(registry) == 1

    print(" OK")


def test_format_number():
    """Whole numbers print without a fraction."""
    print("test_format_number...", end="")

    assert format_number(55.0) == "55"
    assert format_number(3.4) == "3.4"
    assert format_number(100) == "100"

    print(" OK")


if __name__ == "__main__":
    print("coretemp measure tests")
    print("======================\n")

    test_option_lookup()
    test_config_errors()
    test_tj_max_measure()
    test_temperature_measure()
    test_speed_measure()
    test_index_beyond_cores_disables_measure()
    test_bad_config_disables_measure()
    test_client_from_options()
    test_registry()
    test_format_number()

    print("\nAll measure tests passed.")
