"""Measures: configured queries evaluated against a StreamClient.

A display host holds one StreamClient and any number of measures.  Each
measure is configured from the host's string options and answers with a
number (``update``) or text (``get_string``).  Bad configuration never
raises into the host: it is logged and the measure reports a neutral
value instead.

Options (names match the Core Temp display plugin, lookup ignores case):

  CoreTempHostname  server to connect to (required)
  CoreTempPort      TCP port, default 5200
  CoreTempType      TjMax | Temperature | CpuSpeed
  CoreTempIndex     core index for Temperature, default 0
  MaxValue          display scale maximum, default 100
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from .client import StreamClient
from .errors import ConfigError, IndexOutOfRange
from .transport import DEFAULT_PORT

logger = logging.getLogger(__name__)

DEFAULT_MAX_VALUE = 100.0
# Reported for TjMax before any payload has arrived
DEFAULT_TJ_MAX = 100


class MeasureType(Enum):
    TJ_MAX = "TJMAX"
    TEMPERATURE = "TEMPERATURE"
    CPU_SPEED = "CPUSPEED"

    @classmethod
    def parse(cls, raw: str) -> MeasureType:
        try:
            return cls(raw.strip().upper())
        except ValueError:
            raise ConfigError("CoreTempType", raw) from None


def get_option(options: Mapping[str, str], key: str, default: str = "") -> str:
    """Case-insensitive option lookup."""
    if key in options:
        return options[key]
    lowered = key.lower()
    for k, v in options.items():
        if k.lower() == lowered:
            return v
    return default


def parse_int(options: Mapping[str, str], key: str, default: int) -> int:
    raw = get_option(options, key, str(default))
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(key, raw) from None


def parse_float(options: Mapping[str, str], key: str, default: float) -> float:
    raw = get_option(options, key, str(default))
    try:
        return float(raw.strip())
    except ValueError:
        raise ConfigError(key, raw) from None


def client_from_options(options: Mapping[str, str],
                        **kwargs: Any) -> StreamClient | None:
    """Build (but do not start) the shared client for a host.

    Returns None when no hostname is configured.  An invalid port is
    logged and replaced by the default.
    """
    hostname = get_option(options, "CoreTempHostname").strip()
    try:
        port = parse_int(options, "CoreTempPort", DEFAULT_PORT)
    except ConfigError as e:
        logger.error("%s, using port %d", e, DEFAULT_PORT)
        port = DEFAULT_PORT

    if not hostname:
        logger.error("CoreTempHostname is not set")
        return None
    return StreamClient(hostname, port, **kwargs)


def format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass
class MeasureConfig:
    type: MeasureType
    core_index: int = 0
    max_value: float = DEFAULT_MAX_VALUE

    @classmethod
    def from_options(cls, options: Mapping[str, str]) -> MeasureConfig:
        """Parse measure options.

        Raises ConfigError for a bad type or index.  A bad MaxValue is
        logged and replaced by the default.
        """
        mtype = MeasureType.parse(get_option(options, "CoreTempType"))
        core_index = parse_int(options, "CoreTempIndex", 0)
        if core_index < 0:
            raise ConfigError("CoreTempIndex", str(core_index), "must not be negative")
        try:
            max_value = parse_float(options, "MaxValue", DEFAULT_MAX_VALUE)
        except ConfigError as e:
            logger.error("%s, defaulting to %s", e, format_number(DEFAULT_MAX_VALUE))
            max_value = DEFAULT_MAX_VALUE
        return cls(mtype, core_index, max_value)


class Measure:
    """One configured query against a (shared) StreamClient."""

    def __init__(self, client: StreamClient | None):
        self.client = client
        self.config: MeasureConfig | None = None
        self.max_temp = DEFAULT_TJ_MAX
        self.do_nothing = True

    @property
    def max_value(self) -> float:
        return self.config.max_value if self.config else DEFAULT_MAX_VALUE

    def reload(self, options: Mapping[str, str]) -> float:
        """Apply *options*; return the display scale maximum."""
        self.do_nothing = True
        if self.client is None:
            logger.error("no client available, measure disabled")
            return DEFAULT_MAX_VALUE

        try:
            self.config = MeasureConfig.from_options(options)
        except ConfigError as e:
            logger.error("%s, measure disabled", e)
            self.config = None
            return DEFAULT_MAX_VALUE

        if self.config.type is MeasureType.TJ_MAX:
            # TjMax does not change at runtime; sample it once per reload
            payload = self.client.latest_payload
            if payload is not None and payload.cpu_info.tj_max:
                self.max_temp = payload.cpu_info.max_temperature(0)
            else:
                self.max_temp = DEFAULT_TJ_MAX

        self.do_nothing = False
        return self.config.max_value

    def value(self) -> float | None:
        """Current reading, or None when there is nothing to report."""
        if self.do_nothing:
            return None
        payload = self.client.latest_payload
        if payload is None:
            return None

        mtype = self.config.type
        if mtype is MeasureType.TJ_MAX:
            return float(self.max_temp)
        if mtype is MeasureType.CPU_SPEED:
            return payload.cpu_info.cpu_speed
        try:
            return payload.cpu_info.core_temperature(self.config.core_index)
        except IndexOutOfRange as e:
            logger.error("CoreTempIndex=%d not valid (%s), measure disabled",
                         self.config.core_index, e)
            self.do_nothing = True
            return None

    def update(self) -> float:
        value = self.value()
        return 0.0 if value is None else value

    def get_string(self) -> str:
        if self.config is not None and not self.do_nothing \
                and self.config.type is MeasureType.TJ_MAX:
            return str(self.max_temp)
        value = self.value()
        return "" if value is None else format_number(value)


class MeasureRegistry:
    """Maps opaque integer handles, as handed to a host, to measures."""

    def __init__(self):
        self._measures: dict[int, Measure] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, client: StreamClient | None) -> int:
        measure = Measure(client)
        with self._lock:
            handle = next(self._ids)
            self._measures[handle] = measure
        return handle

    def get(self, handle: int) -> Measure:
        with self._lock:
            try:
                return self._measures[handle]
            except KeyError:
                raise KeyError(f"unknown measure handle {handle}") from None

    def release(self, handle: int) -> None:
        with self._lock:
            self._measures.pop(handle, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._measures)
