"""Core Temp payload records and frame decoding."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import DecodeError, IndexOutOfRange


@dataclass(frozen=True)
class CoreSummary:
    minimum: float
    mean: float
    maximum: float


@dataclass(frozen=True)
class CpuInfo:
    """Telemetry for one host.

    ``tj_max`` is indexed by CPU package, ``temperatures`` by core.
    Everything after ``cpu_speed`` is optional on the wire.
    """

    tj_max: tuple[int, ...]
    temperatures: tuple[float, ...]
    cpu_speed: float
    load: tuple[int, ...] = ()
    core_count: int | None = None
    cpu_count: int | None = None
    vid: float | None = None
    fsb_speed: float | None = None
    multiplier: float | None = None
    cpu_name: str | None = None
    fahrenheit: bool = False
    delta_to_tj_max: bool = False

    def max_temperature(self, package: int = 0) -> int:
        """TjMax of CPU *package*."""
        if not 0 <= package < len(self.tj_max):
            raise IndexOutOfRange("package", package, len(self.tj_max))
        return self.tj_max[package]

    def core_temperature(self, index: int) -> float:
        """Temperature of core *index*."""
        if not 0 <= index < len(self.temperatures):
            raise IndexOutOfRange("core", index, len(self.temperatures))
        return self.temperatures[index]

    def temperature_array(self) -> np.ndarray:
        return np.asarray(self.temperatures, dtype=np.float64)

    def core_summary(self) -> CoreSummary | None:
        """Min / mean / max over all cores, or None with no cores."""
        temps = self.temperature_array()
        if temps.size == 0:
            return None
        return CoreSummary(float(temps.min()), float(temps.mean()),
                           float(temps.max()))


@dataclass(frozen=True)
class CoreTempPayload:
    cpu_info: CpuInfo


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _require(obj: dict[str, Any], key: str) -> Any:
    try:
        return obj[key]
    except KeyError:
        raise DecodeError(f"missing field {key!r}") from None


def _number(value: Any, key: str, kind: type = float) -> Any:
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"field {key!r} is not a number: {value!r}")
    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            raise DecodeError(f"field {key!r} is not an integer: {value!r}")
        return int(value)
    return float(value)


def _number_list(value: Any, key: str, kind: type = float) -> tuple:
    if not isinstance(value, list):
        raise DecodeError(f"field {key!r} is not an array: {value!r}")
    return tuple(_number(v, key, kind) for v in value)


def _optional(obj: dict[str, Any], key: str, kind: type = float) -> Any:
    value = obj.get(key)
    if value is None:
        return None
    return _number(value, key, kind)


def decode_cpu_info(obj: Any) -> CpuInfo:
    """Build a CpuInfo from the decoded ``CpuInfo`` JSON object."""
    if not isinstance(obj, dict):
        raise DecodeError(f"CpuInfo is not an object: {obj!r}")

    name = obj.get("CPUName")
    return CpuInfo(
        tj_max=_number_list(_require(obj, "uiTjMax"), "uiTjMax", int),
        temperatures=_number_list(_require(obj, "fTemp"), "fTemp"),
        cpu_speed=_number(_require(obj, "fCPUSpeed"), "fCPUSpeed"),
        load=_number_list(obj.get("uiLoad", []), "uiLoad", int),
        core_count=_optional(obj, "uiCoreCnt", int),
        cpu_count=_optional(obj, "uiCPUCnt", int),
        vid=_optional(obj, "fVID"),
        fsb_speed=_optional(obj, "fFSBSpeed"),
        multiplier=_optional(obj, "fMultiplier"),
        cpu_name=name.strip() if isinstance(name, str) else None,
        fahrenheit=bool(obj.get("ucFahrenheit", False)),
        delta_to_tj_max=bool(obj.get("ucDeltaToTjMax", False)),
    )


def decode_payload(frame: str) -> CoreTempPayload:
    """Decode one assembled frame.

    Unknown top-level sections (e.g. ``MemoryInfo``) are ignored.
    Raises DecodeError if the frame is not JSON or lacks the CpuInfo
    fields.
    """
    try:
        obj = json.loads(frame)
    except (ValueError, RecursionError) as e:
        # RecursionError: nesting deeper than the json module can follow
        raise DecodeError(f"frame is not valid JSON: {e}") from e

    if not isinstance(obj, dict):
        raise DecodeError(f"payload is not an object: {obj!r}")
    return CoreTempPayload(cpu_info=decode_cpu_info(_require(obj, "CpuInfo")))
