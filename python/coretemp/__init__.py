"""coretemp - Core Temp remote telemetry client."""

from .errors import (CoreTempError, FramingError, DecodeError,
                     IndexOutOfRange, ConfigError)
from .transport import Transport, TCPTransport, FileTransport, DEFAULT_PORT
from .framing import FrameAssembler, iter_frames
from .payload import CpuInfo, CoreTempPayload, CoreSummary, decode_payload
from .client import StreamClient, ClientState, DEFAULT_COOLDOWN
from .measure import Measure, MeasureConfig, MeasureType, MeasureRegistry

__all__ = [
    "CoreTempError", "FramingError", "DecodeError", "IndexOutOfRange",
    "ConfigError",
    "Transport", "TCPTransport", "FileTransport", "DEFAULT_PORT",
    "FrameAssembler", "iter_frames",
    "CpuInfo", "CoreTempPayload", "CoreSummary", "decode_payload",
    "StreamClient", "ClientState", "DEFAULT_COOLDOWN",
    "Measure", "MeasureConfig", "MeasureType", "MeasureRegistry",
]
