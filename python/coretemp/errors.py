"""Exception hierarchy for coretemp."""

from __future__ import annotations


class CoreTempError(Exception):
    """Base class for all coretemp errors."""


class FramingError(CoreTempError):
    """The byte stream cannot be split into brace-balanced frames."""


class DecodeError(CoreTempError, ValueError):
    """An assembled frame is not a valid Core Temp payload."""


class IndexOutOfRange(CoreTempError, IndexError):
    """A package or core index is outside the decoded array."""

    def __init__(self, what: str, index: int, length: int):
        super().__init__(f"{what} index {index} out of range (have {length})")
        self.what = what
        self.index = index
        self.length = length


class ConfigError(CoreTempError, ValueError):
    """A configuration option has an invalid value."""

    def __init__(self, key: str, value: str, reason: str = "not valid"):
        super().__init__(f"{key}={value} {reason}")
        self.key = key
        self.value = value
