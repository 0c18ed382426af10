"""Brace-balance framing for Core Temp streams.

The remote server writes bare JSON objects back to back, with no length
prefix and no delimiter.  A frame is recovered by counting ``{`` against
``}``: it opens on the first ``{`` and closes the moment the depth drops
back to zero.  Whitespace between tokens is dropped and never counted.

The counter knows nothing about JSON strings, so a literal brace inside a
quoted value will desynchronise it.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from .errors import FramingError
from .transport import Transport

logger = logging.getLogger(__name__)

OPEN_BRACE = ord("{")
CLOSE_BRACE = ord("}")
WHITESPACE = frozenset(b" \t\n\r\x0b\x0c")


class FrameAssembler:
    """Stateful reassembler that extracts brace-balanced frames from bytes.

    Bytes arriving while no frame is open are discarded.  A stray ``}``
    is therefore dropped instead of driving the depth negative, so it
    cannot stall framing for the rest of the connection.  If the partial
    frame grows beyond ``max_frame_size`` the assembler resets itself and
    raises FramingError, since the stream can no longer be trusted to
    return to depth zero.
    """

    def __init__(self, max_frame_size: int = 1_048_576):
        self.max_frame_size = max_frame_size
        self.discarded: int = 0
        self._buf = bytearray()
        self._depth = 0

    @property
    def depth(self) -> int:
        """Number of unmatched ``{`` in the current partial frame."""
        return self._depth

    @property
    def pending(self) -> int:
        """Size in bytes of the current partial frame."""
        return len(self._buf)

    def feed(self, data: bytes) -> list[str]:
        """Feed raw bytes, return any frames they complete."""
        frames: list[str] = []

        for b in data:
            if b in WHITESPACE:
                continue

            if self._depth == 0 and b != OPEN_BRACE:
                # Outside a frame: nothing to attach this byte to
                self.discarded += 1
                continue

            if b == OPEN_BRACE:
                self._depth += 1
            elif b == CLOSE_BRACE:
                self._depth -= 1
            self._buf.append(b)

            if self._depth == 0:
                frames.append(self._buf.decode("utf-8", errors="replace"))
                self._buf.clear()
            elif len(self._buf) > self.max_frame_size:
                logger.warning(
                    "partial frame exceeds max_frame_size %d at depth %d, "
                    "clearing buffer", self.max_frame_size, self._depth)
                self.reset()
                raise FramingError(
                    f"no complete frame within {self.max_frame_size} bytes")

        return frames

    def reset(self) -> None:
        """Drop the partial frame and start counting from zero."""
        self._buf.clear()
        self._depth = 0


def iter_frames(transport: Transport,
                assembler: FrameAssembler | None = None,
                read_size: int = 4096,
                should_continue: Callable[[], bool] | None = None,
                ) -> Iterator[str]:
    """Lazily yield frames read from *transport*.

    Runs until the transport raises (``EOFError`` at end of stream, or
    ``OSError`` on a read failure), the assembler raises FramingError, or
    *should_continue* returns False.  Errors propagate to the caller.
    """
    if assembler is None:
        assembler = FrameAssembler()

    while should_continue is None or should_continue():
        data = transport.read(read_size)
        if not data:
            continue
        yield from assembler.feed(data)
