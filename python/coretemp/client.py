"""Background client that keeps the latest Core Temp payload available.

StreamClient owns a single connection to a Core Temp remote server.  A
daemon thread connects, frames the byte stream, decodes every frame and
publishes the newest payload.  Readers on other threads only ever see a
complete payload or None.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable

from .errors import DecodeError, FramingError
from .framing import FrameAssembler, iter_frames
from .payload import CoreTempPayload, decode_payload
from .transport import DEFAULT_PORT, TCPTransport, Transport

logger = logging.getLogger(__name__)

# Fixed wait after a failed connect; no backoff, no jitter
DEFAULT_COOLDOWN = 300.0

# How long leaving a `with` block waits for the thread to finish
EXIT_JOIN_TIMEOUT = 10.0


class ClientState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    STOPPED = "stopped"


class StreamClient:
    """Persistent, self-reconnecting reader of one Core Temp server.

    Usage:
      client = StreamClient("pc.local")
      client.start()
      ...
      payload = client.latest_payload   # None until the first decode
      client.stop(timeout=5)

    *transport_factory* is called as ``factory(hostname, port)`` and must
    return a Transport; it defaults to TCPTransport.
    """

    def __init__(self, hostname: str, port: int = DEFAULT_PORT, *,
                 cooldown: float = DEFAULT_COOLDOWN,
                 transport_factory: Callable[[str, int], Transport] | None = None,
                 read_size: int = 4096,
                 max_frame_size: int = 1_048_576):
        self._hostname = hostname
        self._port = port
        self.cooldown = cooldown
        self.read_size = read_size
        self._factory = transport_factory or TCPTransport
        self._assembler = FrameAssembler(max_frame_size=max_frame_size)

        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._state = ClientState.DISCONNECTED

        self._latest_payload: CoreTempPayload | None = None
        self._latest_message: str | None = None

        self.frames_received: int = 0
        self.decode_errors: int = 0
        self.reconnects: int = 0

    # ---------- endpoint / published state ----------

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def port(self) -> int:
        return self._port

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def latest_payload(self) -> CoreTempPayload | None:
        """Most recent decoded payload, cleared when a connection drops."""
        with self._lock:
            return self._latest_payload

    @property
    def latest_message(self) -> str | None:
        """Most recent assembled frame, whether or not it decoded."""
        with self._lock:
            return self._latest_message

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ---------- lifecycle ----------

    def start(self) -> None:
        """Start the background thread.  May be called only once."""
        if self._thread is not None:
            raise RuntimeError("client already started")
        self._thread = threading.Thread(
            target=self._run, name=f"coretemp-{self._hostname}:{self._port}",
            daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Ask the background thread to exit.

        A pending cooldown is cut short; a read in progress is not.  If
        *timeout* is given, wait up to that long for the thread to finish.
        """
        self._stop.set()
        thread = self._thread
        if (timeout is not None and thread is not None
                and thread is not threading.current_thread()):
            thread.join(timeout)

    def __enter__(self) -> StreamClient:
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop(timeout=EXIT_JOIN_TIMEOUT)

    # ---------- background loop ----------

    def _run(self) -> None:
        logger.info("client started for %s:%d", self._hostname, self._port)
        try:
            while not self._stop.is_set():
                transport = self._connect()
                if transport is None:
                    self._stop.wait(self.cooldown)
                    continue
                try:
                    self._stream(transport)
                except (OSError, EOFError, FramingError) as e:
                    logger.warning("connection to %s:%d lost: %s",
                                   self._hostname, self._port, e)
                    self._drop_connection()
                except Exception:
                    logger.exception("unexpected error while streaming from %s:%d",
                                     self._hostname, self._port)
                    self._drop_connection()
                finally:
                    self._close(transport)
        finally:
            self._state = ClientState.STOPPED
            logger.info("client for %s:%d stopped", self._hostname, self._port)

    def _connect(self) -> Transport | None:
        self._state = ClientState.CONNECTING
        try:
            transport = self._factory(self._hostname, self._port)
        except Exception as e:
            self._state = ClientState.DISCONNECTED
            logger.warning("could not connect to %s:%d: %s; retrying in %.0fs",
                           self._hostname, self._port, e, self.cooldown)
            return None

        self._assembler.reset()
        self._state = ClientState.STREAMING
        logger.info("connected to %s:%d", self._hostname, self._port)
        return transport

    def _stream(self, transport: Transport) -> None:
        frames = iter_frames(transport, self._assembler, self.read_size,
                             should_continue=lambda: not self._stop.is_set())
        for frame in frames:
            self._handle_frame(frame)

    def _handle_frame(self, frame: str) -> None:
        with self._lock:
            self._latest_message = frame

        try:
            payload = decode_payload(frame)
        except DecodeError as e:
            self.decode_errors += 1
            logger.debug("discarding undecodable frame (%d bytes): %s",
                         len(frame), e)
        else:
            with self._lock:
                self._latest_payload = payload
        finally:
            self.frames_received += 1

    def _drop_connection(self) -> None:
        # Stale data must not outlive the connection it came from
        with self._lock:
            self._latest_payload = None
        self._assembler.reset()
        self.reconnects += 1
        self._state = ClientState.DISCONNECTED

    def _close(self, transport: Transport) -> None:
        try:
            transport.close()
        except OSError as e:
            logger.debug("error closing transport: %s", e)
