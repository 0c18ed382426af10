"""Transport adapters for Core Temp streams."""

from __future__ import annotations

import socket
from typing import Protocol

# Core Temp remote server listens here unless configured otherwise
DEFAULT_PORT = 5200


class Transport(Protocol):
    """Abstract byte source.

    ``read`` returns ``b""`` when no data is available yet and raises
    ``EOFError`` once the stream has ended for good.
    """

    def read(self, n: int) -> bytes: ...
    def close(self) -> None: ...


class TCPTransport:
    """TCP stream transport (client mode)."""

    def __init__(self, host: str, port: int = DEFAULT_PORT,
                 timeout: float = 5.0, read_timeout: float = 1.0):
        self.host = host
        self.port = port
        self._sock = socket.create_connection((host, port), timeout=timeout)
        self._sock.settimeout(read_timeout)

    def read(self, n: int) -> bytes:
        try:
            data = self._sock.recv(n)
        except socket.timeout:
            return b""
        if not data:
            raise EOFError(f"connection to {self.host}:{self.port} closed by peer")
        return data

    def close(self) -> None:
        self._sock.close()

    def __repr__(self) -> str:
        return f"TCPTransport({self.host!r}, {self.port})"


class FileTransport:
    """Replay a raw byte stream captured to a file."""

    def __init__(self, path: str):
        self.path = path
        self._f = open(path, "rb")

    def read(self, n: int) -> bytes:
        data = self._f.read(n)
        if not data:
            raise EOFError(f"end of {self.path}")
        return data

    def close(self) -> None:
        self._f.close()
