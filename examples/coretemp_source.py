#!/usr/bin/env python3
"""Serve synthetic Core Temp telemetry over TCP.

Writes one pretty-printed JSON object per interval, back to back with no
delimiter, the way the Core Temp remote server does.

Usage:
    python examples/coretemp_source.py

Then in another terminal:
    coretemp live localhost:5200
"""

import json
import math
import random
import socket
import time

NUM_CORES = 4


def make_payload(t: float) -> dict:
    """One telemetry sample at time t (seconds)."""
    base = 45.0 + 10.0 * math.sin(2 * math.pi * t / 30.0)
    temps = [round(base + i + random.gauss(0, 0.5), 1) for i in range(NUM_CORES)]
    loads = [max(0, min(100, int(50 + 40 * math.sin(2 * math.pi * t / 12.0 + i))))
             for i in range(NUM_CORES)]
    return {
        "CpuInfo": {
            "uiLoad": loads,
            "uiTjMax": [100],
            "uiCoreCnt": NUM_CORES,
            "uiCPUCnt": 1,
            "fTemp": temps,
            "fVID": 1.1,
            "fCPUSpeed": round(3400.0 + 200.0 * math.sin(2 * math.pi * t / 8.0), 2),
            "fFSBSpeed": 100.0,
            "fMultiplier": 34.0,
            "CPUName": "Synthetic CPU",
            "ucFahrenheit": 0,
            "ucDeltaToTjMax": 0,
        },
        "MemoryInfo": {"TotalPhys": 16384, "MemoryLoad": 42},
    }


def serve(host: str = "0.0.0.0", port: int = 5200, interval: float = 1.0):
    """Accept TCP connections and stream telemetry."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind((host, port))
    srv.listen(1)
    print(f"Listening on {host}:{port} every {interval}s  (Ctrl-C to stop)")

    while True:
        print("Waiting for connection...")
        conn, addr = srv.accept()
        print(f"Client connected: {addr}")
        t0 = time.monotonic()
        seq = 0
        try:
            while True:
                payload = make_payload(time.monotonic() - t0)
                conn.sendall(json.dumps(payload, indent=2).encode("utf-8"))
                seq += 1
                if seq % 10 == 0:
                    print(f"  sent {seq} samples")
                time.sleep(interval)
        except (BrokenPipeError, ConnectionResetError):
            print("Client disconnected.")
        except KeyboardInterrupt:
            print("\nShutting down.")
            conn.close()
            srv.close()
            return


if __name__ == "__main__":
    serve()
