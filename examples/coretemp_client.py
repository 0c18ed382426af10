#!/usr/bin/env python3
"""Connect to a Core Temp server and print core temperatures.

Start the synthetic server first:
    python examples/coretemp_source.py

Then in another terminal:
    python examples/coretemp_client.py
"""

import time

from coretemp.client import StreamClient

client = StreamClient("localhost", 5200, cooldown=5.0)
client.start()

try:
    while True:
        payload = client.latest_payload
        if payload is not None:
            info = payload.cpu_info
            temps = ", ".join(f"{t:.1f}" for t in info.temperatures)
            print(f"speed={info.cpu_speed:.0f}MHz temps=[{temps}]")
        time.sleep(1.0)
except KeyboardInterrupt:
    pass
finally:
    client.stop(timeout=2.0)
