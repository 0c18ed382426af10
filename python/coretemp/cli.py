"""coretemp command-line tool."""

from __future__ import annotations

import argparse
import logging
import sys
import time

from .client import DEFAULT_COOLDOWN, StreamClient
from .errors import DecodeError, FramingError
from .framing import FrameAssembler, iter_frames
from .measure import Measure, MeasureType, client_from_options
from .payload import CoreTempPayload, decode_payload
from .transport import DEFAULT_PORT, FileTransport


def _parse_endpoint(raw: str) -> tuple[str, int]:
    """Split ``host[:port]``."""
    if ":" in raw:
        host, port = raw.rsplit(":", 1)
        return host, int(port)
    return raw, DEFAULT_PORT


def _format_payload(payload: CoreTempPayload) -> str:
    info = payload.cpu_info
    unit = "F" if info.fahrenheit else "C"
    name = info.cpu_name or "cpu"
    temps = ", ".join(f"{t:.1f}" for t in info.temperatures)
    line = (f"{name}: speed={info.cpu_speed:.2f}MHz "
            f"tjmax={list(info.tj_max)} temps=[{temps}]{unit}")
    summary = info.core_summary()
    if summary is not None:
        line += (f" min={summary.minimum:.1f} mean={summary.mean:.1f}"
                 f" max={summary.maximum:.1f}")
    return line


def cmd_live(args: argparse.Namespace) -> None:
    """Print the latest payload from a server at a fixed interval."""
    host, port = _parse_endpoint(args.endpoint)
    client = StreamClient(host, port, cooldown=args.cooldown)
    client.start()

    printed = 0
    last: CoreTempPayload | None = None
    try:
        while args.count is None or printed < args.count:
            payload = client.latest_payload
            if payload is None:
                print(f"[{time.strftime('%H:%M:%S')}] waiting for data "
                      f"({client.state.value})")
            elif payload is not last:
                print(f"[{time.strftime('%H:%M:%S')}] {_format_payload(payload)}")
                last = payload
            printed += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass
    finally:
        client.stop()


def cmd_frames(args: argparse.Namespace) -> None:
    """Split a captured byte stream into frames and decode each one."""
    transport = FileTransport(args.file)
    assembler = FrameAssembler(max_frame_size=args.max_frame_size)
    count = 0
    try:
        for frame in iter_frames(transport, assembler):
            count += 1
            try:
                text = _format_payload(decode_payload(frame))
            except DecodeError as e:
                text = f"undecodable ({e})"
            print(f"[{count:5d}] {text}")
            if args.raw:
                print(f"        {frame}")
    except EOFError:
        pass
    except FramingError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        transport.close()

    if assembler.pending:
        print(f"incomplete frame at end of stream: {assembler.pending} bytes, "
              f"depth {assembler.depth}", file=sys.stderr)
    print(f"{count} frames")


def cmd_measure(args: argparse.Namespace) -> None:
    """Evaluate one measure the way a display host would."""
    options = {
        "CoreTempHostname": args.host,
        "CoreTempPort": str(args.port),
        "CoreTempType": args.type,
        "CoreTempIndex": str(args.index),
        "MaxValue": str(args.max_value),
    }
    client = client_from_options(options, cooldown=args.cooldown)
    if client is None:
        print("Error: a hostname is required", file=sys.stderr)
        sys.exit(1)

    client.start()
    measure = Measure(client)
    max_value = measure.reload(options)
    shown = 0
    try:
        while args.count is None or shown < args.count:
            if measure.config and measure.config.type is MeasureType.TJ_MAX:
                # TjMax is sampled on reload, so pick it up once data arrives
                max_value = measure.reload(options)
            value = measure.update()
            ratio = value / max_value if max_value else 0.0
            print(f"{measure.get_string() or '-':>10s}  "
                  f"{value:10.2f}  {ratio:6.1%}")
            shown += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass
    finally:
        client.stop()


def main() -> None:
    parser = argparse.ArgumentParser(prog="coretemp",
                                     description="Core Temp remote telemetry tool")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # live
    p_live = sub.add_parser("live", help="Show live telemetry from a server")
    p_live.add_argument("endpoint", help=f"host[:port] (default port {DEFAULT_PORT})")
    p_live.add_argument("--interval", type=float, default=1.0,
                        help="Seconds between updates")
    p_live.add_argument("--count", type=int, default=None,
                        help="Stop after this many updates")
    p_live.add_argument("--cooldown", type=float, default=DEFAULT_COOLDOWN,
                        help="Seconds to wait after a failed connect")

    # frames
    p_frames = sub.add_parser("frames", help="Decode a captured byte stream")
    p_frames.add_argument("file", help="Path to a raw capture")
    p_frames.add_argument("--raw", action="store_true",
                          help="Also print each frame's text")
    p_frames.add_argument("--max-frame-size", type=int, default=1_048_576,
                          help="Largest frame accepted, in bytes")

    # measure
    p_measure = sub.add_parser("measure", help="Evaluate a single measure")
    p_measure.add_argument("host", help="Core Temp server hostname")
    p_measure.add_argument("--port", type=int, default=DEFAULT_PORT)
    p_measure.add_argument("--type", default="Temperature",
                           help="TjMax, Temperature or CpuSpeed")
    p_measure.add_argument("--index", type=int, default=0, help="Core index")
    p_measure.add_argument("--max-value", type=float, default=100.0,
                           help="Display scale maximum")
    p_measure.add_argument("--interval", type=float, default=1.0)
    p_measure.add_argument("--count", type=int, default=None)
    p_measure.add_argument("--cooldown", type=float, default=DEFAULT_COOLDOWN)

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "live":
        cmd_live(args)
    elif args.command == "frames":
        cmd_frames(args)
    elif args.command == "measure":
        cmd_measure(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
