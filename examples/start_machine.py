"""Scan for ball machines, connect to one and send the startup sequence.

Usage:
    uv run python examples/start_machine.py --duration 5
    uv run python examples/start_machine.py --address 18:7A:3E:72:16:06
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime

from ballmachine import BallMachine, BallMachineError, ConnectionState, Device


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _print_state(old: ConnectionState, new: ConnectionState) -> None:
    print(f"[{_timestamp()}] state {old.value} -> {new.value}")


def _pick_device(devices: list[Device], address: str | None) -> Device | None:
    if address is None:
        return devices[0] if devices else None
    for device in devices:
        if device.identifier.lower() == address.lower():
            return device
    # Not seen in the scan; let the transport resolve the address
    return Device(address)


async def start(duration: float, address: str | None, connect_only: bool) -> None:
    """Scan, connect and start the first (or requested) ball machine."""
    async with BallMachine() as machine:
        machine.add_listener(_print_state)

        devices = await machine.scan(duration=duration)
        print(f"[{_timestamp()}] found {len(devices)} device(s)")
        for device in devices:
            print(f"  {device.identifier}: {device.display_name}")

        device = _pick_device(devices, address)
        if device is None:
            print("No ball machine found")
            return

        try:
            await machine.connect(device, initialize=not connect_only)
        except BallMachineError as err:
            print(f"[{_timestamp()}] failed: {err}")
            return

        print(f"[{_timestamp()}] {machine.state.value}, ready={machine.is_ready}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Connect to a BLE tennis ball machine and send the startup sequence."
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Scan duration in seconds. Default: 5",
    )
    parser.add_argument(
        "--address",
        help="Connect to this address instead of the first machine found.",
    )
    parser.add_argument(
        "--connect-only",
        action="store_true",
        help="Connect and resolve characteristics without sending commands.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    try:
        asyncio.run(start(args.duration, args.address, args.connect_only))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
