"""Device discovery."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import replace

from .models.device import Device
from .protocol.commands import SERVICE_UUID
from .transport.base import Transport
from .transport.connection import BleakTransport

_LOGGER = logging.getLogger(__name__)


class ScanRegistry:
    """Discovered-but-unconnected devices, keyed by identifier.

    Devices keep the position of their first sighting. Later advertisements
    for the same identifier refresh the name and extend the service set.
    """

    def __init__(self) -> None:
        self._devices: dict[str, Device] = {}

    def observe(self, device: Device) -> Device:
        """Record one advertisement sighting.

        Returns:
            The stored (possibly merged) device
        """
        known = self._devices.get(device.identifier)
        if known is None:
            _LOGGER.debug("Discovered %s (%s)", device.identifier, device.display_name)
            self._devices[device.identifier] = device
            return device

        services = known.service_uuids + tuple(
            uuid for uuid in device.service_uuids if uuid not in known.service_uuids
        )
        merged = replace(
            known,
            name=device.name or known.name,
            service_uuids=services,
            handle=device.handle if device.handle is not None else known.handle,
        )
        self._devices[device.identifier] = merged
        return merged

    def clear(self) -> None:
        """Forget all devices."""
        self._devices.clear()

    def all(self) -> list[Device]:
        """Devices in discovery order."""
        return list(self._devices.values())

    def get(self, identifier: str) -> Device | None:
        return self._devices.get(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._devices

    def __len__(self) -> int:
        return len(self._devices)


async def collect_devices(
        transport: Transport,
        registry: ScanRegistry,
        duration: float,
        service_uuid: str = SERVICE_UUID,
) -> list[Device]:
    """Scan for duration seconds, recording sightings in registry.

    Returns:
        Devices in discovery order
    """
    async def consume() -> None:
        async with aclosing(transport.scan(service_uuid)) as stream:
            async for device in stream:
                registry.observe(device)

    try:
        await asyncio.wait_for(consume(), timeout=duration)
    except asyncio.TimeoutError:
        pass

    _LOGGER.debug("Scan finished with %d device(s)", len(registry))
    return registry.all()


async def discover_devices(
        timeout: float = 5.0,
        transport: Transport | None = None,
        service_uuid: str = SERVICE_UUID,
) -> list[Device]:
    """Discover ball machines advertising the ball machine service.

    Args:
        timeout: Scan duration in seconds (default: 5)
        transport: Transport to scan with (default: a new BleakTransport)
        service_uuid: Service UUID to filter on

    Returns:
        Devices in discovery order
    """
    if transport is None:
        transport = BleakTransport()

    return await collect_devices(transport, ScanRegistry(), timeout, service_uuid)
