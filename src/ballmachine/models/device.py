"""Discovered device models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Device:
    """A ball machine seen during scanning.

    Attributes:
        identifier: Stable per-session identifier (BLE address under bleak)
        name: Advertised local name, if any
        service_uuids: Advertised service UUIDs
        handle: Transport-native device object (e.g. bleak BLEDevice),
            excluded from equality
    """

    identifier: str
    name: str | None = None
    service_uuids: tuple[str, ...] = ()
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        """Name for presentation, falling back to "Unknown Device"."""
        return self.name or "Unknown Device"


@dataclass(frozen=True)
class DiscoveredCharacteristic:
    """A GATT characteristic reported by the transport during discovery."""

    uuid: str
    target: Any = field(compare=False)
    properties: tuple[str, ...] = ()

    @property
    def is_writable(self) -> bool:
        """Whether the characteristic accepts writes.

        Characteristics reported without any properties are assumed writable.
        """
        if not self.properties:
            return True
        return "write" in self.properties or "write-without-response" in self.properties
