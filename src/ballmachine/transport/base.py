"""Transport interface the ball machine core drives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from typing import Any

from ..models.device import Device, DiscoveredCharacteristic

DisconnectedCallback = Callable[[], None]
NotificationCallback = Callable[[bytes], None]


class Transport(ABC):
    """Scan, connect, discover, write and notify primitives for one device.

    All callbacks must be delivered on the event loop that drives the
    ConnectionStateMachine.

    Connection lifecycle:
        1. scan(service_uuid) -> devices (until the consumer stops iterating)
        2. connect(device, disconnected_callback)
        3. discover_services() / discover_characteristics(service_uuid)
        4. write(target, data) and subscribe(target, callback)
        5. disconnect()
    """

    @abstractmethod
    def scan(self, service_uuid: str) -> AsyncIterator[Device]:
        """Stream devices advertising service_uuid.

        The stream is infinite; scanning stops when the iterator is closed.
        """

    @abstractmethod
    async def connect(self, device: Device, disconnected_callback: DisconnectedCallback) -> None:
        """Establish a link to device.

        Args:
            device: Device to connect to
            disconnected_callback: Called when the link drops after connect

        Raises:
            LinkFailedError: If the link cannot be established
        """

    @abstractmethod
    async def discover_services(self) -> list[str]:
        """Get the UUIDs of the connected device's services."""

    @abstractmethod
    async def discover_characteristics(self, service_uuid: str) -> list[DiscoveredCharacteristic]:
        """Get the characteristics of one service (empty if the service is missing)."""

    @abstractmethod
    async def write(self, target: Any, data: bytes, with_response: bool = True) -> None:
        """Write data to a characteristic and wait for write completion.

        Raises:
            WriteFailedError: If the write fails
        """

    @abstractmethod
    async def subscribe(self, target: Any, callback: NotificationCallback) -> None:
        """Deliver notifications of a characteristic to callback.

        Raises:
            BLEConnectionError: If notifications cannot be enabled
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """Drop the link. Safe to call when not connected."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether a link is currently established."""
