"""BLE transport backed by bleak."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError
from bleak.uuids import normalize_uuid_str
from bleak_retry_connector import BleakClientWithServiceCache, establish_connection

from ..exceptions import BLEConnectionError, LinkFailedError, WriteFailedError
from ..models.device import Device, DiscoveredCharacteristic
from .base import DisconnectedCallback, NotificationCallback, Transport

if TYPE_CHECKING:
    from bleak.backends.device import BLEDevice
    from bleak.backends.scanner import AdvertisementData

_LOGGER = logging.getLogger(__name__)


class BleakTransport(Transport):
    """Transport for a ball machine using bleak.

    Features:
    - Automatic retry logic with bleak-retry-connector
    - Service caching for faster reconnections
    - Service-filtered scanning streamed through an asyncio queue
    """

    def __init__(
            self,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
    ):
        """Initialize bleak transport.

        Args:
            timeout: Connection timeout in seconds (default: 10)
            max_attempts: Maximum connection attempts for bleak-retry-connector (default: 4)
            use_services_cache: Enable GATT service caching for faster reconnections (default: True)
        """
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.use_services_cache = use_services_cache

        self._client: BleakClient | None = None
        self._address: str | None = None

    async def scan(self, service_uuid: str) -> AsyncIterator[Device]:
        """Stream devices advertising service_uuid until the iterator is closed."""
        queue: asyncio.Queue[Device] = asyncio.Queue()

        def callback(ble_device: BLEDevice, advertisement_data: AdvertisementData) -> None:
            queue.put_nowait(
                Device(
                    identifier=ble_device.address,
                    name=ble_device.name or advertisement_data.local_name,
                    service_uuids=tuple(advertisement_data.service_uuids),
                    handle=ble_device,
                )
            )

        scanner = BleakScanner(
            detection_callback=callback,
            service_uuids=[normalize_uuid_str(service_uuid)],
        )
        _LOGGER.debug("Scanning for service %s", service_uuid)
        await scanner.start()
        try:
            while True:
                yield await queue.get()
        finally:
            await scanner.stop()
            _LOGGER.debug("Scan stopped")

    async def connect(self, device: Device, disconnected_callback: DisconnectedCallback) -> None:
        """Establish BLE connection to device.

        Raises:
            LinkFailedError: If the device cannot be found or connected
        """
        if self.is_connected:
            await self.disconnect()

        self._address = device.identifier
        try:
            _LOGGER.debug(
                "Connecting to %s with bleak-retry-connector (max_attempts=%d)",
                device.identifier,
                self.max_attempts,
            )

            # Resolve address to BLEDevice if the scan did not provide one
            ble_device = device.handle
            if ble_device is None:
                ble_device = await BleakScanner.find_device_by_address(
                    device.identifier,
                    timeout=self.timeout,
                )
                if ble_device is None:
                    raise LinkFailedError(
                        f"Device {device.identifier} not found during scan"
                    )

            def on_disconnect(client: BleakClient) -> None:
                _LOGGER.debug("Link to %s dropped", device.identifier)
                disconnected_callback()

            self._client = await establish_connection(
                client_class=BleakClientWithServiceCache,
                device=ble_device,
                name=device.display_name,
                disconnected_callback=on_disconnect,
                max_attempts=self.max_attempts,
                use_services_cache=self.use_services_cache,
                timeout=self.timeout,
            )
        except LinkFailedError:
            raise
        except asyncio.TimeoutError as e:
            raise LinkFailedError(
                f"Connection timeout after {self.timeout}s"
            ) from e
        except Exception as e:
            raise LinkFailedError(
                f"Failed to connect: {e}"
            ) from e

        _LOGGER.debug("Connected to %s", device.identifier)

    async def discover_services(self) -> list[str]:
        client = self._require_client()
        return [service.uuid for service in client.services]

    async def discover_characteristics(self, service_uuid: str) -> list[DiscoveredCharacteristic]:
        client = self._require_client()
        service = client.services.get_service(normalize_uuid_str(service_uuid))
        if service is None:
            return []

        return [
            DiscoveredCharacteristic(
                uuid=characteristic.uuid,
                target=characteristic,
                properties=tuple(characteristic.properties),
            )
            for characteristic in service.characteristics
        ]

    async def write(self, target: Any, data: bytes, with_response: bool = True) -> None:
        """Write data to a characteristic.

        Raises:
            WriteFailedError: If not connected or the write fails
        """
        if not self.is_connected:
            raise WriteFailedError("Not connected")

        try:
            await self._client.write_gatt_char(target, data, response=with_response)
        except (BleakError, asyncio.TimeoutError, OSError) as e:
            raise WriteFailedError(f"Write failed: {e}") from e

    async def subscribe(self, target: Any, callback: NotificationCallback) -> None:
        """Start notifications on a characteristic.

        Raises:
            BLEConnectionError: If not connected or notifications cannot be enabled
        """
        client = self._require_client()

        def notification_callback(sender: Any, data: bytearray) -> None:
            callback(bytes(data))

        try:
            await client.start_notify(target, notification_callback)
        except BleakError as e:
            raise BLEConnectionError(f"Failed to enable notifications: {e}") from e

        _LOGGER.debug("Notifications started")

    async def disconnect(self) -> None:
        """Disconnect from device."""
        if self._client and self._client.is_connected:
            try:
                _LOGGER.debug("Disconnecting from %s", self._address)
                await self._client.disconnect()
            except (BleakError, asyncio.TimeoutError, OSError) as e:
                _LOGGER.warning("Error during disconnect: %s", e)
            finally:
                self._client = None
        else:
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to device."""
        return self._client is not None and self._client.is_connected

    def _require_client(self) -> BleakClient:
        if not self.is_connected:
            raise BLEConnectionError("Not connected")
        return self._client
