"""Main ball machine device class."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .discovery import ScanRegistry, collect_devices
from .exceptions import BLEConnectionError, LinkFailedError
from .models.connection import Connection
from .models.device import Device
from .models.enums import ConnectionState, Role
from .protocol.commands import (
    AUTH_CHARACTERISTIC_UUID,
    CHUNK_DELAY,
    CHUNK_SIZE,
    COMMAND_CHARACTERISTIC_UUID,
    SERVICE_UUID,
)
from .resolver import CharacteristicResolver
from .sequencer import InitializationSequencer, SequenceHandle
from .state_machine import ConnectionStateMachine, StateListener
from .transport import BleakTransport, Transport

_LOGGER = logging.getLogger(__name__)


class BallMachine:
    """Ball machine controlled over BLE.

    Main API for discovering, connecting and starting the machine.

    Usage:
        # Scan, pick the first machine, connect and send the startup sequence
        async with BallMachine() as machine:
            devices = await machine.scan(duration=5.0)
            await machine.connect(devices[0])

        # Connect without starting, start later
        machine = BallMachine()
        await machine.scan()
        await machine.connect(device, initialize=False)
        await machine.initialize()
    """

    def __init__(
            self,
            transport: Transport | None = None,
            service_uuid: str = SERVICE_UUID,
            auth_uuid: str = AUTH_CHARACTERISTIC_UUID,
            command_uuid: str = COMMAND_CHARACTERISTIC_UUID,
            timeout: float = 10.0,
            max_attempts: int = 4,
            use_services_cache: bool = True,
            chunk_size: int = CHUNK_SIZE,
            chunk_delay: float = CHUNK_DELAY,
            sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize ball machine.

        Args:
            transport: Transport to use (default: BleakTransport)
            service_uuid: Ball machine GATT service
            auth_uuid: Characteristic carrying the auth handshake
            command_uuid: Characteristic carrying commands
            timeout: BLE connection timeout in seconds (default: 10), BleakTransport only
            max_attempts: Connection attempts (default: 4), BleakTransport only
            use_services_cache: Enable GATT service caching, BleakTransport only
            chunk_size: Maximum bytes per write (default: 18)
            chunk_delay: Seconds between chunks of a long command (default: 0.1)
            sleep: Coroutine function used for command pacing
        """
        self._transport = transport or BleakTransport(
            timeout=timeout,
            max_attempts=max_attempts,
            use_services_cache=use_services_cache,
        )
        self.service_uuid = service_uuid
        self.registry = ScanRegistry()
        self._state_machine = ConnectionStateMachine(
            CharacteristicResolver(service_uuid, auth_uuid, command_uuid)
        )
        self._sequencer = InitializationSequencer(
            self._state_machine,
            self._transport,
            chunk_size=chunk_size,
            chunk_delay=chunk_delay,
            sleep=sleep,
        )

    async def __aenter__(self) -> BallMachine:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Disconnect from device."""
        await self.disconnect()

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state_machine.state

    @property
    def connection(self) -> Connection | None:
        """Current connection, if any."""
        return self._state_machine.connection

    @property
    def devices(self) -> list[Device]:
        """Devices found by the last scan, in discovery order.

        Emptied once a device is selected for connection.
        """
        return self.registry.all()

    @property
    def is_ready(self) -> bool:
        """Whether the auth characteristic has signalled readiness."""
        return self.connection is not None and self.connection.ready

    def add_listener(self, callback: StateListener) -> Callable[[], None]:
        """Register a callback invoked with (old_state, new_state)."""
        return self._state_machine.add_listener(callback)

    async def scan(self, duration: float = 5.0) -> list[Device]:
        """Scan for ball machines.

        Clears the previous results. The state machine stays in SCANNING so
        a following connect() selects from the results.

        Args:
            duration: Scan duration in seconds (default: 5)

        Returns:
            Devices in discovery order
        """
        self._prepare_scan()
        self.registry.clear()

        _LOGGER.info("Scanning for ball machines (%.1fs)", duration)
        devices = await collect_devices(
            self._transport, self.registry, duration, self.service_uuid
        )
        _LOGGER.info("Found %d ball machine(s)", len(devices))
        return devices

    async def connect(self, device: Device, initialize: bool = True) -> Connection:
        """Connect to device and resolve its characteristics.

        Args:
            device: Device to connect to (from scan() or built from an address)
            initialize: Send the startup sequence once ready (default: True)

        Returns:
            The established Connection

        Raises:
            LinkFailedError: If the link cannot be established
            ServiceNotFoundError: If the device lacks the ball machine service
            IncompleteCharacteristicsError: If auth or command characteristic is missing
            BLEConnectionError: If the link drops during discovery
            WriteFailedError: If a startup write fails
            SequenceAbortedError: If the link drops during the startup sequence
        """
        if self._state_machine.state is not ConnectionState.SCANNING:
            self._prepare_scan()

        connection = self._state_machine.select_device(device)
        self.registry.clear()
        _LOGGER.info("Connecting to %s (%s)", device.identifier, device.display_name)

        try:
            await self._transport.connect(
                device,
                functools.partial(self._on_link_lost, connection),
            )
        except LinkFailedError as e:
            self._state_machine.link_failed(e)
        self._state_machine.link_established()

        try:
            services = await self._transport.discover_services()
            self._state_machine.services_discovered(services)

            characteristics = await self._transport.discover_characteristics(self.service_uuid)
            self._state_machine.characteristics_discovered(characteristics)
        except BLEConnectionError as e:
            self._state_machine.transport_error(e)
            await self._transport.disconnect()
            raise

        await self._subscribe_readiness(connection)

        if initialize:
            await self.initialize()
        return connection

    def start_initialization(self) -> SequenceHandle:
        """Start the startup sequence without waiting for it.

        A sequence already running is cancelled first.

        Returns:
            Handle to await or cancel the run
        """
        connection = self._state_machine.connection
        if connection is None:
            raise RuntimeError("Device not connected")
        return self._sequencer.run(connection)

    async def initialize(self) -> None:
        """Send the startup sequence and wait for it to finish.

        Can be repeated once OPERATIONAL to restart the machine. A failed
        write drops the link.

        Raises:
            WriteFailedError: If a write fails
            SequenceAbortedError: If the link drops or the run is superseded
        """
        try:
            await self.start_initialization().wait()
        except BLEConnectionError:
            await self._transport.disconnect()
            raise

    async def disconnect(self) -> None:
        """Disconnect and return to IDLE."""
        if self._state_machine.state is ConnectionState.IDLE:
            return

        await self._transport.disconnect()
        self._state_machine.disconnect_event()
        self._state_machine.reset()
        _LOGGER.info("Disconnected")

    def _prepare_scan(self) -> None:
        if self._state_machine.state is ConnectionState.SCANNING:
            return
        if self._state_machine.state is ConnectionState.DISCONNECTED:
            self._state_machine.reset()
        self._state_machine.start_scan()

    async def _subscribe_readiness(self, connection: Connection) -> None:
        target = self._state_machine.resolver.resolve(Role.AUTH)
        try:
            await self._transport.subscribe(
                target,
                functools.partial(self._on_auth_notification, connection),
            )
        except BLEConnectionError as e:
            _LOGGER.warning("Readiness notifications unavailable: %s", e)

    def _on_auth_notification(self, connection: Connection, data: bytes) -> None:
        if connection is not self._state_machine.connection:
            return
        _LOGGER.debug("Auth notification: %s", data.hex())
        connection.record_notification(data)

    def _on_link_lost(self, connection: Connection) -> None:
        if connection is not self._state_machine.connection:
            return
        _LOGGER.warning("Lost connection to %s", connection.device.identifier)
        self._state_machine.disconnect_event()
