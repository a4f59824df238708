"""Shared fakes for ball machine tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from ballmachine.exceptions import BLEConnectionError, LinkFailedError, WriteFailedError
from ballmachine.models.device import Device, DiscoveredCharacteristic
from ballmachine.transport.base import Transport


class FakeTransport(Transport):
    """In-memory transport recording every write.

    Targets are the characteristic UUID strings, so written targets can be
    compared directly.
    """

    def __init__(
            self,
            services: list[str] | None = None,
            characteristics: list[DiscoveredCharacteristic] | None = None,
            advertisements: list[Device] | None = None,
    ):
        self.services = ["FF10"] if services is None else services
        self.characteristics = (
            [
                DiscoveredCharacteristic("FF12", target="FF12", properties=("write", "notify")),
                DiscoveredCharacteristic("FFF3", target="FFF3", properties=("write",)),
            ]
            if characteristics is None
            else characteristics
        )
        self.advertisements = advertisements or []
        self.writes: list[tuple[Any, bytes]] = []
        self.write_tasks: list[asyncio.Task | None] = []
        self.on_write: Callable[[int, Any, bytes], Any] | None = None
        self.fail_connect = False
        self.fail_discovery = False
        self.fail_write_at: int | None = None
        self.fail_subscribe = False
        self.subscriptions: dict[Any, Callable[[bytes], None]] = {}
        self.disconnected_callback: Callable[[], None] | None = None
        self.disconnect_calls = 0
        self.scan_closed = False
        self._connected = False

    async def scan(self, service_uuid: str) -> AsyncIterator[Device]:
        try:
            for device in self.advertisements:
                yield device
            await asyncio.Event().wait()
        finally:
            self.scan_closed = True

    async def connect(self, device, disconnected_callback) -> None:
        if self.fail_connect:
            raise LinkFailedError("Device did not answer")
        self.disconnected_callback = disconnected_callback
        self._connected = True

    async def discover_services(self) -> list[str]:
        if self.fail_discovery:
            self._connected = False
            raise BLEConnectionError("Not connected")
        return list(self.services)

    async def discover_characteristics(self, service_uuid: str) -> list[DiscoveredCharacteristic]:
        return list(self.characteristics)

    async def write(self, target, data: bytes, with_response: bool = True) -> None:
        index = len(self.writes)
        self.writes.append((target, bytes(data)))
        self.write_tasks.append(asyncio.current_task())
        if self.fail_write_at == index:
            raise WriteFailedError("GATT error 0x0e")
        if self.on_write is not None:
            result = self.on_write(index, target, bytes(data))
            if asyncio.iscoroutine(result):
                await result

    async def subscribe(self, target, callback) -> None:
        if self.fail_subscribe:
            raise BLEConnectionError("Notify not permitted")
        self.subscriptions[target] = callback

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        was_connected = self._connected
        self._connected = False
        if was_connected and self.disconnected_callback is not None:
            self.disconnected_callback()

    @property
    def is_connected(self) -> bool:
        return self._connected

    def drop_link(self) -> None:
        """Simulate the peripheral going away."""
        self._connected = False
        if self.disconnected_callback is not None:
            self.disconnected_callback()


class SleepRecorder:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    return FakeTransport
