"""Connection model."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .device import Device

_LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class Connection:
    """One connect attempt to a Device.

    Lifecycle state and resolved characteristics are owned by the
    ConnectionStateMachine; a Connection only identifies the session and
    records the auth readiness notification. Compared by identity.
    """

    device: Device
    ready: bool = False
    ready_payload: bytes | None = None
    notifications: int = 0

    def record_notification(self, data: bytes) -> None:
        """Record a notification received on the auth characteristic."""
        self.notifications += 1
        self.ready_payload = bytes(data)
        if not self.ready:
            _LOGGER.info("Device %s signalled readiness", self.device.identifier)
        self.ready = True
