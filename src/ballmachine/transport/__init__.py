"""BLE transport layer."""

from .base import DisconnectedCallback, NotificationCallback, Transport
from .connection import BleakTransport

__all__ = [
    "BleakTransport",
    "DisconnectedCallback",
    "NotificationCallback",
    "Transport",
]
