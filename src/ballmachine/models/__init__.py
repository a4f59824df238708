"""Data models for ball machine devices."""

from .connection import Connection
from .device import Device, DiscoveredCharacteristic
from .enums import ConnectionEvent, ConnectionState, Role

__all__ = [
    "Connection",
    "ConnectionEvent",
    "ConnectionState",
    "Device",
    "DiscoveredCharacteristic",
    "Role",
]
