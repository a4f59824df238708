from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Logical purpose of a writable characteristic."""
    AUTH = "auth"
    COMMAND = "command"


class ConnectionState(str, Enum):
    """Lifecycle states of a ball machine connection."""
    IDLE = "idle"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    SERVICES_PENDING = "services_pending"
    CHARACTERISTICS_PENDING = "characteristics_pending"
    READY = "ready"
    INITIALIZING = "initializing"
    OPERATIONAL = "operational"
    DISCONNECTED = "disconnected"


class ConnectionEvent(str, Enum):
    """Events that drive the connection state machine."""
    START_SCAN = "start_scan"
    STOP_SCAN = "stop_scan"
    DEVICE_SELECTED = "device_selected"
    LINK_ESTABLISHED = "link_established"
    LINK_FAILED = "link_failed"
    SERVICES_DISCOVERED = "services_discovered"
    SERVICE_NOT_FOUND = "service_not_found"
    BOTH_ROLES_RESOLVED = "both_roles_resolved"
    INCOMPLETE_CHARACTERISTICS = "incomplete_characteristics"
    SEQUENCER_STARTED = "sequencer_started"
    SEQUENCER_COMPLETED = "sequencer_completed"
    WRITE_FAILED = "write_failed"
    DISCONNECT = "disconnect"
    RESET = "reset"
