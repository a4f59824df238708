"""Ball machine BLE control package.

  Pure Python package for starting BLE tennis ball machines.
  """

from .device import BallMachine
from .discovery import ScanRegistry, discover_devices
from .exceptions import (
    BallMachineError,
    BLEConnectionError,
    CharacteristicNotFoundError,
    IncompleteCharacteristicsError,
    InvalidChunkSizeError,
    InvalidTransitionError,
    LinkFailedError,
    MalformedLiteralError,
    ProtocolError,
    SequenceAbortedError,
    ServiceNotFoundError,
    WriteFailedError,
)
from .models.connection import Connection
from .models.device import Device, DiscoveredCharacteristic
from .models.enums import ConnectionEvent, ConnectionState, Role
from .protocol import (
    AUTH_CHARACTERISTIC_UUID,
    CHUNK_SIZE,
    COMMAND_CHARACTERISTIC_UUID,
    SERVICE_UUID,
    STARTUP_SEQUENCE,
    CommandFrame,
    chunk_frame,
    decode_hex,
    encode_hex,
)
from .resolver import CharacteristicResolver
from .sequencer import InitializationSequencer, SequenceHandle
from .state_machine import ConnectionStateMachine
from .transport import BleakTransport, Transport

__version__ = "0.1.0"

__all__ = [
    # Main API
    "BallMachine",
    "discover_devices",
    # Core
    "ConnectionStateMachine",
    "InitializationSequencer",
    "SequenceHandle",
    "CharacteristicResolver",
    "ScanRegistry",
    # Transport
    "Transport",
    "BleakTransport",
    # Exceptions
    "BallMachineError",
    "ProtocolError",
    "MalformedLiteralError",
    "InvalidChunkSizeError",
    "CharacteristicNotFoundError",
    "InvalidTransitionError",
    "SequenceAbortedError",
    "BLEConnectionError",
    "LinkFailedError",
    "ServiceNotFoundError",
    "IncompleteCharacteristicsError",
    "WriteFailedError",
    # Models
    "Connection",
    "Device",
    "DiscoveredCharacteristic",
    "ConnectionEvent",
    "ConnectionState",
    "Role",
    "CommandFrame",
    # Utilities
    "decode_hex",
    "encode_hex",
    "chunk_frame",
    # Constants
    "SERVICE_UUID",
    "AUTH_CHARACTERISTIC_UUID",
    "COMMAND_CHARACTERISTIC_UUID",
    "CHUNK_SIZE",
    "STARTUP_SEQUENCE",
]
