"""Connection lifecycle state machine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Final, NoReturn

from .exceptions import (
    BLEConnectionError,
    IncompleteCharacteristicsError,
    InvalidTransitionError,
    LinkFailedError,
    ServiceNotFoundError,
    WriteFailedError,
)
from .models.connection import Connection
from .models.device import Device, DiscoveredCharacteristic
from .models.enums import ConnectionEvent, ConnectionState
from .resolver import CharacteristicResolver

if TYPE_CHECKING:
    from .sequencer import SequenceHandle

_LOGGER = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState, ConnectionState], None]

_S = ConnectionState
_E = ConnectionEvent

# event -> (legal source states, target state)
TRANSITIONS: Final[dict[ConnectionEvent, tuple[frozenset[ConnectionState], ConnectionState]]] = {
    _E.START_SCAN: (frozenset({_S.IDLE}), _S.SCANNING),
    _E.STOP_SCAN: (frozenset({_S.SCANNING}), _S.IDLE),
    _E.DEVICE_SELECTED: (frozenset({_S.SCANNING}), _S.CONNECTING),
    _E.LINK_ESTABLISHED: (frozenset({_S.CONNECTING}), _S.SERVICES_PENDING),
    _E.LINK_FAILED: (frozenset({_S.CONNECTING}), _S.DISCONNECTED),
    _E.SERVICES_DISCOVERED: (frozenset({_S.SERVICES_PENDING}), _S.CHARACTERISTICS_PENDING),
    _E.SERVICE_NOT_FOUND: (frozenset({_S.SERVICES_PENDING}), _S.DISCONNECTED),
    _E.BOTH_ROLES_RESOLVED: (frozenset({_S.CHARACTERISTICS_PENDING}), _S.READY),
    _E.INCOMPLETE_CHARACTERISTICS: (frozenset({_S.CHARACTERISTICS_PENDING}), _S.DISCONNECTED),
    _E.SEQUENCER_STARTED: (
        frozenset({_S.READY, _S.INITIALIZING, _S.OPERATIONAL}),
        _S.INITIALIZING,
    ),
    _E.SEQUENCER_COMPLETED: (frozenset({_S.INITIALIZING}), _S.OPERATIONAL),
    _E.WRITE_FAILED: (frozenset({_S.INITIALIZING, _S.OPERATIONAL}), _S.DISCONNECTED),
    _E.DISCONNECT: (frozenset(_S) - {_S.IDLE, _S.DISCONNECTED}, _S.DISCONNECTED),
    _E.RESET: (frozenset({_S.DISCONNECTED}), _S.IDLE),
}

WRITABLE_STATES: Final = frozenset({_S.INITIALIZING, _S.OPERATIONAL})


class ConnectionStateMachine:
    """Owns the lifecycle of the single ball machine connection.

    Every transport event is fed through one of the event methods below;
    illegal events raise InvalidTransitionError. Transport failures move the
    machine to DISCONNECTED and are re-raised to the caller.

    Entering DISCONNECTED invalidates the session atomically: the active
    sequencer run is cancelled, the resolver is reset and the Connection is
    dropped.
    """

    def __init__(self, resolver: CharacteristicResolver | None = None):
        self.resolver = resolver or CharacteristicResolver()
        self._state = ConnectionState.IDLE
        self._connection: Connection | None = None
        self._active_run: SequenceHandle | None = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def connection(self) -> Connection | None:
        """Current connection, None outside a connect attempt."""
        return self._connection

    @property
    def active_run(self) -> SequenceHandle | None:
        """Sequencer run attached to the current connection, if still running."""
        if self._active_run is not None and self._active_run.done():
            return None
        return self._active_run

    @property
    def can_write(self) -> bool:
        """Whether commands may be written to the transport."""
        return self._state in WRITABLE_STATES

    def add_listener(self, callback: StateListener) -> Callable[[], None]:
        """Register a callback invoked with (old_state, new_state).

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    # Scanning

    def start_scan(self) -> None:
        self._transition(ConnectionEvent.START_SCAN)

    def stop_scan(self) -> None:
        self._transition(ConnectionEvent.STOP_SCAN)

    def select_device(self, device: Device) -> Connection:
        """Start a connect attempt to device (stops scanning).

        Returns:
            The new Connection
        """
        self._require(ConnectionEvent.DEVICE_SELECTED)
        self._connection = Connection(device)
        self._transition(ConnectionEvent.DEVICE_SELECTED)
        return self._connection

    # Link and discovery

    def link_established(self) -> None:
        self._transition(ConnectionEvent.LINK_ESTABLISHED)

    def link_failed(self, error: LinkFailedError | None = None) -> NoReturn:
        """Record a failed connect attempt and raise the failure."""
        self._require(ConnectionEvent.LINK_FAILED)
        raise self._fail(
            ConnectionEvent.LINK_FAILED,
            error or LinkFailedError("Link could not be established"),
        )

    def services_discovered(self, service_uuids: Iterable[str]) -> None:
        """Handle completed service discovery.

        Raises:
            ServiceNotFoundError: If the ball machine service is missing
        """
        self._require(ConnectionEvent.SERVICES_DISCOVERED)
        service_uuids = list(service_uuids)
        if any(self.resolver.matches_service(uuid) for uuid in service_uuids):
            self._transition(ConnectionEvent.SERVICES_DISCOVERED)
            return

        raise self._fail(
            ConnectionEvent.SERVICE_NOT_FOUND,
            ServiceNotFoundError(
                f"Service {self.resolver.service_uuid} not found "
                f"(discovered: {', '.join(service_uuids) or 'none'})"
            ),
        )

    def characteristic_discovered(self, characteristic: DiscoveredCharacteristic) -> bool:
        """Feed one discovered characteristic of the ball machine service.

        Returns:
            True if this completed the role resolution and the machine is READY
        """
        self._require(ConnectionEvent.BOTH_ROLES_RESOLVED)
        self.resolver.match(self.resolver.service_uuid, characteristic)
        return self.both_roles_resolved()

    def both_roles_resolved(self) -> bool:
        """Move to READY if both roles are resolved.

        A partial resolution is rejected and the machine stays in
        CHARACTERISTICS_PENDING.

        Returns:
            True if the machine moved to READY
        """
        self._require(ConnectionEvent.BOTH_ROLES_RESOLVED)
        if not self.resolver.is_complete:
            _LOGGER.debug(
                "Roles not yet resolved (have: %s)",
                ", ".join(sorted(role.value for role in self.resolver.roles)) or "none",
            )
            return False

        self._transition(ConnectionEvent.BOTH_ROLES_RESOLVED)
        _LOGGER.info("Device %s ready", self._connection.device.identifier)
        return True

    def characteristics_discovered(
            self,
            characteristics: Iterable[DiscoveredCharacteristic],
    ) -> None:
        """Handle completed characteristic discovery of the ball machine service.

        Raises:
            IncompleteCharacteristicsError: If a role is still unresolved
        """
        self._require(ConnectionEvent.BOTH_ROLES_RESOLVED)
        for characteristic in characteristics:
            self.resolver.match(self.resolver.service_uuid, characteristic)

        if self.both_roles_resolved():
            return

        raise self._fail(
            ConnectionEvent.INCOMPLETE_CHARACTERISTICS,
            IncompleteCharacteristicsError(
                "Characteristic discovery finished with only "
                f"{', '.join(sorted(role.value for role in self.resolver.roles)) or 'no'} role(s)"
            ),
        )

    # Sequencer

    def attach_run(self, handle: SequenceHandle) -> None:
        """Attach the sequencer run that owns writes for this connection."""
        self._active_run = handle

    def sequencer_started(self) -> None:
        self._transition(ConnectionEvent.SEQUENCER_STARTED)

    def sequencer_completed(self) -> None:
        self._transition(ConnectionEvent.SEQUENCER_COMPLETED)

    def write_failed(self, error: WriteFailedError) -> NoReturn:
        """Record a failed write and raise it."""
        self._require(ConnectionEvent.WRITE_FAILED)
        raise self._fail(ConnectionEvent.WRITE_FAILED, error)

    # Teardown

    def disconnect_event(self) -> None:
        """Handle loss of the link (or a local disconnect).

        Ignored when IDLE or already DISCONNECTED.
        """
        if self._state in (ConnectionState.IDLE, ConnectionState.DISCONNECTED):
            _LOGGER.debug("Ignoring disconnect in state %s", self._state.value)
            return
        self._enter_disconnected(ConnectionEvent.DISCONNECT)

    def transport_error(self, error: BLEConnectionError) -> BLEConnectionError:
        """Record a transport failure outside a write.

        Enters DISCONNECTED unless already IDLE or DISCONNECTED. The error is
        stamped with the state it occurred in and returned for re-raising.
        """
        if self._state in (ConnectionState.IDLE, ConnectionState.DISCONNECTED):
            return error
        return self._fail(ConnectionEvent.DISCONNECT, error)

    def reset(self) -> None:
        """Return from DISCONNECTED to IDLE."""
        self._transition(ConnectionEvent.RESET)

    # Internals

    def _require(self, event: ConnectionEvent) -> ConnectionState:
        sources, target = TRANSITIONS[event]
        if self._state not in sources:
            raise InvalidTransitionError(
                f"Event '{event.value}' not allowed", state=self._state
            )
        return target

    def _transition(self, event: ConnectionEvent) -> None:
        target = self._require(event)
        old = self._state
        self._state = target
        _LOGGER.debug("State %s -> %s (%s)", old.value, target.value, event.value)
        for listener in list(self._listeners):
            listener(old, target)

    def _fail(self, event: ConnectionEvent, error: BLEConnectionError) -> BLEConnectionError:
        if error.state is None:
            error.state = self._state
        _LOGGER.warning("Connection failed: %s", error)
        self._enter_disconnected(event)
        return error

    def _enter_disconnected(self, event: ConnectionEvent) -> None:
        run = self._active_run
        self._active_run = None
        self._connection = None
        self.resolver.reset()
        if run is not None:
            run.cancel()
        self._transition(event)
