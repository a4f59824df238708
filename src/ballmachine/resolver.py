"""Role to characteristic resolution."""

from __future__ import annotations

import logging
from typing import Any

from bleak.uuids import normalize_uuid_str

from .exceptions import CharacteristicNotFoundError
from .models.device import DiscoveredCharacteristic
from .models.enums import Role
from .protocol.commands import (
    AUTH_CHARACTERISTIC_UUID,
    COMMAND_CHARACTERISTIC_UUID,
    SERVICE_UUID,
)

_LOGGER = logging.getLogger(__name__)


class CharacteristicResolver:
    """Maps logical roles to transport write targets for one connection.

    Registrations are filled in while characteristics are discovered and
    cleared on disconnect, so no target survives into the next session.
    """

    def __init__(
            self,
            service_uuid: str = SERVICE_UUID,
            auth_uuid: str = AUTH_CHARACTERISTIC_UUID,
            command_uuid: str = COMMAND_CHARACTERISTIC_UUID,
    ):
        """Initialize resolver.

        Args:
            service_uuid: Service the characteristics must belong to
            auth_uuid: Characteristic identifier of the auth role
            command_uuid: Characteristic identifier of the command role
        """
        self.service_uuid = normalize_uuid_str(service_uuid)
        self._role_by_uuid = {
            normalize_uuid_str(auth_uuid): Role.AUTH,
            normalize_uuid_str(command_uuid): Role.COMMAND,
        }
        self._targets: dict[Role, Any] = {}

    def register(self, role: Role, target: Any) -> None:
        """Register the write target for a role (last registration wins)."""
        self._targets[role] = target

    def resolve(self, role: Role) -> Any:
        """Get the write target for a role.

        Raises:
            CharacteristicNotFoundError: If the role is not registered
        """
        try:
            return self._targets[role]
        except KeyError:
            raise CharacteristicNotFoundError(
                f"No characteristic registered for role '{role.value}'"
            ) from None

    def reset(self) -> None:
        """Forget all registrations."""
        self._targets.clear()

    def matches_service(self, service_uuid: str) -> bool:
        """Check whether a service UUID is the configured service."""
        return normalize_uuid_str(service_uuid) == self.service_uuid

    def match(self, service_uuid: str, characteristic: DiscoveredCharacteristic) -> Role | None:
        """Register a discovered characteristic if it fills a role.

        Args:
            service_uuid: Service the characteristic was discovered in
            characteristic: Discovered characteristic

        Returns:
            The role the characteristic was registered for, or None if ignored
        """
        if not self.matches_service(service_uuid):
            return None

        role = self._role_by_uuid.get(normalize_uuid_str(characteristic.uuid))
        if role is None:
            return None

        if not characteristic.is_writable:
            _LOGGER.debug(
                "Ignoring %s characteristic %s: not writable (%s)",
                role.value,
                characteristic.uuid,
                ", ".join(characteristic.properties),
            )
            return None

        _LOGGER.debug("Found %s characteristic %s", role.value, characteristic.uuid)
        self.register(role, characteristic.target)
        return role

    @property
    def roles(self) -> frozenset[Role]:
        """Roles registered so far."""
        return frozenset(self._targets)

    @property
    def is_complete(self) -> bool:
        """True once every role has a target."""
        return len(self._targets) == len(Role)

    def __len__(self) -> int:
        return len(self._targets)
