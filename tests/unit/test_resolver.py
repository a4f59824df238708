"""Test role to characteristic resolution."""

import pytest

from ballmachine.exceptions import CharacteristicNotFoundError
from ballmachine.models.device import DiscoveredCharacteristic
from ballmachine.models.enums import Role
from ballmachine.resolver import CharacteristicResolver

SERVICE_128 = "0000ff10-0000-1000-8000-00805f9b34fb"


class TestRegisterResolve:
    """Test explicit registration."""

    def test_resolve_registered(self):
        resolver = CharacteristicResolver()
        resolver.register(Role.AUTH, "auth-target")

        assert resolver.resolve(Role.AUTH) == "auth-target"

    def test_last_registration_wins(self):
        resolver = CharacteristicResolver()
        resolver.register(Role.COMMAND, "first")
        resolver.register(Role.COMMAND, "second")

        assert resolver.resolve(Role.COMMAND) == "second"
        assert len(resolver) == 1

    def test_resolve_missing_role(self):
        resolver = CharacteristicResolver()

        with pytest.raises(CharacteristicNotFoundError, match="role 'command'"):
            resolver.resolve(Role.COMMAND)

    def test_reset_clears_everything(self):
        resolver = CharacteristicResolver()
        resolver.register(Role.AUTH, "a")
        resolver.register(Role.COMMAND, "c")
        assert resolver.is_complete

        resolver.reset()

        assert len(resolver) == 0
        assert not resolver.is_complete
        with pytest.raises(CharacteristicNotFoundError):
            resolver.resolve(Role.AUTH)


class TestMatch:
    """Test matching discovered characteristics to roles."""

    def test_match_short_uuids(self):
        resolver = CharacteristicResolver()

        assert resolver.match("FF10", DiscoveredCharacteristic("FF12", target="a")) is Role.AUTH
        assert resolver.match("FF10", DiscoveredCharacteristic("FFF3", target="c")) is Role.COMMAND
        assert resolver.is_complete
        assert resolver.resolve(Role.AUTH) == "a"
        assert resolver.resolve(Role.COMMAND) == "c"

    def test_match_full_uuids(self):
        """Short and 128-bit forms of the same UUID are equivalent."""
        resolver = CharacteristicResolver()
        characteristic = DiscoveredCharacteristic(
            "0000ff12-0000-1000-8000-00805f9b34fb", target="a"
        )

        assert resolver.match(SERVICE_128, characteristic) is Role.AUTH

    def test_other_service_ignored(self):
        resolver = CharacteristicResolver()

        assert resolver.match("180A", DiscoveredCharacteristic("FF12", target="a")) is None
        assert resolver.roles == frozenset()

    def test_unknown_characteristic_ignored(self):
        resolver = CharacteristicResolver()

        assert resolver.match("FF10", DiscoveredCharacteristic("FF01", target="x")) is None
        assert len(resolver) == 0

    def test_read_only_characteristic_ignored(self):
        resolver = CharacteristicResolver()
        characteristic = DiscoveredCharacteristic("FFF3", target="c", properties=("read", "notify"))

        assert resolver.match("FF10", characteristic) is None

    def test_write_without_response_accepted(self):
        resolver = CharacteristicResolver()
        characteristic = DiscoveredCharacteristic(
            "FFF3", target="c", properties=("write-without-response",)
        )

        assert resolver.match("FF10", characteristic) is Role.COMMAND

    def test_custom_identifiers(self):
        resolver = CharacteristicResolver("FFE0", auth_uuid="FF01", command_uuid="FF02")

        assert resolver.matches_service("ffe0")
        assert resolver.match("FFE0", DiscoveredCharacteristic("FF01", target="a")) is Role.AUTH
        assert resolver.match("FFE0", DiscoveredCharacteristic("FF02", target="c")) is Role.COMMAND
