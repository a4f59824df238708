"""Test scan registry and device discovery."""

import pytest

from ballmachine.discovery import ScanRegistry, collect_devices, discover_devices
from ballmachine.models.device import Device


class TestScanRegistry:
    """Test deduplication of advertisement sightings."""

    def test_observe_same_identifier_once(self):
        registry = ScanRegistry()

        registry.observe(Device("AA:BB:CC:DD:EE:01", "Ball Machine"))
        registry.observe(Device("AA:BB:CC:DD:EE:01", "Ball Machine"))

        assert len(registry.all()) == 1

    def test_discovery_order(self):
        registry = ScanRegistry()
        for identifier in ("C", "A", "B", "A"):
            registry.observe(Device(identifier))

        assert [device.identifier for device in registry.all()] == ["C", "A", "B"]

    def test_later_sighting_updates_name_and_services(self):
        registry = ScanRegistry()
        registry.observe(Device("A", None, ("FF10",)))
        registry.observe(Device("B"))

        merged = registry.observe(Device("A", "Ball Machine", ("FF10", "180A")))

        assert merged.name == "Ball Machine"
        assert merged.service_uuids == ("FF10", "180A")
        assert registry.all()[0] is merged
        assert registry.get("A") is merged

    def test_missing_name_keeps_known_name(self):
        registry = ScanRegistry()
        registry.observe(Device("A", "Ball Machine"))

        registry.observe(Device("A", None))

        assert registry.get("A").name == "Ball Machine"

    def test_clear(self):
        registry = ScanRegistry()
        registry.observe(Device("A"))

        registry.clear()

        assert registry.all() == []
        assert "A" not in registry

    def test_display_name_fallback(self):
        assert Device("A").display_name == "Unknown Device"
        assert Device("A", "Ball Machine").display_name == "Ball Machine"


@pytest.mark.asyncio
async def test_collect_devices_stops_scan_after_duration(make_transport):
    """Bounded scans close the transport stream."""
    transport = make_transport(
        advertisements=[Device("A", "One"), Device("B"), Device("A", "One")]
    )
    registry = ScanRegistry()

    devices = await collect_devices(transport, registry, duration=0.05)

    assert [device.identifier for device in devices] == ["A", "B"]
    assert transport.scan_closed


@pytest.mark.asyncio
async def test_discover_devices_with_transport(make_transport):
    transport = make_transport(advertisements=[Device("A"), Device("A")])

    devices = await discover_devices(timeout=0.05, transport=transport)

    assert devices == [Device("A")]
