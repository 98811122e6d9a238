"""Shared test fixtures for pulse_worker tests."""

from __future__ import annotations

import threading
from unittest.mock import AsyncMock, MagicMock, PropertyMock

import pytest

from tests.helpers import FakePlatform, make_hr_packet


@pytest.fixture
def hr_packet_simple() -> bytes:
    """Simple 8-bit BPM packet (72 bpm)."""
    return make_hr_packet(72)


@pytest.fixture
def hr_packet_16bit() -> bytes:
    """16-bit BPM packet (180 bpm)."""
    return make_hr_packet(180, is_16bit=True)


@pytest.fixture
def fake_platform() -> FakePlatform:
    """Platform that finds one device and accepts every operation."""
    return FakePlatform()


class Recorder:
    """Thread-safe sink for status and heart rate emissions."""

    def __init__(self):
        self._lock = threading.Lock()
        self.statuses: list[tuple[int, str]] = []
        self.heart_rates: list[int] = []

    def on_status(self, status: int, message: str) -> None:
        with self._lock:
            self.statuses.append((int(status), message))

    def on_heart_rate(self, bpm: int) -> None:
        with self._lock:
            self.heart_rates.append(bpm)

    @property
    def codes(self) -> list[int]:
        with self._lock:
            return [code for code, _ in self.statuses]

    @property
    def bpms(self) -> list[int]:
        with self._lock:
            return list(self.heart_rates)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def stop_event() -> threading.Event:
    return threading.Event()


# Mock fixtures for bleak
@pytest.fixture
def mock_bleak_client():
    """Create a mock BleakClient with an HR service and characteristic."""
    client = MagicMock()
    client.is_connected = True
    client.connect = AsyncMock()
    client.disconnect = AsyncMock()
    client.start_notify = AsyncMock()
    client.stop_notify = AsyncMock()

    characteristic = MagicMock(name="hr_measurement")
    service = MagicMock(name="hr_service")
    service.get_characteristic.return_value = characteristic

    services = MagicMock()
    services.get_service.return_value = service
    type(client).services = PropertyMock(return_value=services)

    return client


@pytest.fixture
def mock_ble_device():
    """Create a mock BLEDevice."""
    device = MagicMock()
    device.address = "AA:BB:CC:DD:EE:FF"
    device.name = "HR Monitor"
    return device


@pytest.fixture
def mock_advertisement_data():
    """Create mock AdvertisementData with HR service UUID."""
    from bleak.uuids import normalize_uuid_str

    adv = MagicMock()
    adv.service_uuids = [normalize_uuid_str("180D")]
    return adv


# Config fixtures
@pytest.fixture
def sample_config_dict() -> dict:
    """Sample config dict as would be parsed from TOML."""
    return {
        "ble": {
            "scan_timeout": 10.0,
            "connect_timeout": 20.0,
            "name_filter": "Polar",
        },
        "monitor": {
            "poll_interval": 0.05,
            "stop_timeout": 15.0,
        },
        "log": {
            "level": "DEBUG",
        },
    }


@pytest.fixture
def partial_config_dict() -> dict:
    """Partial config dict with some values missing."""
    return {
        "ble": {"scan_timeout": 3.0},
        "monitor": {"stop_timeout": 2.0},
    }
