"""Shared test helpers for pulse_worker tests."""

from __future__ import annotations

import threading
import time


def make_hr_packet(
    bpm: int,
    *,
    is_16bit: bool = False,
    energy: int | None = None,
    rr_intervals: list[int] | None = None,
) -> bytes:
    """Build a BLE HR measurement packet.

    Args:
        bpm: Heart rate in BPM
        is_16bit: If True, use 16-bit BPM format
        energy: Energy expended in joules (if supported)
        rr_intervals: RR intervals in 1/1024 second units

    Returns:
        Raw bytes for HR measurement characteristic
    """
    flags = 0
    if is_16bit:
        flags |= 0b1
    if energy is not None:
        flags |= 0b1000
    if rr_intervals:
        flags |= 0b10000

    data = bytearray([flags])
    if is_16bit:
        data.extend(bpm.to_bytes(2, "little"))
    else:
        data.append(bpm)
    if energy is not None:
        data.extend(energy.to_bytes(2, "little"))
    for rr in rr_intervals or []:
        data.extend(rr.to_bytes(2, "little"))
    return bytes(data)


class FakePlatform:
    """Scripted in-memory BLE platform.

    Every call is appended to ``calls`` as a tuple so tests can check
    ordering. Failures are injected by setting the ``*_error`` attributes
    or by making ``devices``/``service``/``characteristic`` empty.
    """

    def __init__(self, devices: list | None = None):
        self.devices = ["hr-device"] if devices is None else devices
        self.service: object | None = "hr-service"
        self.characteristic: object | None = "hr-measurement"
        self.connect_error: Exception | None = None
        self.subscribe_error: Exception | None = None
        self.unsubscribe_error: Exception | None = None
        self.close_error: Exception | None = None
        self.calls: list[tuple] = []
        self.status_callback = None
        self.value_callback = None
        self._lock = threading.Lock()

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def call_names(self) -> list[str]:
        with self._lock:
            return [call[0] for call in self.calls]

    async def find_devices(self, service_uuid):
        self._record("find_devices", service_uuid)
        return list(self.devices)

    async def connect(self, device):
        self._record("connect", device)
        if self.connect_error is not None:
            raise self.connect_error
        return f"handle:{device}"

    def set_connection_status_callback(self, device, callback):
        self._record("set_connection_status_callback", device, callback is not None)
        self.status_callback = callback

    async def resolve_service(self, device, service_uuid):
        self._record("resolve_service", device, service_uuid)
        return self.service

    async def resolve_characteristic(self, service, characteristic_uuid):
        self._record("resolve_characteristic", service, characteristic_uuid)
        return self.characteristic

    async def write_notification_config(self, characteristic, enable):
        self._record("write_notification_config", characteristic, enable)
        if enable and self.subscribe_error is not None:
            raise self.subscribe_error
        if not enable and self.unsubscribe_error is not None:
            raise self.unsubscribe_error

    def set_value_callback(self, characteristic, callback):
        self._record("set_value_callback", characteristic, callback is not None)
        self.value_callback = callback

    async def close(self, device):
        self._record("close", device)
        if self.close_error is not None:
            raise self.close_error

    # Simulated peripheral events, callable from any thread

    def push_value(self, data: bytes) -> None:
        callback = self.value_callback
        assert callback is not None, "not subscribed"
        callback(data)

    def drop_connection(self) -> None:
        callback = self.status_callback
        assert callback is not None, "no connection status callback"
        callback(False)


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll predicate from a plain thread until true or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
