"""BLE platform capability and its bleak implementation."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from bleak import BleakClient, BleakScanner
from bleak.backends.characteristic import BleakGATTCharacteristic
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.backends.service import BleakGATTService
from bleak.uuids import normalize_uuid_str

from .errors import ConnectError, SubscriptionError

logger = logging.getLogger(__name__)

HR_SERVICE_UUID = normalize_uuid_str("180D")
HR_MEASUREMENT_UUID = normalize_uuid_str("2A37")

ConnectionStatusCallback = Callable[[bool], None]
ValueCallback = Callable[[bytes], None]


class BLEPlatform(Protocol):
    """Operations a BLE session needs from the Bluetooth stack.

    Handles returned by one method are opaque to the session and only
    passed back into other methods of the same platform. Callback setters
    accept None to unregister.
    """

    async def find_devices(self, service_uuid: str) -> list[Any]: ...

    async def connect(self, device: Any) -> Any: ...

    def set_connection_status_callback(self, device: Any, callback: ConnectionStatusCallback | None) -> None: ...

    async def resolve_service(self, device: Any, service_uuid: str) -> Any | None: ...

    async def resolve_characteristic(self, service: Any, characteristic_uuid: str) -> Any | None: ...

    async def write_notification_config(self, characteristic: Any, enable: bool) -> None: ...

    def set_value_callback(self, characteristic: Any, callback: ValueCallback | None) -> None: ...

    async def close(self, device: Any) -> None: ...


async def scan_hr_devices(
    timeout: float = 5.0,
    name_filter: str | None = None,
    service_uuid: str = HR_SERVICE_UUID,
) -> list[BLEDevice]:
    """Scan for BLE devices advertising the Heart Rate service.

    Args:
        timeout: Scan duration in seconds
        name_filter: Optional case-insensitive substring to filter device names
        service_uuid: Service UUID the devices must advertise

    Returns:
        Discovered devices, in the order they were first seen
    """
    devices: dict[str, BLEDevice] = {}  # Use dict to deduplicate by address
    filter_lower = name_filter.lower() if name_filter else None

    def detection_callback(device: BLEDevice, adv: AdvertisementData) -> None:
        service_uuids = adv.service_uuids or []
        if service_uuid in service_uuids:
            if device.address in devices:
                return
            name = device.name or "Unknown"
            if filter_lower is None or filter_lower in name.lower():
                logger.debug("Discovered: %s (%s)", name, device.address)
                devices[device.address] = device

    scanner = BleakScanner(detection_callback=detection_callback)
    await scanner.start()
    try:
        await asyncio.sleep(timeout)
    finally:
        await scanner.stop()

    logger.debug("Scan complete, found %d device(s)", len(devices))
    return list(devices.values())


@dataclass
class BleakDeviceHandle:
    """Connected peripheral plus its connection-status callback slot."""

    device: BLEDevice
    client: BleakClient | None = None
    status_callback: ConnectionStatusCallback | None = None

    def _on_disconnected(self, _: BleakClient) -> None:
        callback = self.status_callback
        if callback is not None:
            callback(False)


@dataclass
class BleakServiceHandle:
    client: BleakClient
    service: BleakGATTService


@dataclass
class BleakCharacteristicHandle:
    """Measurement characteristic plus its value-change callback slot."""

    client: BleakClient
    characteristic: BleakGATTCharacteristic
    value_callback: ValueCallback | None = field(default=None)

    def _on_notify(self, _: BleakGATTCharacteristic, data: bytearray) -> None:
        callback = self.value_callback
        if callback is not None:
            callback(bytes(data))


class BleakPlatform:
    """BLEPlatform backed by bleak.

    Must be created and used on the event loop of the thread running the
    session; bleak clients are bound to the loop they were connected on.
    """

    def __init__(
        self,
        scan_timeout: float = 5.0,
        connect_timeout: float = 10.0,
        name_filter: str | None = None,
    ):
        self.scan_timeout = scan_timeout
        self.connect_timeout = connect_timeout
        self.name_filter = name_filter or None

    async def find_devices(self, service_uuid: str) -> list[BLEDevice]:
        """Scan for scan_timeout seconds; devices advertising service_uuid."""
        return await scan_hr_devices(
            timeout=self.scan_timeout,
            name_filter=self.name_filter,
            service_uuid=service_uuid,
        )

    async def connect(self, device: BLEDevice) -> BleakDeviceHandle:
        """Connect to device.

        Raises:
            ConnectError: The connection attempt failed or timed out
        """
        handle = BleakDeviceHandle(device)
        client = BleakClient(device, disconnected_callback=handle._on_disconnected, timeout=self.connect_timeout)
        try:
            logger.debug("Connecting to %s...", device.address)
            await client.connect()
        except Exception as e:
            raise ConnectError(f"Failed to connect to {device.address}: {e}") from e
        if not client.is_connected:
            raise ConnectError(f"Device {device.address} did not connect")
        handle.client = client
        return handle

    def set_connection_status_callback(
        self,
        device: BleakDeviceHandle,
        callback: ConnectionStatusCallback | None,
    ) -> None:
        """Set the callback told about a dropped link; None unregisters it."""
        device.status_callback = callback

    async def resolve_service(self, device: BleakDeviceHandle, service_uuid: str) -> BleakServiceHandle | None:
        """Look up service_uuid in the services bleak discovered on connect."""
        if device.client is None:
            return None
        service = device.client.services.get_service(service_uuid)
        if service is None:
            return None
        return BleakServiceHandle(device.client, service)

    async def resolve_characteristic(
        self,
        service: BleakServiceHandle,
        characteristic_uuid: str,
    ) -> BleakCharacteristicHandle | None:
        """Look up characteristic_uuid within service, or None."""
        characteristic = service.service.get_characteristic(characteristic_uuid)
        if characteristic is None:
            return None
        return BleakCharacteristicHandle(service.client, characteristic)

    async def write_notification_config(self, characteristic: BleakCharacteristicHandle, enable: bool) -> None:
        """Enable or disable notifications for characteristic.

        Raises:
            SubscriptionError: Enabling notifications failed
        """
        client = characteristic.client
        if enable:
            try:
                await client.start_notify(characteristic.characteristic, characteristic._on_notify)
            except Exception as e:
                raise SubscriptionError(f"Failed to subscribe to HR notifications: {e}") from e
        elif client.is_connected:
            # A dropped link has no notification state left to clear
            await client.stop_notify(characteristic.characteristic)

    def set_value_callback(self, characteristic: BleakCharacteristicHandle, callback: ValueCallback | None) -> None:
        """Set the callback receiving raw notification payloads."""
        characteristic.value_callback = callback

    async def close(self, device: BleakDeviceHandle) -> None:
        """Disconnect the device; closing an already released handle is a no-op."""
        client, device.client = device.client, None
        if client is not None and client.is_connected:
            await client.disconnect()
