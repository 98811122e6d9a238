"""BLE heart rate session: discovery, connection, subscription and teardown."""

import asyncio
import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any

from .ble import HR_MEASUREMENT_UUID, HR_SERVICE_UUID, BLEPlatform
from .errors import ConnectError, DecodeError, DiscoveryError, ResolutionError, SessionError
from .parser import decode_heart_rate
from .status import SessionState, Status

logger = logging.getLogger(__name__)

StatusEmitter = Callable[[Status, str], None]
HeartRateEmitter = Callable[[int], None]

MAX_POLL_INTERVAL = 0.1


class _Event(Enum):
    VALUE = "value"
    DISCONNECTED = "disconnected"


class HeartRateSession:
    """One monitoring run against a single heart rate peripheral.

    The session owns the device and characteristic handles it acquires
    and releases each of them exactly once, whatever way ``run`` ends.
    Platform callbacks never touch session state directly: they post
    events that the monitoring loop consumes on the session's own loop.

    Args:
        platform: Bluetooth stack the session drives
        stop_event: Control signal; set by the host to stop, and by the
            session itself when the device disconnects
        on_status: Receives every status transition, in order
        on_heart_rate: Receives each decoded BPM value, in arrival order
        poll_interval: Upper bound on how long a set stop_event goes unnoticed
    """

    def __init__(
        self,
        platform: BLEPlatform,
        stop_event: threading.Event,
        on_status: StatusEmitter,
        on_heart_rate: HeartRateEmitter,
        poll_interval: float = MAX_POLL_INTERVAL,
    ):
        self._platform = platform
        self._stop_event = stop_event
        self._on_status = on_status
        self._on_heart_rate = on_heart_rate
        self._poll_interval = min(poll_interval, MAX_POLL_INTERVAL)
        self.state = SessionState.IDLE
        self._device: Any = None
        self._characteristic: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._events: asyncio.Queue[tuple[_Event, Any]] | None = None

    @property
    def device(self) -> Any:
        return self._device

    @property
    def characteristic(self) -> Any:
        return self._characteristic

    def _transition(self, state: SessionState, status: Status, message: str) -> None:
        logger.debug("Session %s -> %s", self.state.value, state.value)
        self.state = state
        self._emit_status(status, message)

    def _emit_status(self, status: Status, message: str) -> None:
        # Emitter errors must not interrupt the state machine or its cleanup
        try:
            self._on_status(status, message)
        except Exception:
            logger.exception("Status emitter raised")

    def _stop_requested(self) -> bool:
        if self._stop_event.is_set():
            logger.debug("Stop requested during %s", self.state.value)
            return True
        return False

    def _post(self, kind: _Event, payload: Any = None) -> None:
        """Hand a platform event to the session loop; safe from any thread."""
        if self._loop is None or self._events is None:
            return
        self._loop.call_soon_threadsafe(self._events.put_nowait, (kind, payload))

    def _on_value_changed(self, data: bytes) -> None:
        self._post(_Event.VALUE, data)

    def _on_connection_status(self, connected: bool) -> None:
        if not connected:
            self._post(_Event.DISCONNECTED)

    async def run(self) -> None:
        """Run the session until stopped, disconnected or failed.

        Never raises for BLE failures: they are reported as
        ``Status.RUNTIME_ERROR``. Exceptions from the emitters are logged
        and swallowed. A stop requested before Monitoring is reached skips
        the remaining setup steps. Cancellation still runs the cleanup.
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError("A session can only be run once")
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()

        failure = None
        try:
            await self._open()
            await self._monitor()
        except SessionError as e:
            failure = str(e)
        except Exception as e:
            logger.debug("Unexpected platform error", exc_info=True)
            failure = f"BLE error: {e}"
        finally:
            await self._teardown(failure)

    async def _open(self) -> None:
        self._transition(SessionState.SCANNING, Status.SCANNING, "Starting scan...")
        devices = await self._platform.find_devices(HR_SERVICE_UUID)
        if not devices:
            raise DiscoveryError("No HR device found")
        # Single-device policy: the first match is used
        device = devices[0]
        if self._stop_requested():
            return

        self._transition(SessionState.CONNECTING, Status.CONNECTING, "Connecting...")
        self._device = await self._platform.connect(device)
        if self._device is None:
            raise ConnectError("Failed to get device handle")
        self._platform.set_connection_status_callback(self._device, self._on_connection_status)
        if self._stop_requested():
            return

        self._transition(SessionState.RESOLVING_SERVICES, Status.DISCOVERING, "Discovering services...")
        service = await self._platform.resolve_service(self._device, HR_SERVICE_UUID)
        if service is None:
            raise ResolutionError("HR service not found")
        characteristic = await self._platform.resolve_characteristic(service, HR_MEASUREMENT_UUID)
        if characteristic is None:
            raise ResolutionError("HR measurement characteristic not found")
        if self._stop_requested():
            return

        self._transition(SessionState.SUBSCRIBING, Status.SUBSCRIBING, "Subscribing...")
        self._characteristic = characteristic
        await self._platform.write_notification_config(characteristic, True)
        self._platform.set_value_callback(characteristic, self._on_value_changed)

        self._transition(SessionState.MONITORING, Status.CONNECTED, "Connected and monitoring")

    async def _monitor(self) -> None:
        assert self._events is not None
        while not self._stop_event.is_set():
            try:
                kind, payload = await asyncio.wait_for(self._events.get(), self._poll_interval)
            except TimeoutError:
                continue

            if kind is _Event.VALUE:
                self._handle_value(payload)
            elif kind is _Event.DISCONNECTED:
                self._stop_event.set()
                self._emit_status(Status.DISCONNECTED, "Device disconnected")

    def _handle_value(self, data: bytes) -> None:
        try:
            bpm = decode_heart_rate(data)
        except DecodeError as e:
            logger.warning("Malformed HR packet: %s", e)
            return
        logger.debug("HR: %d bpm", bpm)
        try:
            self._on_heart_rate(bpm)
        except Exception:
            logger.exception("Heart rate emitter raised")

    async def _teardown(self, failure: str | None) -> None:
        # Detach first so no handle can be released twice
        characteristic, self._characteristic = self._characteristic, None
        device, self._device = self._device, None

        if failure is None:
            self._transition(SessionState.STOPPING, Status.STOPPING, "Stopping...")
        else:
            self._transition(SessionState.FAILED, Status.RUNTIME_ERROR, failure)

        if characteristic is not None:
            try:
                self._platform.set_value_callback(characteristic, None)
                await self._platform.write_notification_config(characteristic, False)
            except Exception as e:
                self._cleanup_failed("unsubscribe", e)

        if device is not None:
            try:
                self._platform.set_connection_status_callback(device, None)
                await self._platform.close(device)
            except Exception as e:
                self._cleanup_failed("close", e)

        self._transition(SessionState.STOPPED, Status.STOPPED, "Stopped")

    def _cleanup_failed(self, step: str, error: Exception) -> None:
        logger.warning("Cleanup %s failed: %s", step, error)
        self._emit_status(Status.CLEANUP_ERROR, f"Cleanup error: {error}")
