"""Monitoring controller: owns the worker thread and the host callbacks."""

import asyncio
import logging
import threading
from collections.abc import Callable

from .ble import BleakPlatform, BLEPlatform
from .config import Config
from .errors import AlreadyRunning, JoinFailed, NotRunning, ThreadCreationFailed
from .session import HeartRateSession
from .status import Status

logger = logging.getLogger(__name__)

StatusCallback = Callable[[int, str], None]
HeartRateCallback = Callable[[int], None]
PlatformFactory = Callable[[], BLEPlatform]


class MonitorController:
    """Starts and stops one heart rate session at a time.

    The session runs on a dedicated worker thread with its own event loop,
    so ``start`` returns immediately. Callbacks are invoked on that worker
    thread; they must be quick and must not call ``start`` or ``stop``.

    The worker is a daemon thread so a forgotten session never blocks
    interpreter exit. Exiting that way skips unsubscribe and close, so
    hosts call ``stop`` first; ``api.initialize`` registers an exit hook
    that does it for them.
    """

    def __init__(
        self,
        config: Config | None = None,
        platform_factory: PlatformFactory | None = None,
    ):
        self.config = config or Config()
        self._platform_factory = platform_factory or self._default_platform
        self._stop_event = threading.Event()
        self._callback_lock = threading.RLock()
        self._lifecycle_lock = threading.Lock()
        self._status_callback: StatusCallback | None = None
        self._hr_callback: HeartRateCallback | None = None
        self._worker: threading.Thread | None = None
        self._current_status = Status.STOPPED

    def _default_platform(self) -> BLEPlatform:
        ble = self.config.ble
        return BleakPlatform(
            scan_timeout=ble.scan_timeout,
            connect_timeout=ble.connect_timeout,
            name_filter=ble.name_filter,
        )

    def register_status_callback(self, callback: StatusCallback | None) -> None:
        """Replace the status callback; None unregisters it."""
        with self._callback_lock:
            self._status_callback = callback

    def register_heart_rate_callback(self, callback: HeartRateCallback | None) -> None:
        """Replace the heart rate callback; None unregisters it."""
        with self._callback_lock:
            self._hr_callback = callback

    @property
    def current_status(self) -> Status:
        """Last emitted status code."""
        return self._current_status

    @property
    def is_running(self) -> bool:
        worker = self._worker
        return worker is not None and worker.is_alive()

    def _emit_status(self, status: Status, message: str) -> None:
        self._current_status = status
        logger.info("Status %d: %s", status, message)
        with self._callback_lock:
            callback = self._status_callback
            if callback is None:
                return
            try:
                callback(status, message)
            except Exception:
                logger.exception("Status callback raised")

    def _emit_heart_rate(self, bpm: int) -> None:
        with self._callback_lock:
            callback = self._hr_callback
            if callback is None:
                return
            try:
                callback(bpm)
            except Exception:
                logger.exception("Heart rate callback raised")

    def _run_worker(self) -> None:
        """Worker thread body: one session on a fresh event loop."""
        try:
            platform = self._platform_factory()
            session = HeartRateSession(
                platform,
                self._stop_event,
                on_status=self._emit_status,
                on_heart_rate=self._emit_heart_rate,
                poll_interval=self.config.monitor.poll_interval,
            )
            asyncio.run(session.run())
        except Exception as e:
            logger.exception("Worker failed")
            self._emit_status(Status.RUNTIME_ERROR, f"Worker error: {e}")
            self._emit_status(Status.STOPPED, "Stopped")
        logger.debug("Worker exiting")

    def start(self) -> None:
        """Spawn the worker and return without waiting for it.

        The worker is a daemon thread: it does not keep the interpreter
        alive, and is killed without cleanup if the interpreter exits
        before ``stop`` is called.

        Raises:
            AlreadyRunning: A worker is still active
            ThreadCreationFailed: The worker thread could not be started
        """
        with self._lifecycle_lock:
            if self.is_running:
                raise AlreadyRunning("Monitoring is already running")
            if self._worker is not None:
                # Previous session ended on its own; reap it
                self._worker.join()
                self._worker = None

            self._stop_event.clear()
            worker = threading.Thread(target=self._run_worker, name="hr-worker", daemon=True)
            try:
                worker.start()
            except RuntimeError as e:
                raise ThreadCreationFailed(f"Failed to start worker thread: {e}") from e
            self._worker = worker
            logger.debug("Worker started")

    def stop(self) -> None:
        """Signal the worker to stop and wait until cleanup has finished.

        Waits forever unless ``monitor.stop_timeout`` is positive.

        Raises:
            NotRunning: No worker was started
            JoinFailed: The worker could not be joined (timeout, or called
                from the worker thread itself)
        """
        with self._lifecycle_lock:
            worker = self._worker
            if worker is None:
                raise NotRunning("Monitoring is not running")

            logger.debug("Stopping worker...")
            self._stop_event.set()

            timeout = self.config.monitor.stop_timeout or None
            try:
                worker.join(timeout)
            except RuntimeError as e:
                raise JoinFailed(f"Failed to join worker thread: {e}") from e
            if worker.is_alive():
                raise JoinFailed(f"Worker did not stop within {timeout:.1f}s")

            self._worker = None
            logger.debug("Worker joined")
