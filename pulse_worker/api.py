"""Flat control surface returning integer status codes.

Wraps a single module-level MonitorController for hosts that drive the
monitor through plain function calls. Return codes: 0 on success,
-1 when already running / not running, -2 when the worker thread could
not be started or joined.
"""

import atexit
import logging
import threading

from .config import load_config
from .controller import HeartRateCallback, MonitorController, StatusCallback
from .errors import ControlError
from .status import Status

logger = logging.getLogger(__name__)

SUCCESS = 0

_controller: MonitorController | None = None
_init_lock = threading.Lock()


def _get_controller() -> MonitorController:
    global _controller
    with _init_lock:
        if _controller is None:
            _controller = MonitorController(load_config())
            atexit.register(_stop_at_exit)
        return _controller


def _stop_at_exit() -> None:
    """Release the peripheral when the host exits without calling stop()."""
    controller = _controller
    if controller is None or not controller.is_running:
        return
    logger.info("Stopping monitor at interpreter exit")
    try:
        controller.stop()
    except ControlError as e:
        logger.warning("stop at exit failed: %s", e)


def initialize() -> int:
    """Create the shared controller; repeated calls are no-ops.

    Also registers an exit hook that stops a session still running when
    the interpreter shuts down. Every other function initializes lazily,
    so calling this first is optional.
    """
    _get_controller()
    return SUCCESS


def register_status_callback(callback: StatusCallback | None) -> int:
    """Set the callback receiving ``(code, message)`` for every transition.

    Passing None unregisters it. Always returns 0.
    """
    _get_controller().register_status_callback(callback)
    return SUCCESS


def register_heart_rate_callback(callback: HeartRateCallback | None) -> int:
    """Set the callback receiving each decoded BPM value.

    Passing None unregisters it. Always returns 0.
    """
    _get_controller().register_heart_rate_callback(callback)
    return SUCCESS


def start() -> int:
    """Start monitoring on a worker thread and return immediately.

    Returns:
        0 on success, -1 if already running, -2 if the worker thread
        could not be created
    """
    try:
        _get_controller().start()
    except ControlError as e:
        logger.warning("start rejected: %s", e)
        return e.code
    return SUCCESS


def stop() -> int:
    """Stop monitoring and block until cleanup has finished.

    Returns:
        0 on success, -1 if not running, -2 if the worker could not be joined
    """
    try:
        _get_controller().stop()
    except ControlError as e:
        logger.warning("stop rejected: %s", e)
        return e.code
    return SUCCESS


def get_current_status() -> int:
    """Last emitted status code; 0 (Stopped) before anything has run."""
    if _controller is None:
        return int(Status.STOPPED)
    return int(_controller.current_status)
