"""BLE Heart Rate monitor running on a dedicated worker thread."""

from .ble import HR_MEASUREMENT_UUID, HR_SERVICE_UUID, BleakPlatform, BLEPlatform, scan_hr_devices
from .config import Config, load_config
from .controller import MonitorController
from .errors import (
    AlreadyRunning,
    ConnectError,
    ControlError,
    DecodeError,
    DiscoveryError,
    JoinFailed,
    NotRunning,
    ResolutionError,
    SessionError,
    SubscriptionError,
    ThreadCreationFailed,
)
from .log import setup_logging
from .parser import decode_heart_rate
from .session import HeartRateSession
from .status import SessionState, Status

__all__ = [
    "decode_heart_rate",
    "HeartRateSession",
    "MonitorController",
    "BLEPlatform",
    "BleakPlatform",
    "scan_hr_devices",
    "HR_SERVICE_UUID",
    "HR_MEASUREMENT_UUID",
    "Status",
    "SessionState",
    "Config",
    "load_config",
    "setup_logging",
    "DecodeError",
    "SessionError",
    "DiscoveryError",
    "ConnectError",
    "ResolutionError",
    "SubscriptionError",
    "ControlError",
    "AlreadyRunning",
    "NotRunning",
    "ThreadCreationFailed",
    "JoinFailed",
]
