"""Status codes reported to the host and internal session states."""

from enum import Enum, IntEnum


class Status(IntEnum):
    """Status codes passed to the status callback."""

    STOPPED = 0
    SCANNING = 1
    CONNECTING = 2
    DISCOVERING = 3
    SUBSCRIBING = 4
    DISCONNECTED = 5
    CONNECTED = 10
    STOPPING = 11
    CLEANUP_ERROR = 98
    RUNTIME_ERROR = 99


class SessionState(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CONNECTING = "connecting"
    RESOLVING_SERVICES = "resolving_services"
    SUBSCRIBING = "subscribing"
    MONITORING = "monitoring"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"
