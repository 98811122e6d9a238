"""Exceptions raised by the decoder, the BLE session and the controller."""


class DecodeError(ValueError):
    """Malformed heart rate notification payload."""


class SessionError(Exception):
    """A BLE session step failed; fatal to the session."""


class DiscoveryError(SessionError):
    """No matching device was found, or enumeration failed."""


class ConnectError(SessionError):
    """Connecting to the selected device failed."""


class ResolutionError(SessionError):
    """The heart rate service or measurement characteristic was not found."""


class SubscriptionError(SessionError):
    """Writing the notification configuration was not acknowledged."""


class ControlError(Exception):
    """A start/stop request was rejected.

    ``code`` is the negative status code returned by the flat API.
    """

    code = -1


class AlreadyRunning(ControlError):
    code = -1


class NotRunning(ControlError):
    code = -1


class ThreadCreationFailed(ControlError):
    code = -2


class JoinFailed(ControlError):
    code = -2
