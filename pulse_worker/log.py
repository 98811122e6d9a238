"""Logging configuration for the command line runner."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

APP_LOGGER = "pulse_worker"
BLE_LOGGER = "bleak"


def parse_level(name: str) -> int | None:
    """Map a level name to its numeric value, or None if it is not valid."""
    name = name.upper()
    if name not in VALID_LEVELS:
        return None
    return getattr(logging, name)


def setup_logging(level: str = "INFO", ble_level: str | None = None) -> None:
    """Send pulse_worker records to stderr at the requested level.

    Library users are expected to configure logging themselves; the
    package only emits records on the ``pulse_worker`` logger tree.
    The root logger stays at WARNING, so bleak and its platform backends
    only report problems unless ``ble_level`` asks for more.

    Args:
        level: Log level for pulse_worker (DEBUG, INFO, WARNING, ERROR)
        ble_level: Optional log level for the bleak logger tree, used to
            trace adapter and GATT traffic
    """
    app_level = parse_level(level)
    bleak_level = parse_level(ble_level) if ble_level else None

    logging.basicConfig(
        level=logging.WARNING,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(app_level or logging.INFO)
    logging.getLogger(BLE_LOGGER).setLevel(bleak_level or logging.NOTSET)

    if app_level is None:
        app_logger.warning("Unknown log level '%s', defaulting to INFO", level)
    if ble_level and bleak_level is None:
        app_logger.warning("Unknown bleak log level '%s', leaving it at WARNING", ble_level)
