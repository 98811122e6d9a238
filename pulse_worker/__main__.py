"""Entry point for pulse-worker."""

import argparse
import logging
import signal
import threading

from .config import load_config
from .controller import MonitorController
from .errors import ControlError
from .log import setup_logging
from .status import Status

logger = logging.getLogger(__name__)

# Set by SIGINT/SIGTERM
_shutdown_event = threading.Event()


def _signal_handler(signum, frame) -> None:
    """Handle shutdown signals."""
    logger.info("Shutdown requested...")
    _shutdown_event.set()


def _print_status(status: int, message: str) -> None:
    print(f"[{Status(status).name.lower()}] {message}", flush=True)


def _print_heart_rate(bpm: int) -> None:
    print(f"{bpm} bpm", flush=True)


def run(controller: MonitorController) -> int:
    """Monitor until a shutdown signal arrives or the session ends by itself."""
    controller.register_status_callback(_print_status)
    controller.register_heart_rate_callback(_print_heart_rate)

    try:
        controller.start()
    except ControlError as e:
        logger.error("Failed to start monitoring: %s", e)
        return 1

    while not _shutdown_event.is_set() and controller.is_running:
        _shutdown_event.wait(0.5)

    try:
        controller.stop()
    except ControlError as e:
        logger.error("Failed to stop monitoring: %s", e)
        return 1
    logger.info("Shutdown complete")
    return 0


def main() -> None:
    """CLI entry point."""
    config = load_config()

    parser = argparse.ArgumentParser(description="BLE heart rate monitor")
    parser.add_argument(
        "-n",
        "--name",
        default=config.ble.name_filter or None,
        help="Filter by device name (case-insensitive, connects to first match)",
    )
    parser.add_argument(
        "--scan-timeout",
        type=float,
        default=config.ble.scan_timeout,
        help="Scan duration in seconds",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--ble-debug", action="store_true", help="Also log bleak backend traffic at DEBUG")
    args = parser.parse_args()

    # Setup logging before anything else
    log_level = "DEBUG" if args.verbose else config.log.level
    setup_logging(log_level, ble_level="DEBUG" if args.ble_debug else None)

    config.ble.name_filter = args.name or ""
    config.ble.scan_timeout = args.scan_timeout

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _signal_handler)

    raise SystemExit(run(MonitorController(config)))


if __name__ == "__main__":
    main()
