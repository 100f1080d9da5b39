"""
Signal handling for the run loop.

SIGINT and SIGTERM cancel every active DeviceProcessMonitor so that its log
stream subprocess is killed before ndkapk exits.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .monitor import DeviceProcessMonitor

logger = logging.getLogger(__name__)

# Signal handlers cannot be bound to instances, so active monitors are kept
# in a module-level registry.
_active_monitors: Dict[int, "DeviceProcessMonitor"] = {}
_active_monitors_lock = threading.Lock()


class SignalHandler:
    """
    Installs the cancelling handlers for the duration of one run.
    """

    def __init__(self):
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._global_signal_handler)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._global_signal_handler)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up for device monitoring")
        except ValueError as e:
            # signal.signal only works in the main thread.
            logger.warning(f"Failed to set up signal handlers: {e}")

    def cleanup_signal_handlers(self) -> None:
        if not self._signal_handlers_set:
            return
        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def register_monitor(self, monitor_id: int, monitor: "DeviceProcessMonitor") -> None:
        with _active_monitors_lock:
            _active_monitors[monitor_id] = monitor
            logger.debug(f"Registered monitor {monitor_id} for signal handling")

    def unregister_monitor(self, monitor_id: int) -> None:
        with _active_monitors_lock:
            if _active_monitors.pop(monitor_id, None) is not None:
                logger.debug(f"Unregistered monitor {monitor_id} from signal handling")

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        logger.warning(f"Signal {signum} received. Stopping device monitoring.")
        # The interrupted main thread may hold the lock; only read a snapshot.
        for monitor in list(_active_monitors.values()):
            monitor.cancel()
