"""
Deployment to a device and monitoring of the running app.
"""

from .monitor import DeviceProcessMonitor, MonitorState, MonitorTimings, parse_pid
from .signal_handler import SignalHandler

__all__ = [
    "DeviceProcessMonitor",
    "MonitorState",
    "MonitorTimings",
    "SignalHandler",
    "parse_pid",
]
