"""Desktop visibility monitoring through an external helper process."""

from desktop_monitor.helper_process import HelperProcess, LaunchFailure  # noqa: F401
from desktop_monitor.monitor import DesktopMonitor, monitor_desktop  # noqa: F401
from desktop_monitor.parsing.models import VisibilityEvent, VisibilityKind  # noqa: F401

__all__ = [
    "DesktopMonitor",
    "HelperProcess",
    "LaunchFailure",
    "VisibilityEvent",
    "VisibilityKind",
    "monitor_desktop",
]
