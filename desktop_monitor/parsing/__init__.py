"""Helper output parsing pipeline: line buffer -> pattern table -> events."""

from desktop_monitor.parsing.line_classifier import LineBuffer, LineClassifier  # noqa: F401
from desktop_monitor.parsing.models import VisibilityEvent, VisibilityKind  # noqa: F401
from desktop_monitor.parsing.patterns import classify_line  # noqa: F401

__all__ = ["LineBuffer", "LineClassifier", "VisibilityEvent", "VisibilityKind", "classify_line"]
