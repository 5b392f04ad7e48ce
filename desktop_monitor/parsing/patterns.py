from __future__ import annotations

import logging

from desktop_monitor.log_setup import TRACE
from desktop_monitor.parsing.models import VisibilityEvent, VisibilityKind

logger = logging.getLogger(__name__)

# Substring present on every state-change report from the helper
CHANGE_MARKER = "Desktop state changed"

# Checked in order; the first keyword found in a marked line decides its kind
STATE_RULES: tuple[tuple[str, VisibilityKind], ...] = (
    ("SHOWN", VisibilityKind.VISIBLE),
    ("HIDDEN", VisibilityKind.HIDDEN),
)


def classify_line(
    line: str,
    marker: str = CHANGE_MARKER,
    rules: tuple[tuple[str, VisibilityKind], ...] = STATE_RULES,
) -> VisibilityEvent | None:
    """Map a single complete line to a visibility event.

    Matching is case-sensitive substring containment anywhere in the line.
    Lines without the marker (banners, foreground window reports) and marked
    lines with no known state keyword produce ``None``.

    Args:
        line: One line of helper output without its terminator.
        marker: Substring identifying a state-change report.
        rules: Ordered ``(keyword, kind)`` pairs.

    Returns:
        A VisibilityEvent carrying the unmodified line, or None.
    """
    if not line.strip():
        return None
    if marker not in line:
        logger.log(TRACE, "Ignoring line without change marker: %r", line)
        return None
    for keyword, kind in rules:
        if keyword in line:
            return VisibilityEvent(kind=kind, raw_line=line)
    logger.debug("Change report with unrecognized state: %r", line)
    return None
