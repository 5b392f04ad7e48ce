"""Caller-facing entry point: run the helper and report visibility changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from desktop_monitor.helper_process import HelperProcess, describe_exit
from desktop_monitor.parsing.line_classifier import DEFAULT_MAX_LINE_LENGTH, LineClassifier
from desktop_monitor.parsing.models import VisibilityEvent

logger = logging.getLogger(__name__)

HELPER_NAME = "isdesktop-visible.exe"
DEFAULT_HELPER_PATH = Path(__file__).resolve().parent / "bin" / "Release" / HELPER_NAME

VisibilityCallback = Callable[[str, str], None]


class DesktopMonitor:
    """Delivery stage between a helper's streams and the caller's callback.

    Feeds stdout chunks through a LineClassifier and invokes the callback
    once per event, in line order. Knows nothing about processes, so tests
    can drive it with scripted chunks.
    """

    def __init__(
        self,
        callback: VisibilityCallback,
        on_diagnostic: Callable[[str], None] | None = None,
        on_exit: Callable[[int], None] | None = None,
        max_line_length: int | None = DEFAULT_MAX_LINE_LENGTH,
    ) -> None:
        self._callback = callback
        self._on_diagnostic = on_diagnostic
        self._on_exit = on_exit
        self._classifier = LineClassifier(max_line_length=max_line_length)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def handle_output(self, chunk: str) -> None:
        if self._closed:
            return
        for event in self._classifier.feed(chunk):
            self._deliver(event)

    def handle_error(self, text: str) -> None:
        if self._closed or self._on_diagnostic is None:
            return
        self._on_diagnostic(text)

    def handle_exit(self, code: int) -> None:
        """Close the stage; a trailing unterminated line is never classified."""
        if self._closed:
            return
        self._closed = True
        dropped = self._classifier.reset()
        if dropped:
            logger.debug("Discarding unterminated output at exit: %r", dropped)
        if code != 0:
            logger.info("Helper ended abnormally (%s)", describe_exit(code))
        if self._on_exit is not None:
            self._on_exit(code)

    def _deliver(self, event: VisibilityEvent) -> None:
        logger.debug("Desktop %s: %s", event.kind.value, event.raw_line)
        try:
            self._callback(event.kind.value, event.raw_line)
        except Exception:
            logger.exception("Visibility callback raised for %r", event.raw_line)


async def monitor_desktop(
    callback: VisibilityCallback,
    *,
    helper_path: str | Path | None = None,
    helper_args: list[str] | tuple[str, ...] = (),
    on_diagnostic: Callable[[str], None] | None = None,
    on_exit: Callable[[int], None] | None = None,
    max_line_length: int | None = DEFAULT_MAX_LINE_LENGTH,
) -> HelperProcess:
    """Start the visibility helper and report its state changes.

    Args:
        callback: Called as ``callback(kind, raw_line)`` with kind
            ``"visible"`` or ``"hidden"`` for every state-change line.
        helper_path: Helper executable; defaults to the copy shipped under
            ``bin/Release`` next to this package.
        helper_args: Arguments for the helper, empty by default.
        on_diagnostic: Receives raw stderr text. Stderr is logged either way.
        on_exit: Receives the exit code once the helper has ended. Non-zero
            codes are only logged; escalate here if needed.
        max_line_length: Longest line kept before it is dropped, or None
            for no limit.

    Returns:
        The running HelperProcess, for the caller to inspect or stop.

    Raises:
        LaunchFailure: If the helper could not be started.
    """
    stage = DesktopMonitor(
        callback,
        on_diagnostic=on_diagnostic,
        on_exit=on_exit,
        max_line_length=max_line_length,
    )
    process = HelperProcess(
        helper_path or DEFAULT_HELPER_PATH,
        args=helper_args,
        on_output=stage.handle_output,
        on_error=stage.handle_error,
        on_exit=stage.handle_exit,
    )
    await process.start()
    logger.info("Monitoring desktop visibility via %s (pid=%d)", process.name, process.pid)
    return process
