"""Incremental line splitting and classification of helper stdout."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from desktop_monitor.log_setup import TRACE
from desktop_monitor.parsing.models import VisibilityEvent, VisibilityKind
from desktop_monitor.parsing.patterns import CHANGE_MARKER, STATE_RULES, classify_line

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINE_LENGTH = 65536


class LineBuffer:
    """Accumulate text chunks and hand back complete lines.

    Accepts ``\\n`` and ``\\r\\n`` as terminators; a ``\\r`` at the end of a
    chunk stays pending until the following chunk shows whether it starts a
    ``\\r\\n`` pair. At most one unterminated line is held at a time.

    Lines longer than ``max_length`` are dropped whole, however the chunks
    happened to split them: an oversized remainder is thrown away and the
    rest of that line is skipped up to its terminator.
    """

    def __init__(self, max_length: int | None = DEFAULT_MAX_LINE_LENGTH) -> None:
        if max_length is not None and max_length <= 0:
            raise ValueError(f"max_length must be positive, got {max_length}")
        self._max_length = max_length
        self._pending: str = ""
        self._discarding: bool = False

    @property
    def pending(self) -> str:
        """Unterminated text waiting for the next chunk."""
        return self._pending

    def feed(self, chunk: str) -> list[str]:
        """Append a chunk and return every line it completed, in order."""
        if not chunk:
            return []
        if self._discarding:
            newline = chunk.find("\n")
            if newline == -1:
                return []
            chunk = chunk[newline + 1:]
            self._discarding = False

        *complete, self._pending = (self._pending + chunk).split("\n")
        lines = []
        for line in complete:
            if line.endswith("\r"):
                line = line[:-1]
            if self._too_long(line):
                logger.warning(
                    "Dropping line of %d chars (limit %d)", len(line), self._max_length
                )
                continue
            lines.append(line)

        # A trailing \r may be the first half of the terminator
        if self._too_long(self._pending.removesuffix("\r")):
            logger.warning(
                "Discarding unterminated line after %d chars (limit %d)",
                len(self._pending), self._max_length,
            )
            self._pending = ""
            self._discarding = True
        return lines

    def clear(self) -> str:
        """Drop any partial line and return what was dropped."""
        dropped = self._pending
        self._pending = ""
        self._discarding = False
        return dropped

    def _too_long(self, text: str) -> bool:
        return self._max_length is not None and len(text) > self._max_length


class LineClassifier:
    """Turn a stream of stdout chunks into visibility events.

    ``feed`` splits eagerly, so the buffer is updated even if the returned
    iterator is never consumed; classification itself is lazy.
    """

    def __init__(
        self,
        max_line_length: int | None = DEFAULT_MAX_LINE_LENGTH,
        marker: str = CHANGE_MARKER,
        rules: tuple[tuple[str, VisibilityKind], ...] = STATE_RULES,
    ) -> None:
        self._buffer = LineBuffer(max_line_length)
        self._marker = marker
        self._rules = rules

    @property
    def pending(self) -> str:
        return self._buffer.pending

    def feed(self, chunk: str) -> Iterator[VisibilityEvent]:
        lines = self._buffer.feed(chunk)
        logger.log(TRACE, "Chunk len=%d completed %d line(s)", len(chunk), len(lines))
        return self._classify(lines)

    def reset(self) -> str:
        return self._buffer.clear()

    def _classify(self, lines: Iterable[str]) -> Iterator[VisibilityEvent]:
        for line in lines:
            event = classify_line(line, self._marker, self._rules)
            if event is not None:
                yield event
