"""Shared data types for the helper output parsing pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class VisibilityKind(Enum):
    """Desktop visibility states reported by the helper."""

    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class VisibilityEvent:
    """One classified state-change line and the text it came from."""

    kind: VisibilityKind
    raw_line: str
