from __future__ import annotations

import logging

from desktop_monitor.parsing.models import VisibilityEvent, VisibilityKind
from desktop_monitor.parsing.patterns import CHANGE_MARKER, STATE_RULES, classify_line


class TestClassifyLine:
    def test_shown_is_visible(self):
        event = classify_line("Desktop state changed: SHOWN")
        assert event == VisibilityEvent(VisibilityKind.VISIBLE, "Desktop state changed: SHOWN")

    def test_hidden_is_hidden(self):
        event = classify_line("Desktop state changed: HIDDEN")
        assert event is not None
        assert event.kind == VisibilityKind.HIDDEN

    def test_raw_line_is_unmodified(self):
        line = "[2024-05-01 10:00:00]   Desktop state changed: SHOWN  \t"
        assert classify_line(line).raw_line == line

    def test_marker_without_state_ignored(self):
        assert classify_line("Desktop state changed: UNKNOWN") is None

    def test_state_without_marker_ignored(self):
        """The helper's startup line mentions a state but is not a change."""
        assert classify_line("Initial state: DESKTOP SHOWN") is None

    def test_unrelated_text_ignored(self):
        assert classify_line("Press Ctrl+C to exit") is None

    def test_empty_line(self):
        assert classify_line("") is None

    def test_whitespace_only_line(self):
        assert classify_line("   \t ") is None

    def test_case_sensitive_marker(self):
        assert classify_line("desktop state changed: SHOWN") is None

    def test_case_sensitive_state(self):
        assert classify_line("Desktop state changed: shown") is None

    def test_marker_anywhere_in_line(self):
        event = classify_line("SHOWN after: Desktop state changed")
        assert event.kind == VisibilityKind.VISIBLE

    def test_shown_wins_over_hidden(self):
        event = classify_line("Desktop state changed: HIDDEN -> SHOWN")
        assert event.kind == VisibilityKind.VISIBLE

    def test_unrecognized_state_logged_at_debug(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="desktop_monitor.parsing.patterns"):
            classify_line("Desktop state changed: MINIMIZED")
        assert any("unrecognized" in r.message for r in caplog.records)


class TestPatternTable:
    def test_default_marker(self):
        assert CHANGE_MARKER == "Desktop state changed"

    def test_rule_order(self):
        assert [keyword for keyword, _ in STATE_RULES] == ["SHOWN", "HIDDEN"]

    def test_custom_rules_extend_vocabulary(self):
        rules = STATE_RULES + (("RESTORED", VisibilityKind.HIDDEN),)
        event = classify_line("Desktop state changed: RESTORED", rules=rules)
        assert event.kind == VisibilityKind.HIDDEN

    def test_custom_marker(self):
        event = classify_line("state: SHOWN", marker="state:")
        assert event.kind == VisibilityKind.VISIBLE

    def test_kind_values_match_callback_vocabulary(self):
        assert VisibilityKind.VISIBLE.value == "visible"
        assert VisibilityKind.HIDDEN.value == "hidden"
