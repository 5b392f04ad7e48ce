import pytest


@pytest.fixture
def make_helper(tmp_path):
    """Write an executable /bin/sh script that stands in for the helper."""

    def _make(body: str, name: str = "helper.sh") -> str:
        script = tmp_path / name
        script.write_text("#!/bin/sh\n" + body + "\n")
        script.chmod(0o755)
        return str(script)

    return _make


@pytest.fixture
def recorder():
    """Collect callback invocations as (kind, raw_line) tuples."""
    events = []

    def _record(kind, raw_line):
        events.append((kind, raw_line))

    _record.events = events
    return _record
