import pytest

# ---- Lines as printed by the desktop helper ----

BANNER = "[2024-05-01 09:59:58] Desktop State Monitor v2.0"
INITIALIZED = "[2024-05-01 09:59:58] Desktop Monitor initialized successfully"
INITIAL_STATE = "[2024-05-01 09:59:58] Initial state: DESKTOP HIDDEN"
CTRL_C_HINT = "[2024-05-01 09:59:58] Press Ctrl+C to exit"
SHOWN = "[2024-05-01 10:00:00] Desktop state changed: SHOWN"
HIDDEN = "[2024-05-01 10:00:04] Desktop state changed: HIDDEN"
FOREGROUND = "[2024-05-01 10:00:04]  Foreground: CabinetWClass (Downloads)"


@pytest.fixture
def helper_session():
    """A realistic stdout transcript using CRLF terminators."""
    lines = [BANNER, INITIALIZED, INITIAL_STATE, CTRL_C_HINT, SHOWN, HIDDEN, FOREGROUND, SHOWN]
    return "".join(line + "\r\n" for line in lines)


@pytest.fixture
def helper_lines():
    return {
        "banner": BANNER,
        "initial_state": INITIAL_STATE,
        "shown": SHOWN,
        "hidden": HIDDEN,
        "foreground": FOREGROUND,
    }
