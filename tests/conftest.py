"""Test configuration: add src/ to sys.path and keep tests away from the real environment."""

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest

from omnirec_picker import emit


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Strip picker-related variables and point the config file at tmp."""
    for name in (
        "XDPH_WINDOW_SHARING_LIST",
        "OMNIREC_FALLBACK_PICKER",
        "OMNIREC_PICKER_FALLBACK_PICKER",
        "OMNIREC_PICKER_DIALOG_BINARY",
        "OMNIREC_PICKER_CONSENT_BACKEND",
        "OMNIREC_PICKER_SOCKET_PATH",
        "OMNIREC_PICKER_CONNECT_TIMEOUT_MS",
        "OMNIREC_PICKER_READ_TIMEOUT_MS",
        "OMNIREC_PICKER_LOG_FILE",
        "OMNIREC_PICKER_EMIT_EVENTS",
        "OMNIREC_PICKER_CONFIG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("OMNIREC_PICKER_CONFIG", str(tmp_path / "missing.yaml"))
    yield


@pytest.fixture(autouse=True)
def quiet_events():
    """Keep structured events off stderr during tests."""
    emit.configure("omnirec-picker-test", stderr=False)
    yield
    emit.configure("omnirec-picker", stderr=True)


@pytest.fixture
def recorded_events():
    events = []
    emit.add_handler(events.append)
    yield events
    emit.remove_handler(events.append)


@pytest.fixture
def make_script(tmp_path):
    """Write an executable /bin/sh script and return its path."""
    counter = {"n": 0}

    def _make(body: str) -> Path:
        counter["n"] += 1
        path = tmp_path / f"script{counter['n']}.sh"
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(0o755)
        return path

    return _make
