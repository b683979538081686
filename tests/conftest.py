import sys
import threading
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeApp:
    """Stands in for the Tk window: logs in memory and runs after() callbacks at once."""

    def __init__(self):
        self.logs = []
        self.outputs = []
        self.exits = []
        self.exit_event = threading.Event()
        self._lock = threading.Lock()

    def _log(self, message, error=False, warning=False):
        with self._lock:
            self.logs.append((message, error, warning))

    def after(self, delay, callback):
        callback()

    def on_script_output(self, event):
        with self._lock:
            self.outputs.append(event)

    def on_script_exit(self, event):
        with self._lock:
            self.exits.append(event)
        self.exit_event.set()

    def output_text(self, stream_type=None):
        with self._lock:
            return "".join(ev["data"] for ev in self.outputs
                           if stream_type is None or ev["type"] == stream_type)


@pytest.fixture
def fake_app():
    return FakeApp()
