# python
import io

import pytest

from daemonconf import ConfigRegistry, LoggingFacility


class FakeTransport:
    def __init__(self):
        self.calls = []
        self.sent = []
        self.opened = False

    def open(self, ident, facility):
        self.calls.append(("open", ident, facility))
        self.opened = True

    def send(self, priority, message):
        self.sent.append((priority, message))

    def close(self):
        self.calls.append(("close",))
        self.opened = False


@pytest.fixture
def registry():
    reg = ConfigRegistry()
    yield reg
    try:
        reg.destroy()
    except Exception:
        pass


@pytest.fixture
def ini_file(tmp_path):
    counter = {"n": 0}

    def write(text, name=None):
        counter["n"] += 1
        path = tmp_path / (name or f"daemon{counter['n']}.conf")
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def facility(registry, transport, stream):
    return LoggingFacility(registry, transport=transport, stream=stream)
