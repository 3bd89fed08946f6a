import contextlib
import io
import json
import ok_logging_setup
import os
import pty
import pytest
import typing

from eventserial import NativeEventType

ok_logging_setup.install(
    {
        "OK_LOGGING_LEVEL": "eventserial=DEBUG,WARNING",
        "OK_LOGGING_OUTPUT": "stdout",
    }
)


class PseudoTtySerial(typing.NamedTuple):
    path: str
    control: io.FileIO
    simulated: io.FileIO


class FakeTransport:
    """Scriptable stand-in for a raw serial transport"""

    def __init__(self, port: str, baud: int):
        self.port = port
        self.baud = baud
        self.is_open = True
        self.read_timeout = None
        self.write_timeout = None
        self.incoming = bytearray()
        self.written = bytearray()
        self.calls: list[str] = []
        self.handlers: list = []

    @property
    def bytes_to_read(self) -> int:
        return len(self.incoming)

    def subscribe(self, handler) -> None:
        self.handlers.append(handler)

    def read(self, size: int = 1) -> bytes:
        out = bytes(self.incoming[:size])
        del self.incoming[:size]
        return out

    def write(self, data: bytes) -> None:
        self.written.extend(data)

    def flush(self) -> None:
        self.calls.append("flush")

    def discard_input_buffer(self) -> None:
        self.calls.append("discard_input_buffer")
        self.incoming.clear()

    def close(self) -> None:
        self.calls.append("close")
        self.is_open = False

    def signal(self, kind: NativeEventType) -> None:
        for handler in list(self.handlers):
            handler(self, kind)


@pytest.fixture
def pty_serial():
    with contextlib.ExitStack() as cleanup:
        ctrl_fd, sim_fd = pty.openpty()
        path = os.ttyname(sim_fd)
        ctrl = cleanup.enter_context(os.fdopen(ctrl_fd, "r+b", buffering=0))
        sim = cleanup.enter_context(os.fdopen(sim_fd, "r+b", buffering=0))
        yield PseudoTtySerial(path=path, control=ctrl, simulated=sim)


@pytest.fixture
def fake_transports():
    """Transport factory recording every FakeTransport it creates"""

    created: list[FakeTransport] = []

    def factory(port: str, baud: int) -> FakeTransport:
        transport = FakeTransport(port, baud)
        created.append(transport)
        return transport

    factory.created = created
    return factory


@pytest.fixture
def set_scan_override(monkeypatch, tmp_path):
    path = tmp_path / "scan.json"
    path.write_text("{}")
    monkeypatch.setenv("EVENTSERIAL_SCAN_OVERRIDE", str(path))

    def set_ports(ports: dict[str, dict[str, str]]):
        path.write_text(json.dumps(ports))

    return set_ports
