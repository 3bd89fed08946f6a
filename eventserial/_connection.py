import collections.abc
import contextlib
import logging
import typing

import pydantic

from eventserial import _events
from eventserial import _scanning
from eventserial import _transport

log = logging.getLogger("eventserial.connection")

ReceiveHandler = collections.abc.Callable[
    [object, _events.SerialDataReceived], None
]
TransportFactory = collections.abc.Callable[[str, int], _transport.RawTransport]


class SerialOptions(pydantic.BaseModel):
    baud: _events.BaudRate = _events.BaudRate.BPS_115200
    encoding: str = "ascii"
    newline: str = "\n"


class SerialConnection(contextlib.AbstractContextManager):
    """An open serial port that republishes receive notifications.

    With no port given, the default port is discovered (the highest-sorting
    USB, ACM, AMA or COM name) and opened at 115200 baud. Subscribers are
    called on the transport's reader thread, in subscription order, with
    (sender, SerialDataReceived).
    """

    @pydantic.validate_call
    def __init__(
        self,
        port: str | None = None,
        opts: SerialOptions | int = SerialOptions(),
        *,
        transport_factory: TransportFactory | None = None,
    ):
        if isinstance(opts, int):
            opts = SerialOptions(baud=opts)
        if port is None:
            port = _scanning.find_default_port()

        self._port = port
        self._opts = opts
        self._closed = False
        self._handlers: dict[ReceiveHandler, None] = {}

        factory = transport_factory or _transport.PySerialTransport
        log.debug("Opening %s (%s)", port, opts)
        transport = factory(port, int(opts.baud))
        with contextlib.ExitStack() as cleanup:
            cleanup.callback(transport.close)
            transport.read_timeout = 0.1
            transport.write_timeout = 0.1
            transport.subscribe(self._on_native_event)
            cleanup.pop_all()

        self._transport = transport

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SerialConnection({self._port!r}, {int(self._opts.baud)})"

    @property
    def name(self) -> str:
        return self._port

    @property
    def baud(self) -> _events.BaudRate:
        return self._opts.baud

    @property
    def infinite_timeout(self) -> None:
        return _transport.INFINITE_TIMEOUT

    @property
    def is_open(self) -> bool:
        return self._transport.is_open

    @property
    def read_timeout(self) -> float | int | None:
        return self._transport.read_timeout

    @read_timeout.setter
    def read_timeout(self, timeout: float | int | None) -> None:
        self._transport.read_timeout = timeout

    @property
    def write_timeout(self) -> float | int | None:
        return self._transport.write_timeout

    @write_timeout.setter
    def write_timeout(self, timeout: float | int | None) -> None:
        self._transport.write_timeout = timeout

    @property
    def bytes_to_read(self) -> int:
        return self._transport.bytes_to_read

    def subscribe(self, handler: ReceiveHandler) -> None:
        self._handlers.setdefault(handler, None)

    def unsubscribe(self, handler: ReceiveHandler) -> None:
        self._handlers.pop(handler, None)

    def close(self) -> None:
        """Flushes output, drops pending input and releases the port.

        Does nothing if the port is not open. The port is released even if
        the flush or discard fails; that error is then re-raised.
        """

        if self._transport.is_open:
            log.debug("Closing %s", self._port)
            try:
                self._transport.flush()
                self._transport.discard_input_buffer()
            finally:
                self._closed = True
                self._transport.close()

    @pydantic.validate_call
    def read(self, size: pydantic.NonNegativeInt = 1) -> bytes:
        return self._transport.read(size)

    def read_line(self) -> str:
        """Reads through the next newline; returns what arrived on timeout.

        Undecodable bytes come back as U+FFFD rather than raising, since
        they have already been taken from the input buffer.
        """

        newline = self._opts.newline.encode(self._opts.encoding)
        line = bytearray()
        while not line.endswith(newline):
            chunk = self._transport.read(1)
            if not chunk:
                break
            line += chunk
        text = line.decode(self._opts.encoding, errors="replace")
        return text.removesuffix(self._opts.newline)

    @pydantic.validate_call
    def write(self, data: bytes) -> None:
        self._transport.write(data)

    @pydantic.validate_call
    def write_line(self, text: str) -> None:
        line = text + self._opts.newline
        self._transport.write(line.encode(self._opts.encoding))

    def _on_native_event(
        self, sender: object, kind: _events.NativeEventType
    ) -> None:
        if self._closed:
            return
        event = _events.SerialDataReceived(kind=_events.KIND_FROM_NATIVE[kind])
        for handler in list(self._handlers):
            handler(sender, event)
