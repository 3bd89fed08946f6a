import collections.abc
import contextlib
import errno
import logging
import threading
import typing

import serial

from eventserial import _events
from eventserial import _exceptions
from eventserial import _timeout_math

log = logging.getLogger("eventserial.transport")
data_log = logging.getLogger(log.name + ".data")

EOF_BYTE = b"\x1a"
INFINITE_TIMEOUT = None

NativeReceiveHandler = collections.abc.Callable[
    [object, _events.NativeEventType], None
]


@typing.runtime_checkable
class RawTransport(typing.Protocol):
    """The byte-level serial port capability a connection is built on"""

    read_timeout: float | int | None
    write_timeout: float | int | None

    @property
    def port(self) -> str: ...

    @property
    def is_open(self) -> bool: ...

    @property
    def bytes_to_read(self) -> int: ...

    def subscribe(self, handler: NativeReceiveHandler) -> None: ...

    def read(self, size: int = 1) -> bytes: ...

    def write(self, data: bytes) -> None: ...

    def flush(self) -> None: ...

    def discard_input_buffer(self) -> None: ...

    def close(self) -> None: ...


class PySerialTransport(contextlib.AbstractContextManager):
    """PySerial port with a reader thread that raises receive notifications.

    Received bytes are buffered here and handed out by read(); each chunk
    that arrives produces one notification on the reader thread, typed EOF
    if the chunk holds an EOF (0x1A) byte and CHARS otherwise.
    """

    def __init__(self, port: str, baud: int):
        log.debug("Opening %s (%d baud)", port, baud)
        try:
            self.pyserial = serial.Serial(
                port=port,
                baudrate=baud,
                write_timeout=0.1,
            )
        except OSError as ex:
            if ex.errno == errno.EBUSY:
                message = "Serial port busy (EBUSY)"
                raise _exceptions.TransportBusy(message, port) from ex
            else:
                message = "Serial port open error"
                raise _exceptions.TransportUnavailable(message, port) from ex

        self.read_timeout: float | int | None = 0.1
        self.monitor = threading.Condition()
        self.incoming = bytearray()
        self.exception: None | _exceptions.SerialIoException = None
        self._handlers: list[NativeReceiveHandler] = []
        self._thread = threading.Thread(
            target=self._readloop, name=f"{port} reader", daemon=True
        )
        self._thread.start()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PySerialTransport({self.port!r})"

    @property
    def port(self) -> str:
        return self.pyserial.port

    @property
    def is_open(self) -> bool:
        return self.pyserial.is_open

    @property
    def write_timeout(self) -> float | int | None:
        return self.pyserial.write_timeout

    @write_timeout.setter
    def write_timeout(self, timeout: float | int | None) -> None:
        self.pyserial.write_timeout = timeout

    @property
    def bytes_to_read(self) -> int:
        with self.monitor:
            return len(self.incoming)

    def subscribe(self, handler: NativeReceiveHandler) -> None:
        with self.monitor:
            self._handlers.append(handler)

    def read(self, size: int = 1) -> bytes:
        """Waits up to read_timeout for data; returns b"" if none arrives"""

        if size <= 0:
            return b""

        deadline = _timeout_math.to_deadline(self.read_timeout)
        with self.monitor:
            while not self.incoming:
                if self.exception:
                    raise self.exception
                wait = _timeout_math.from_deadline(deadline)
                if wait <= 0:
                    return b""
                self.monitor.wait(timeout=wait)

            out = bytes(self.incoming[:size])
            del self.incoming[:size]
            return out

    def write(self, data: bytes) -> None:
        with self.monitor:
            if self.exception:
                raise self.exception

        try:
            self.pyserial.write(data)
        except serial.SerialTimeoutException:
            raise
        except OSError as ex:
            message = "Serial write error"
            raise _exceptions.SerialIoException(message, self.port) from ex
        data_log.debug("Wrote %db", len(data))

    def flush(self) -> None:
        self.pyserial.flush()

    def discard_input_buffer(self) -> None:
        with self.monitor:
            if self.incoming:
                data_log.debug("Discarding %db", len(self.incoming))
            self.incoming.clear()
        self.pyserial.reset_input_buffer()

    def close(self) -> None:
        with self.monitor:
            if not self.exception:
                message, port = "Serial port was closed", self.port
                self.exception = _exceptions.SerialIoClosed(message, port)
            self.monitor.notify_all()

        if not self.pyserial.is_open:
            return

        try:
            self.pyserial.cancel_read()
            log.debug("Cancelled %s reads", self.port)
        except OSError:
            log.warning("Can't cancel %s reads", self.port, exc_info=True)

        if self._thread is not threading.current_thread():
            log.debug("Joining %s reader", self.port)
            self._thread.join()

        self.pyserial.close()
        log.debug("Closed %s", self.port)

    def _readloop(self) -> None:
        log.debug("Starting thread")
        while not self.exception:
            try:
                # Block for at least one byte, then grab all available
                incoming = self.pyserial.read(size=1)
                if incoming:
                    waiting = self.pyserial.in_waiting
                    if waiting > 0:
                        incoming += self.pyserial.read(size=waiting)
            except OSError as ex:
                with self.monitor:
                    if not self.exception:
                        message, port = "Serial read error", self.port
                        error = _exceptions.SerialIoException(message, port)
                        error.__cause__ = ex
                        data_log.warning("%s", message, exc_info=True)
                        self.exception = error
                    self.monitor.notify_all()
                break

            if not incoming:
                continue

            with self.monitor:
                data_log.debug(
                    "Read %db buf=%db", len(incoming), len(self.incoming)
                )
                self.incoming.extend(incoming)
                self.monitor.notify_all()
                handlers = list(self._handlers)

            if EOF_BYTE in incoming:
                kind = _events.NativeEventType.EOF
            else:
                kind = _events.NativeEventType.CHARS
            for handler in handlers:
                try:
                    handler(self, kind)
                except Exception:
                    log.warning(
                        "Receive handler failed on %s", self.port, exc_info=True
                    )

        log.debug("Stopping thread")
