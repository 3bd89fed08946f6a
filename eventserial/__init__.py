"""
Serial port connection (PySerial wrapper) with default port discovery,
safe close, and normalized receive-event notification.
"""

from beartype.claw import beartype_this_package as _beartype_me

# ruff: noqa: E402
_beartype_me()

from eventserial._connection import (
    ReceiveHandler,
    SerialConnection,
    SerialOptions,
)

from eventserial._events import (
    BaudRate,
    NativeEventType,
    SerialData,
    SerialDataReceived,
)

from eventserial._exceptions import (
    NoPortFound,
    SerialException,
    SerialIoClosed,
    SerialIoException,
    SerialScanException,
    TransportBusy,
    TransportUnavailable,
)

from eventserial._scanning import (
    SerialPort,
    find_default_port,
    scan_serial_ports,
)

from eventserial._transport import (
    INFINITE_TIMEOUT,
    PySerialTransport,
    RawTransport,
)

__all__ = [n for n in dir() if not n.startswith("_")]
