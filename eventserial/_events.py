"""Normalized receive events and supported transport speeds"""

import enum

import msgspec


class BaudRate(enum.IntEnum):
    BPS_300 = 300
    BPS_600 = 600
    BPS_1200 = 1200
    BPS_2400 = 2400
    BPS_4800 = 4800
    BPS_9600 = 9600
    BPS_14400 = 14400
    BPS_19200 = 19200
    BPS_28800 = 28800
    BPS_31250 = 31250
    BPS_38400 = 38400
    BPS_57600 = 57600
    BPS_115200 = 115200


class NativeEventType(enum.IntEnum):
    """Receive notification types raised by a raw transport"""

    CHARS = 1
    EOF = 2


class SerialData(enum.Enum):
    """Platform-independent receive notification kinds"""

    CHARS = "chars"
    EOF = "eof"


class SerialDataReceived(msgspec.Struct, frozen=True):
    kind: SerialData


KIND_FROM_NATIVE: dict[NativeEventType, SerialData] = {
    NativeEventType.CHARS: SerialData.CHARS,
    NativeEventType.EOF: SerialData.EOF,
}
