"""Exception hierarchy for eventserial"""


class SerialException(OSError):
    def __init__(
        self,
        message: str,
        port: str | None = None,
    ):
        super().__init__(f"{port}: {message}" if port else message)
        self.port = port


class SerialIoException(SerialException):
    pass


class SerialIoClosed(SerialIoException):
    pass


class TransportUnavailable(SerialException):
    pass


class TransportBusy(TransportUnavailable):
    pass


class SerialScanException(SerialException):
    pass


class NoPortFound(SerialScanException):
    pass
