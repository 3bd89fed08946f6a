import collections.abc
import dataclasses
import json
import logging
import os
import pathlib
import typing

import natsort
from serial.tools import list_ports
from serial.tools import list_ports_common

from eventserial import _exceptions

log = logging.getLogger("eventserial.scanning")

DEFAULT_PORT_PREFIXES = ("/dev/ttyUSB", "/dev/ttyAMA", "/dev/ttyACM", "COM")

PortOrder = typing.Literal["lexical", "natural"]
PortNameSource = collections.abc.Callable[[], collections.abc.Iterable[str]]


@dataclasses.dataclass(frozen=True)
class SerialPort:
    """What we know about a potentially available serial port on the system"""

    name: str
    attr: dict[str, str]

    def __str__(self):
        return self.name


def scan_serial_ports() -> list[SerialPort]:
    """Returns a list of serial ports found on the current system"""

    if ov := os.getenv("EVENTSERIAL_SCAN_OVERRIDE"):
        try:
            ov_data = json.loads(pathlib.Path(ov).read_text())
            if not isinstance(ov_data, dict) or not all(
                isinstance(attr, dict)
                and all(isinstance(aval, str) for aval in attr.values())
                for attr in ov_data.values()
            ):
                raise ValueError("Override data is not a dict of dicts")
        except (OSError, ValueError) as ex:
            msg = f"Can't read $EVENTSERIAL_SCAN_OVERRIDE {ov}"
            raise _exceptions.SerialScanException(msg) from ex

        out = [SerialPort(name=p, attr=a) for p, a in ov_data.items()]
        log.debug("$EVENTSERIAL_SCAN_OVERRIDE (%s): %d ports", ov, len(out))
    else:
        try:
            ports = list_ports.comports()
        except OSError as ex:
            raise _exceptions.SerialScanException("Can't scan serial") from ex

        out = [_convert_port(p) for p in ports]

    out.sort(key=natsort.natsort_keygen(key=lambda p: p.name, alg=natsort.ns.P))
    log.debug("Found %d ports", len(out))
    return out


def scan_port_names() -> list[str]:
    return [p.name for p in scan_serial_ports()]


def is_candidate_port(name: str) -> bool:
    """True if 'name' looks like a USB-serial, ARM UART, ACM or COM port"""

    return name.startswith(DEFAULT_PORT_PREFIXES)


def find_default_port(
    port_names: PortNameSource | None = None,
    *,
    order: PortOrder = "lexical",
) -> str:
    """Picks the highest-sorting candidate port, presumably the newest.

    Sorting is by plain string comparison unless 'order' is "natural", so
    by default "COM9" outranks "COM12".
    """

    names = list((port_names or scan_port_names)())
    candidates = [n for n in names if is_candidate_port(n)]
    if not candidates:
        message = f"No serial port found ({len(names)} scanned)"
        raise _exceptions.NoPortFound(message)

    if order == "natural":
        candidates = natsort.natsorted(candidates, reverse=True)
    else:
        candidates.sort(reverse=True)

    log.debug("Default port %s (of %s)", candidates[0], ", ".join(candidates))
    return candidates[0]


def _convert_port(p: list_ports_common.ListPortInfo) -> SerialPort:
    _NA = (None, "", "n/a")
    attr = {k.lower(): str(v) for k, v in vars(p).items() if v not in _NA}
    return SerialPort(name=p.device, attr=attr)
