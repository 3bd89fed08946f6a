"""Unit tests for eventserial._scanning."""

import json
import pytest
from serial.tools import list_ports
from serial.tools import list_ports_common

import eventserial
from eventserial import SerialPort


def test_scan_ports(mocker):
    mocker.patch("serial.tools.list_ports.comports")

    bare_port = list_ports_common.ListPortInfo("/dev/zz")

    full_port = list_ports_common.ListPortInfo("/dev/full")
    full_port.description = "Description"
    full_port.hwid = "HwId"
    full_port.vid = 111
    full_port.pid = 222
    full_port.serial_number = "Serial"
    full_port.location = "Location"
    full_port.manufacturer = "Manufacturer"
    full_port.product = "Product"
    full_port.interface = "Interface"

    list_ports.comports.return_value = [bare_port, full_port]

    assert eventserial.scan_serial_ports() == [
        SerialPort(
            name="/dev/full",
            attr={
                "device": "/dev/full",
                "name": "full",
                "description": "Description",
                "hwid": "HwId",
                "vid": "111",
                "pid": "222",
                "serial_number": "Serial",
                "manufacturer": "Manufacturer",
                "product": "Product",
                "interface": "Interface",
                "location": "Location",
            },
        ),
        SerialPort(name="/dev/zz", attr={"device": "/dev/zz", "name": "zz"}),
    ]


def test_scan_ports_with_override(monkeypatch, tmp_path):
    override_path = tmp_path / "scan_override.json"
    monkeypatch.setenv("EVENTSERIAL_SCAN_OVERRIDE", str(override_path))
    with pytest.raises(eventserial.SerialScanException):
        eventserial.scan_serial_ports()  # fails: file does not exist

    override_path.write_text("bad json")
    with pytest.raises(eventserial.SerialScanException):
        eventserial.scan_serial_ports()  # fails: format is invalid

    override_path.write_text(json.dumps({"bad": {"entry": None}}))
    with pytest.raises(eventserial.SerialScanException):
        eventserial.scan_serial_ports()  # fails: structure is invalid

    override = {"port2": {}, "port1": {"aname": "avalue", "bname": "bvalue"}}
    override_path.write_text(json.dumps(override))

    assert eventserial.scan_serial_ports() == [
        SerialPort(name="port1", attr={"aname": "avalue", "bname": "bvalue"}),
        SerialPort(name="port2", attr={}),
    ]


#
# Default port discovery
#


@pytest.mark.parametrize(
    "names, expected",
    [
        (["COM3", "COM12", "COM9"], "COM9"),
        (["/dev/ttyUSB1", "/dev/ttyUSB0", "/dev/ttyAMA0"], "/dev/ttyUSB1"),
        (["/dev/ttyS0", "/dev/ttyACM0", "/dev/ttyAMA3"], "/dev/ttyAMA3"),
        (["COM1", "/dev/ttyUSB0"], "COM1"),
        (["/dev/ttyACM2"], "/dev/ttyACM2"),
    ],
)
def test_find_default_port_lexical(names, expected):
    assert eventserial.find_default_port(lambda: names) == expected


def test_find_default_port_natural():
    names = ["COM3", "COM12", "COM9"]
    assert eventserial.find_default_port(lambda: names, order="natural") == "COM12"


@pytest.mark.parametrize(
    "names",
    [[], ["/dev/ttyS0", "/dev/pts/4"], ["com3", "tty.usbserial", "/dev/USB0"]],
)
def test_find_default_port_none_match(names):
    with pytest.raises(eventserial.NoPortFound):
        eventserial.find_default_port(lambda: names)


def test_find_default_port_uses_scan(set_scan_override):
    set_scan_override({"/dev/ttyUSB0": {}, "/dev/ttyACM1": {}, "/dev/ttyS4": {}})
    assert eventserial.find_default_port() == "/dev/ttyUSB0"

    set_scan_override({"/dev/ttyS4": {}})
    with pytest.raises(eventserial.NoPortFound):
        eventserial.find_default_port()
