#!/usr/bin/env python3

"""CLI tool to list candidate serial ports and watch receive events"""

import argparse
import logging
import threading

import ok_logging_setup

import eventserial

ok_logging_setup.skip_traceback_for(eventserial.SerialScanException)
ok_logging_setup.skip_traceback_for(eventserial.TransportUnavailable)


def main():
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(title="actions", dest="command")
    list_parser = subparsers.add_parser("list", help="List known serial ports")
    list_parser.add_argument(
        "--natural",
        action="store_true",
        help="pick the default port by numeric-aware order",
    )

    watch_parser = subparsers.add_parser("watch", help="Log receive events")
    watch_parser.add_argument("port", nargs="?", help="port (default: newest)")
    watch_parser.add_argument(
        "--baud", "-b", default=115200, type=int, help="baud rate"
    )
    watch_parser.add_argument(
        "--natural",
        action="store_true",
        help="pick the default port by numeric-aware order",
    )

    args = parser.parse_args()
    if not args.command:
        args = parser.parse_args(["list"])

    ok_logging_setup.install({"OK_LOGGING_LEVEL": "info"})
    order = "natural" if args.natural else "lexical"

    if args.command == "list":
        found = eventserial.scan_serial_ports()
        if not found:
            ok_logging_setup.exit("❌ No serial ports found")

        try:
            default = eventserial.find_default_port(
                lambda: [p.name for p in found], order=order
            )
        except eventserial.NoPortFound:
            default = None

        num = len(found)
        logging.info("🔌 %d serial port%s found", num, "" if num == 1 else "s")
        for port in found:
            desc = port.attr.get("description", "")
            mark = "✅" if port.name == default else ""
            print(" ".join(w for w in (f"{port.name}{mark}", desc) if w))

    if args.command == "watch":
        port = args.port or eventserial.find_default_port(order=order)
        with eventserial.SerialConnection(port, args.baud) as conn:
            logging.info("👀 Watching %s (%d baud)", conn.name, conn.baud)

            def on_receive(sender, event: eventserial.SerialDataReceived):
                data = conn.read(conn.bytes_to_read or 1)
                logging.info("📥 %s: %r", event.kind.name, data)

            conn.subscribe(on_receive)
            try:
                threading.Event().wait()
            except KeyboardInterrupt:
                logging.info("🛑 Closing %s", conn.name)


if __name__ == "__main__":
    main()
