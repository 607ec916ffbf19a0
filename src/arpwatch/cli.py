"""
cli.py
Command-line entry point for ArpWatch.

Packet sources (pick one):
    arpwatch -i eth0            live capture (root or cap_net_raw)
    arpwatch --pcap dump.pcap   offline replay of a capture file
    arpwatch --demo             built-in simulated traffic

Examples:
    arpwatch -v -t 60
    arpwatch -j > arp_log.json
    arpwatch --static 192.168.1.1=aa:bb:cc:dd:ee:ff --api
"""

import argparse
import json
import logging
import os
import sys
import threading
import time
from typing import List, Optional

from colorama import Fore, Style, just_fix_windows_console
from scapy.error import Scapy_Exception

from arpwatch import settings
from arpwatch.capture import LiveCapture, read_pcap
from arpwatch.config import ConfigError, MonitorConfig, coerce_int, load_config_file, parse_binding
from arpwatch.monitor import ArpMonitor
from arpwatch.output import (ConsoleAlertSink, ConsolePacketSink, JsonLinesAlertSink,
                             colored, format_summary)
from arpwatch.simulation import demo_packets, replay

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CAPTURE_ERROR = 1
EXIT_CONFIG_ERROR = 2

DETECTIONS = """detections:
  - ARP spoofing/cache poisoning (static bindings)
  - MAC flooding attacks
  - Gratuitous ARP (potential attack)
  - New host discovery
  - MAC address changes
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arpwatch",
        description="ArpWatch - passive ARP traffic monitor",
        epilog=DETECTIONS,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("-i", "--interface", help="Network interface (default: any)")
    parser.add_argument("-t", "--timeout", help="Stop after this many seconds")
    parser.add_argument("-j", "--json", action="store_true", help="JSON output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show all packets")
    parser.add_argument("--threshold", help="Unique MACs per window before a flood alert")
    parser.add_argument("-c", "--config", help="JSON config file")
    parser.add_argument("--static", action="append", default=[], metavar="IP=MAC",
                        help="Static binding to protect (repeatable)")
    parser.add_argument("--trust", action="append", default=[], metavar="MAC",
                        help="MAC exempt from spoof alerts (repeatable)")

    source = parser.add_mutually_exclusive_group()
    source.add_argument("--pcap", help="Read packets from a capture file")
    source.add_argument("--demo", action="store_true", help="Run on simulated traffic")
    parser.add_argument("--delay", type=float, default=0.5,
                        help="Seconds between demo packets (default: 0.5)")

    parser.add_argument("--alert-file", help="Append alerts as JSON lines to this file")
    parser.add_argument("--api", action="store_true", help="Serve the read-only HTTP view")
    parser.add_argument("--api-host", default=settings.API_HOST)
    parser.add_argument("--api-port", type=int, default=settings.API_PORT)
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=settings.LOG_FILE)
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.VERSION}")
    return parser


def setup_logging(level: str = settings.LOG_LEVEL, log_file: Optional[str] = None):
    """Configure root logging: stderr, plus a file when log_file is set."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=handlers
    )


def build_config(args) -> MonitorConfig:
    """
    Defaults, then the config file, then command-line flags.

    Raises:
        ConfigError: For an unreadable config file or a malformed IP=MAC
    """
    config = MonitorConfig()
    if args.config:
        config = load_config_file(args.config, config)

    config = config.merged(
        interface=args.interface,
        timeout=coerce_int(args.timeout, config.timeout, "timeout") if args.timeout else None,
        json_output=True if args.json else None,
        verbose=True if args.verbose else None,
        alert_threshold=(coerce_int(args.threshold, settings.DEFAULT_ALERT_THRESHOLD,
                                    "alert threshold") if args.threshold else None),
    )
    static_entries = dict(parse_binding(text) for text in args.static)
    return config.with_bindings(static_entries, args.trust)


def print_banner(color: bool = True):
    line = "=" * 66
    print()
    print(colored(line, Fore.GREEN, color))
    print(colored(f"  ArpWatch {settings.VERSION} - ARP Traffic Monitor", Fore.GREEN + Style.BRIGHT, color))
    print(colored(line, Fore.GREEN, color))
    print()


def start_api(monitor: ArpMonitor, host: str, port: int) -> threading.Thread:
    """Serve the HTTP view from a daemon thread."""
    import uvicorn

    from arpwatch.api import create_app

    server = uvicorn.Server(uvicorn.Config(create_app(monitor), host=host, port=port,
                                           log_level="warning"))
    thread = threading.Thread(target=server.run, name="arpwatch-api", daemon=True)
    thread.start()
    logger.info(f"HTTP view on http://{host}:{port}/docs")
    return thread


def run_source(args, config: MonitorConfig, monitor: ArpMonitor, color: bool) -> int:
    """Feed the monitor from the selected packet source."""
    if args.demo:
        if not config.json_output:
            print(colored("Monitoring ARP traffic...", Fore.CYAN, color))
            print("(Demo mode - simulated packets)\n")
        replay(monitor.ingest, demo_packets(), delay=max(args.delay, 0.0))
        return EXIT_OK

    if args.pcap:
        try:
            replay(monitor.ingest, read_pcap(args.pcap, config.interface))
        except (OSError, ValueError, Scapy_Exception) as e:
            logger.error(f"Could not read {args.pcap}: {e}")
            return EXIT_CAPTURE_ERROR
        return EXIT_OK

    capture = LiveCapture(config.interface, config.timeout)
    try:
        capture.run(monitor.ingest)
    except PermissionError as e:
        logger.error(f"Live capture on {config.interface} needs root or cap_net_raw: {e}")
        return EXIT_CAPTURE_ERROR
    except OSError as e:
        logger.error(f"Capture error on {config.interface}: {e}")
        return EXIT_CAPTURE_ERROR
    logger.info(f"Captured {capture.packets_captured} frames, "
                f"dropped {capture.packets_dropped} undecodable")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)
    just_fix_windows_console()

    try:
        config = build_config(args)
    except ConfigError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR

    color = not args.no_color and not config.json_output
    if not config.json_output:
        print_banner(color)

    monitor = ArpMonitor(config, alert_sinks=[ConsoleAlertSink(config.json_output, color)])
    if config.verbose:
        monitor.add_packet_sink(ConsolePacketSink(config.json_output, color))
    if args.alert_file:
        monitor.add_alert_sink(JsonLinesAlertSink(args.alert_file))
    if args.api:
        start_api(monitor, args.api_host, args.api_port)

    try:
        status = run_source(args, config, monitor, color)
        if args.api and status == EXIT_OK:
            logger.info("Packet source finished; HTTP view stays up until Ctrl+C")
            while True:
                time.sleep(1)
    except KeyboardInterrupt:
        status = EXIT_OK
        if not config.json_output:
            print(colored("\nShutting down...", Fore.YELLOW, color))

    stats = monitor.get_statistics()
    if config.json_output:
        print(json.dumps({"summary": stats}))
    else:
        print(format_summary(stats, color))
    return status


if __name__ == "__main__":
    sys.exit(main())
