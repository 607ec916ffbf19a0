"""
output.py
Alert and packet rendering for the console and alert files.

Text rendering:  <ISO-8601 timestamp> [<SEVERITY>] <category>: <message>
JSON rendering:  one JSON object per line (Alert.to_dict())
"""

import json
import os
import sys
import threading
from typing import Dict, TextIO

from colorama import Fore, Style

from arpwatch.models import Alert, ArpPacket

SEVERITY_COLUMN_WIDTH = 10


def colored(text: str, color: str, enabled: bool = True) -> str:
    if not enabled:
        return text
    return f"{color}{text}{Style.RESET_ALL}"


def format_alert(alert: Alert, color: bool = True) -> str:
    timestamp = alert.timestamp.isoformat()
    severity = f"[{alert.severity.label}]".ljust(SEVERITY_COLUMN_WIDTH)
    return (f"{timestamp} {colored(severity, alert.severity.color, color)} "
            f"{alert.category}: {alert.message}")


def format_packet(packet: ArpPacket, color: bool = True) -> str:
    timestamp = packet.timestamp.isoformat()
    opcode = colored(packet.opcode.description, Fore.CYAN, color)
    return (f"{timestamp} {opcode} {packet.sender_mac} -> {packet.target_mac} "
            f"({packet.sender_ip} -> {packet.target_ip})")


def format_summary(stats: Dict[str, object], color: bool = True) -> str:
    """Human-readable end-of-session summary."""
    lines = [
        "",
        colored("=" * 43, Fore.LIGHTBLACK_EX, color),
        "",
        "Summary:",
        f"  Total Alerts: {stats['total_alerts']}",
        f"  {colored('Critical:', Fore.RED, color)}    {stats['critical']}",
        f"  {colored('High:', Fore.RED, color)}        {stats['high']}",
        f"  {colored('Medium:', Fore.YELLOW, color)}      {stats['medium']}",
        f"  Low:          {stats['low']}",
        f"  Info:         {stats['info']}",
        f"  Packets:      {stats['packets_processed']}",
        f"  Cache Size:   {stats['cache_size']}",
    ]
    return "\n".join(lines)


class ConsoleAlertSink:
    """Writes each alert to a stream as text or as a JSON line."""

    def __init__(self, json_output: bool = False, color: bool = True, stream: TextIO = None):
        self.json_output = json_output
        self.color = color and not json_output
        self.stream = stream

    def __call__(self, alert: Alert):
        stream = self.stream or sys.stdout
        if self.json_output:
            line = json.dumps(alert.to_dict())
        else:
            line = format_alert(alert, self.color)
        print(line, file=stream, flush=True)


class ConsolePacketSink:
    """Writes every ingested packet (verbose mode)."""

    def __init__(self, json_output: bool = False, color: bool = True, stream: TextIO = None):
        self.json_output = json_output
        self.color = color and not json_output
        self.stream = stream

    def __call__(self, packet: ArpPacket):
        stream = self.stream or sys.stdout
        if self.json_output:
            line = json.dumps({"packet": packet.to_dict()})
        else:
            line = format_packet(packet, self.color)
        print(line, file=stream, flush=True)


class JsonLinesAlertSink:
    """Thread-safe alert writer appending JSON lines to a file."""

    def __init__(self, filepath: str):
        self.filepath = filepath
        self.lock = threading.Lock()
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

    def __call__(self, alert: Alert):
        line = json.dumps(alert.to_dict()) + "\n"
        with self.lock:
            with open(self.filepath, 'a') as f:
                f.write(line)

    def clear(self):
        """Truncate the alert file."""
        with self.lock:
            with open(self.filepath, 'w') as f:
                f.write('')
