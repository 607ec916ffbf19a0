"""
models.py
Core data types shared by the cache, detectors and monitor.

Every value here is immutable once created: packets come from the capture
layer, entries are derived from packets, and alerts are append-only records
of what the detectors concluded.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from colorama import Fore, Style


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Severity(Enum):
    """
    Alert severity levels.

    Each member carries (label, color, priority). Priority 1 is the most
    severe, so comparisons are inverted: CRITICAL > HIGH > ... > INFO.
    """
    CRITICAL = ("CRITICAL", Fore.RED + Style.BRIGHT, 1)
    HIGH = ("HIGH", Fore.RED, 2)
    MEDIUM = ("MEDIUM", Fore.YELLOW, 3)
    LOW = ("LOW", Fore.CYAN, 4)
    INFO = ("INFO", Fore.LIGHTBLACK_EX, 5)

    def __init__(self, label: str, color: str, priority: int):
        self.label = label
        self.color = color
        self.priority = priority

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.priority > other.priority

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.priority >= other.priority

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.priority < other.priority

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.priority <= other.priority

    @classmethod
    def from_label(cls, label: str) -> "Severity":
        """Look up a severity by its label, case-insensitive."""
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {label!r}") from None


class ArpOpcode(Enum):
    """ARP operation codes as they appear on the wire."""
    REQUEST = (1, "ARP Request")
    REPLY = (2, "ARP Reply")
    RARP_REQUEST = (3, "RARP Request")
    RARP_REPLY = (4, "RARP Reply")
    UNKNOWN = (0, "Unknown")

    def __init__(self, code: int, description: str):
        self.code = code
        self.description = description

    @classmethod
    def from_code(cls, code: int) -> "ArpOpcode":
        for opcode in cls:
            if opcode.code == code:
                return opcode
        return cls.UNKNOWN


class AttackType(Enum):
    """Alert categories and their default severity."""
    ARP_SPOOF = ("ARP Spoofing/Cache Poisoning", Severity.CRITICAL)
    MAC_FLOOD = ("MAC Flooding Attack", Severity.HIGH)
    GRATUITOUS_ARP = ("Gratuitous ARP (Potential Attack)", Severity.MEDIUM)
    NEW_HOST = ("New Host Discovered", Severity.INFO)
    MAC_CHANGE = ("MAC Address Changed", Severity.HIGH)
    # Declared for completeness; no detector raises it yet.
    IP_CONFLICT = ("IP Address Conflict", Severity.HIGH)

    def __init__(self, description: str, severity: Severity):
        self.description = description
        self.severity = severity


@dataclass(frozen=True)
class ArpEntry:
    """A single observed IP-to-MAC binding."""
    ip_address: str
    mac_address: str
    source_interface: str
    timestamp: datetime = field(default_factory=utc_now)
    is_static: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip_address": self.ip_address,
            "mac_address": self.mac_address,
            "source_interface": self.source_interface,
            "timestamp": self.timestamp.isoformat(),
            "is_static": self.is_static,
        }


@dataclass(frozen=True)
class ArpPacket:
    """A decoded ARP frame, as produced by the capture layer."""
    timestamp: datetime
    opcode: ArpOpcode
    sender_mac: str
    sender_ip: str
    target_mac: str
    target_ip: str
    source_interface: str

    def to_entry(self, is_static: bool = False) -> ArpEntry:
        """Derive the binding this packet announces for its sender."""
        return ArpEntry(
            ip_address=self.sender_ip,
            mac_address=self.sender_mac,
            source_interface=self.source_interface,
            timestamp=self.timestamp,
            is_static=is_static,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "opcode": self.opcode.name,
            "sender_mac": self.sender_mac,
            "sender_ip": self.sender_ip,
            "target_mac": self.target_mac,
            "target_ip": self.target_ip,
            "source_interface": self.source_interface,
        }


@dataclass(frozen=True)
class Alert:
    """Structured detection result."""
    severity: Severity
    category: str
    message: str
    timestamp: datetime = field(default_factory=utc_now)
    packet: Optional[ArpPacket] = None
    old_entry: Optional[ArpEntry] = None
    new_entry: Optional[ArpEntry] = None

    @classmethod
    def for_attack(cls, attack: AttackType, message: str, **evidence) -> "Alert":
        """Build an alert using the attack type's category and default severity."""
        return cls(
            severity=attack.severity,
            category=attack.description,
            message=message,
            **evidence
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.label,
            "category": self.category,
            "message": self.message,
            "packet": self.packet.to_dict() if self.packet else None,
            "old_entry": self.old_entry.to_dict() if self.old_entry else None,
            "new_entry": self.new_entry.to_dict() if self.new_entry else None,
        }
