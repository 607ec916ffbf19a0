"""
detectors.py
Detection rules evaluated against every ingested ARP packet.

The check_* functions are pure reads over a packet (and the recent-packet
window); they never raise and return either an Alert or None. The
ArpDetector classes wrap them with configuration and per-rule counters so
the monitor can run them uniformly.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Mapping, Optional, Sequence

from arpwatch.models import Alert, ArpOpcode, ArpPacket, AttackType


def check_spoof(packet: ArpPacket, static_bindings: Mapping[str, str]) -> Optional[Alert]:
    """
    Flag a packet that contradicts an operator-declared static binding.

    IPs without a static binding are never flagged here. MACs are compared
    as given; ArpMonitor canonicalizes them before any detector runs.
    """
    expected_mac = static_bindings.get(packet.sender_ip)
    if expected_mac is None:
        return None

    if expected_mac != packet.sender_mac:
        return Alert.for_attack(
            AttackType.ARP_SPOOF,
            f"ARP spoofing detected! {packet.sender_ip} claims to be "
            f"{packet.sender_mac}, expected {expected_mac}",
            packet=packet
        )
    return None


def check_gratuitous(packet: ArpPacket) -> Optional[Alert]:
    """Flag replies where the sender announces its own IP as the target."""
    if packet.opcode is ArpOpcode.REPLY and packet.sender_ip == packet.target_ip:
        return Alert.for_attack(
            AttackType.GRATUITOUS_ARP,
            f"Gratuitous ARP from {packet.sender_mac} for {packet.sender_ip}",
            packet=packet
        )
    return None


def check_flood(window: Iterable[ArpPacket], threshold: int) -> Optional[Alert]:
    """Flag a window holding more distinct sender MACs than the threshold."""
    unique_macs = {packet.sender_mac for packet in window}
    if len(unique_macs) > threshold:
        return Alert.for_attack(
            AttackType.MAC_FLOOD,
            f"Potential MAC flood: {len(unique_macs)} unique MACs in short timeframe"
        )
    return None


class ArpDetector(ABC):
    """
    Base class for the detection rules run by the monitor.

    Each concrete detector implements inspect(); the monitor calls every
    detector in a fixed order after the binding cache has been updated.
    """

    def __init__(self, name: str):
        """
        Args:
            name: Identifier for this detector (used in statistics)
        """
        self.name = name
        self.alert_count = 0

    @abstractmethod
    def evaluate(self, packet: ArpPacket, window: Sequence[ArpPacket]) -> Optional[Alert]:
        """
        Apply the rule to one packet.

        Args:
            packet: The packet just ingested
            window: Recent packets, oldest first, including this one

        Returns:
            Alert if the rule fires, None otherwise
        """

    def inspect(self, packet: ArpPacket, window: Sequence[ArpPacket]) -> Optional[Alert]:
        alert = self.evaluate(packet, window)
        if alert is not None:
            self.alert_count += 1
        return alert

    def get_statistics(self) -> Dict[str, object]:
        return {
            "detector_name": self.name,
            "total_alerts": self.alert_count
        }


class SpoofDetector(ArpDetector):
    """
    Static-binding violation detector.

    Only IPs listed in static_bindings are protected (typically the default
    gateway). Sender MACs in trusted_macs are never reported.
    """

    def __init__(self, static_bindings: Mapping[str, str] = None,
                 trusted_macs: Iterable[str] = ()):
        super().__init__("ARP Spoofing Detector")
        self.static_bindings = dict(static_bindings or {})
        self.trusted_macs = frozenset(trusted_macs)

    def evaluate(self, packet, window):
        if packet.sender_mac in self.trusted_macs:
            return None
        return check_spoof(packet, self.static_bindings)

    def get_statistics(self):
        stats = super().get_statistics()
        stats["static_bindings"] = len(self.static_bindings)
        stats["trusted_macs"] = len(self.trusted_macs)
        return stats


class FloodDetector(ArpDetector):
    """Unique sender MAC count over the recent-packet window."""

    def __init__(self, threshold: int = 10):
        super().__init__("MAC Flood Detector")
        self.threshold = threshold

    def evaluate(self, packet, window):
        return check_flood(window, self.threshold)

    def get_statistics(self):
        stats = super().get_statistics()
        stats["threshold"] = self.threshold
        return stats


class GratuitousDetector(ArpDetector):

    def __init__(self):
        super().__init__("Gratuitous ARP Detector")

    def evaluate(self, packet, window):
        return check_gratuitous(packet)
