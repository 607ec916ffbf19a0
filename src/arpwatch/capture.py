"""
capture.py
Scapy-based packet source for the ARP monitor.

Decodes ARP frames into ArpPacket values, either live from an interface
or offline from a pcap file. Frames that are not ARP, or that lack sender
addresses, are dropped here and never reach the monitor.

Note: Live capture needs root, or Linux capabilities:
  sudo setcap cap_net_raw,cap_net_admin=eip /path/to/venv/bin/python3
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from scapy.all import ARP, sniff
from scapy.packet import Packet
from scapy.utils import PcapReader

from arpwatch.config import canonical_mac
from arpwatch.models import ArpOpcode, ArpPacket

logger = logging.getLogger(__name__)

ANY_INTERFACE = "any"


def packet_from_scapy(pkt: Packet, interface: str = ANY_INTERFACE) -> Optional[ArpPacket]:
    """
    Convert a scapy frame to an ArpPacket.

    Args:
        pkt: Captured scapy packet
        interface: Interface name used when scapy did not record one

    Returns:
        ArpPacket, or None if the frame is not a usable ARP packet
    """
    if not pkt.haslayer(ARP):
        return None

    arp = pkt[ARP]
    sender_ip, sender_mac = arp.psrc, arp.hwsrc
    if not sender_ip or not sender_mac:
        logger.debug(f"Dropping ARP frame without sender addresses: {pkt.summary()}")
        return None

    try:
        timestamp = datetime.fromtimestamp(float(pkt.time), timezone.utc)
    except (TypeError, ValueError, OverflowError):
        timestamp = datetime.now(timezone.utc)

    return ArpPacket(
        timestamp=timestamp,
        opcode=ArpOpcode.from_code(int(arp.op)),
        sender_mac=canonical_mac(sender_mac),
        sender_ip=sender_ip,
        target_mac=canonical_mac(arp.hwdst or "00:00:00:00:00:00"),
        target_ip=arp.pdst or "0.0.0.0",
        source_interface=getattr(pkt, "sniffed_on", None) or interface,
    )


class LiveCapture:
    """
    Sniffs ARP traffic from an interface and hands decoded packets to a
    callback (normally ArpMonitor.ingest).
    """

    def __init__(self, interface: str = ANY_INTERFACE, timeout: int = 0):
        """
        Args:
            interface: Interface to listen on ("any" = scapy default)
            timeout: Seconds to capture for, 0 = until interrupted
        """
        self.interface = interface
        self.timeout = timeout
        self.packets_captured = 0
        self.packets_dropped = 0
        self._callback: Optional[Callable[[ArpPacket], object]] = None

    def _packet_callback(self, pkt: Packet):
        self.packets_captured += 1
        packet = packet_from_scapy(pkt, self.interface)
        if packet is None:
            self.packets_dropped += 1
            return
        self._callback(packet)

    def run(self, callback: Callable[[ArpPacket], object]):
        """
        Capture until the timeout expires or the user interrupts.

        Raises:
            PermissionError: If the process may not open a raw socket
        """
        self._callback = callback
        iface = None if self.interface == ANY_INTERFACE else self.interface
        logger.info(f"Capturing ARP on {self.interface}"
                    + (f" for {self.timeout}s" if self.timeout else ""))
        sniff(
            iface=iface,
            lfilter=lambda p: p.haslayer(ARP),
            prn=self._packet_callback,
            store=False,
            timeout=self.timeout or None
        )


def read_pcap(path: str, interface: str = ANY_INTERFACE) -> Iterator[ArpPacket]:
    """Yield every decodable ARP packet from a pcap file."""
    with PcapReader(path) as reader:
        for pkt in reader:
            packet = packet_from_scapy(pkt, interface)
            if packet is not None:
                yield packet
