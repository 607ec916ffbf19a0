"""
simulation.py
Synthetic ARP traffic for demos and tests.

Nothing here touches the network; packets are built in memory and fed
straight to a monitor.
"""

import time
from datetime import datetime, timezone
from typing import Iterable, List

from arpwatch.models import ArpOpcode, ArpPacket

GATEWAY_IP = "192.168.1.1"
GATEWAY_MAC = "aa:bb:cc:dd:ee:ff"
ATTACKER_MAC = "de:ad:be:ef:ca:fe"
BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"


def make_packet(opcode: ArpOpcode, sender_mac: str, sender_ip: str,
                target_mac: str, target_ip: str, interface: str = "eth0") -> ArpPacket:
    return ArpPacket(
        timestamp=datetime.now(timezone.utc),
        opcode=opcode,
        sender_mac=sender_mac,
        sender_ip=sender_ip,
        target_mac=target_mac,
        target_ip=target_ip,
        source_interface=interface,
    )


def demo_packets(interface: str = "eth0") -> List[ArpPacket]:
    """
    Four-packet demo session:
    a host asks for the gateway, the gateway answers, a second reply
    claims the gateway IP from another MAC, then a gratuitous reply.
    """
    return [
        make_packet(ArpOpcode.REQUEST, "00:11:22:33:44:55", "192.168.1.100",
                    BROADCAST_MAC, GATEWAY_IP, interface),
        make_packet(ArpOpcode.REPLY, GATEWAY_MAC, GATEWAY_IP,
                    "00:11:22:33:44:55", "192.168.1.100", interface),
        # MAC change on the gateway
        make_packet(ArpOpcode.REPLY, ATTACKER_MAC, GATEWAY_IP,
                    "00:11:22:33:44:55", "192.168.1.100", interface),
        make_packet(ArpOpcode.REPLY, "12:34:56:78:9a:bc", "192.168.1.50",
                    "12:34:56:78:9a:bc", "192.168.1.50", interface),
    ]


def flood_packets(count: int, interface: str = "eth0") -> List[ArpPacket]:
    """Requests from count distinct sender MACs and IPs."""
    packets = []
    for i in range(count):
        mac = "02:00:00:00:{:02x}:{:02x}".format((i >> 8) & 0xff, i & 0xff)
        ip = "10.0.{}.{}".format((i >> 8) & 0xff, i & 0xff)
        packets.append(make_packet(ArpOpcode.REQUEST, mac, ip, BROADCAST_MAC,
                                   GATEWAY_IP, interface))
    return packets


def replay(ingest, packets: Iterable[ArpPacket], delay: float = 0.0) -> int:
    """
    Feed packets to ingest (usually ArpMonitor.ingest), pausing delay
    seconds before each one. Returns the number of packets fed.
    """
    count = 0
    for packet in packets:
        if delay:
            time.sleep(delay)
        ingest(packet)
        count += 1
    return count
