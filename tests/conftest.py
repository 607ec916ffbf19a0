import pytest

from arpwatch.config import MonitorConfig
from arpwatch.models import ArpEntry, ArpOpcode
from arpwatch.monitor import ArpMonitor
from arpwatch.simulation import make_packet


@pytest.fixture
def packet():
    """Factory for ARP packets with sensible defaults."""
    def _make(sender_ip="192.168.1.10", sender_mac="00:11:22:33:44:55",
              opcode=ArpOpcode.REQUEST, target_ip="192.168.1.1",
              target_mac="ff:ff:ff:ff:ff:ff", interface="eth0"):
        return make_packet(opcode, sender_mac, sender_ip, target_mac, target_ip, interface)
    return _make


@pytest.fixture
def entry():
    def _make(ip="192.168.1.1", mac="aa:bb:cc:dd:ee:ff", interface="eth0"):
        return ArpEntry(ip_address=ip, mac_address=mac, source_interface=interface)
    return _make


@pytest.fixture
def monitor():
    return ArpMonitor(MonitorConfig())
