"""
ArpWatch - passive ARP anomaly detection.

Feeds decoded ARP packets through a binding cache and a fixed set of
detectors, and reports spoofing, MAC changes, MAC floods and gratuitous
ARP as structured alerts.
"""

from arpwatch.cache import BindingCache
from arpwatch.config import ConfigError, MonitorConfig
from arpwatch.models import Alert, ArpEntry, ArpOpcode, ArpPacket, AttackType, Severity
from arpwatch.monitor import ArpMonitor, MonitorState
from arpwatch.settings import VERSION as __version__

__all__ = [
    "Alert",
    "ArpEntry",
    "ArpMonitor",
    "ArpOpcode",
    "ArpPacket",
    "AttackType",
    "BindingCache",
    "ConfigError",
    "MonitorConfig",
    "MonitorState",
    "Severity",
]
