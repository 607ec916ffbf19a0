"""
monitor.py
ARP monitoring pipeline.

Ingests decoded packets one at a time and runs, in a fixed order:
    1. recent-packet window update
    2. binding cache update (new host / MAC change)
    3. spoof detection
    4. flood detection
    5. gratuitous ARP detection
Every alert is appended to the session log and pushed to the alert sinks
as soon as it is produced.
"""

import logging
import threading
from collections import deque
from dataclasses import replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from arpwatch.cache import BindingCache
from arpwatch.config import MonitorConfig, canonical_mac
from arpwatch.detectors import ArpDetector, FloodDetector, GratuitousDetector, SpoofDetector
from arpwatch.models import Alert, ArpEntry, ArpPacket, Severity

logger = logging.getLogger(__name__)

AlertSink = Callable[[Alert], None]
PacketSink = Callable[[ArpPacket], None]


class MonitorState(Enum):
    IDLE = "idle"
    RUNNING = "running"


class ArpMonitor:
    """
    Owns the binding cache, the recent-packet window and the alert log for
    one monitoring session.

    ingest() and the snapshot reads share a lock, so a reader thread (for
    example the HTTP view) may query the monitor while capture feeds it.
    Run one monitor per interface.
    """

    def __init__(self, config: MonitorConfig = None,
                 alert_sinks: Iterable[AlertSink] = (),
                 packet_sinks: Iterable[PacketSink] = ()):
        """
        Args:
            config: Session configuration (defaults if omitted)
            alert_sinks: Callables receiving every alert as it is emitted
            packet_sinks: Callables receiving every packet in verbose mode
        """
        self.config = config or MonitorConfig()
        self.cache = BindingCache(history_limit=self.config.history_limit)
        self.detectors: List[ArpDetector] = [
            SpoofDetector(self.config.static_entries, self.config.trusted_macs),
            FloodDetector(self.config.alert_threshold),
            GratuitousDetector(),
        ]
        self.alert_sinks: List[AlertSink] = list(alert_sinks)
        self.packet_sinks: List[PacketSink] = list(packet_sinks)

        self._alerts: List[Alert] = []
        self._window = deque(maxlen=self.config.window_size)
        self._state = MonitorState.IDLE
        self._packets_processed = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def alerts(self) -> List[Alert]:
        with self._lock:
            return list(self._alerts)

    @property
    def recent_packets(self) -> List[ArpPacket]:
        with self._lock:
            return list(self._window)

    def add_alert_sink(self, sink: AlertSink):
        self.alert_sinks.append(sink)

    def add_packet_sink(self, sink: PacketSink):
        self.packet_sinks.append(sink)

    def ingest(self, packet: ArpPacket) -> List[Alert]:
        """
        Process one packet through the pipeline.

        Returns:
            Alerts produced for this packet, in emission order
        """
        # One MAC spelling for the cache, the window and every detector
        packet = replace(packet, sender_mac=canonical_mac(packet.sender_mac))

        with self._lock:
            self._state = MonitorState.RUNNING
            self._packets_processed += 1

            # Oldest packet falls off once the window is full
            self._window.append(packet)
            window = list(self._window)

            expected_mac = self.config.static_entries.get(packet.sender_ip)
            is_static = expected_mac == packet.sender_mac
            produced: List[Optional[Alert]] = [self.cache.record(packet.to_entry(is_static))]
            for detector in self.detectors:
                produced.append(detector.inspect(packet, window))

            emitted = [alert for alert in produced if alert is not None]
            self._alerts.extend(emitted)

        for alert in emitted:
            self._log_alert(alert)
            for sink in self.alert_sinks:
                self._deliver(sink, alert)
        if self.config.verbose:
            for sink in self.packet_sinks:
                self._deliver(sink, packet)

        return emitted

    def ingest_all(self, packets: Iterable[ArpPacket]) -> List[Alert]:
        alerts = []
        for packet in packets:
            alerts.extend(self.ingest(packet))
        return alerts

    def alerts_by_severity(self, severity: Severity) -> List[Alert]:
        with self._lock:
            return [alert for alert in self._alerts if alert.severity is severity]

    def get_statistics(self) -> Dict[str, object]:
        """Snapshot of session counters. Does not modify any state."""
        with self._lock:
            counts = {severity: 0 for severity in Severity}
            for alert in self._alerts:
                counts[alert.severity] += 1
            return {
                "total_alerts": len(self._alerts),
                "critical": counts[Severity.CRITICAL],
                "high": counts[Severity.HIGH],
                "medium": counts[Severity.MEDIUM],
                "low": counts[Severity.LOW],
                "info": counts[Severity.INFO],
                "cache_size": len(self.cache),
                "packets_processed": self._packets_processed,
                "window_size": len(self._window),
                "state": self._state.value,
            }

    def cache_snapshot(self) -> Tuple[Dict[str, List[ArpEntry]], Dict[str, Set[str]]]:
        """Consistent copy of (per-IP history, MAC-to-IPs index)."""
        with self._lock:
            return self.cache.entries(), self.cache.mac_mappings()

    def binding_history(self, ip: str) -> List[ArpEntry]:
        with self._lock:
            return self.cache.history(ip)

    def get_detector_statistics(self) -> List[Dict[str, object]]:
        with self._lock:
            return [detector.get_statistics() for detector in self.detectors]

    def _log_alert(self, alert: Alert):
        if alert.severity >= Severity.HIGH:
            logger.warning(f"{alert.category}: {alert.message}")
        else:
            logger.info(f"{alert.category}: {alert.message}")

    def _deliver(self, sink, item):
        # A failing sink must not stop detection or starve the other sinks
        try:
            sink(item)
        except Exception as e:
            logger.error(f"Sink {getattr(sink, '__name__', sink)!r} failed: {e}")
