"""
cache.py
Binding cache tracking every IP-to-MAC binding seen during a session.

Keeps two views:
- per-IP history of ArpEntry records (last element = current binding)
- per-MAC reverse index of every IP that MAC has claimed
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set

from arpwatch.models import Alert, ArpEntry, AttackType

logger = logging.getLogger(__name__)


class BindingCache:
    """
    Historical IP/MAC binding table.

    History is an audit trail, so every recorded entry is appended, even
    plain refreshes of an unchanged binding. The MAC reverse index only
    ever grows.
    """

    def __init__(self, history_limit: Optional[int] = None):
        """
        Args:
            history_limit: Maximum entries kept per IP (oldest dropped first).
                None keeps the full history for the life of the session.
        """
        if history_limit is not None and history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self.history_limit = history_limit
        self._ip_to_history: Dict[str, Deque[ArpEntry]] = {}
        self._mac_to_ips: Dict[str, Set[str]] = {}

    def record(self, entry: ArpEntry) -> Optional[Alert]:
        """
        Store a new observation and report what it means.

        Returns:
            MAC_CHANGE alert if the IP was bound to a different MAC,
            NEW_HOST alert if the IP was never seen, None for a refresh.
        """
        existing = self.current(entry.ip_address)

        self._mac_to_ips.setdefault(entry.mac_address, set()).add(entry.ip_address)

        history = self._ip_to_history.get(entry.ip_address)
        if history is None:
            history = deque(maxlen=self.history_limit)
            self._ip_to_history[entry.ip_address] = history
        history.append(entry)

        if existing is not None and existing.mac_address != entry.mac_address:
            logger.debug(f"Binding drift on {entry.ip_address}: "
                         f"{existing.mac_address} -> {entry.mac_address}")
            return Alert.for_attack(
                AttackType.MAC_CHANGE,
                f"MAC changed for {entry.ip_address}: "
                f"{existing.mac_address} -> {entry.mac_address}",
                old_entry=existing,
                new_entry=entry
            )

        if existing is None:
            return Alert.for_attack(
                AttackType.NEW_HOST,
                f"New host: {entry.ip_address} at {entry.mac_address}",
                new_entry=entry
            )

        return None

    def current(self, ip: str) -> Optional[ArpEntry]:
        """Latest binding for an IP, or None if never seen."""
        history = self._ip_to_history.get(ip)
        if not history:
            return None
        return history[-1]

    def history(self, ip: str) -> List[ArpEntry]:
        return list(self._ip_to_history.get(ip, ()))

    def ips_for_mac(self, mac: str) -> Set[str]:
        return set(self._mac_to_ips.get(mac, ()))

    def entries(self) -> Dict[str, List[ArpEntry]]:
        """Snapshot of the full per-IP history."""
        return {ip: list(history) for ip, history in self._ip_to_history.items()}

    def mac_mappings(self) -> Dict[str, Set[str]]:
        """Snapshot of the MAC-to-IPs reverse index."""
        return {mac: set(ips) for mac, ips in self._mac_to_ips.items()}

    def __contains__(self, ip) -> bool:
        return ip in self._ip_to_history

    def __len__(self) -> int:
        return len(self._ip_to_history)
