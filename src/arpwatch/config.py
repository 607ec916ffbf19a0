"""
config.py
Session configuration for the ARP monitor.

A MonitorConfig is built once at startup (defaults, then the JSON config
file, then command-line overrides) and passed into ArpMonitor. It is
immutable for the life of the session.

Config file format (JSON):
    {
        "interface": "eth0",
        "timeout": 60,
        "alert_threshold": 10,
        "trusted_macs": ["aa:bb:cc:dd:ee:ff"],
        "static_entries": {"192.168.1.1": "aa:bb:cc:dd:ee:ff"}
    }
"trusted_ips" is accepted as an alias of "static_entries". "json_output"
and "verbose" must be JSON booleans.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Tuple

from arpwatch import settings

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Raised when a config file or binding cannot be parsed."""


def canonical_mac(mac: str) -> str:
    """Lowercase colon-hex form of a MAC address."""
    return mac.strip().lower().replace("-", ":")


def coerce_int(value: Any, default: int, name: str = "value", minimum: int = 0) -> int:
    """
    Convert value to an int, falling back to default when it is unusable.

    Invalid values never abort the session; they are logged and replaced.
    """
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid {name} {value!r}, using default {default}")
        return default
    if number < minimum:
        logger.warning(f"{name} {number} below {minimum}, using default {default}")
        return default
    return number


def coerce_bool(value: Any, default: Optional[bool], name: str = "value") -> Optional[bool]:
    """Accept only real booleans; anything else is logged and replaced."""
    if isinstance(value, bool):
        return value
    if value is not None:
        logger.warning(f"Invalid {name} {value!r}, expected true or false")
    return default


def parse_binding(text: str) -> Tuple[str, str]:
    """Parse an "IP=MAC" static binding."""
    ip, sep, mac = text.partition("=")
    if not sep or not ip.strip() or not mac.strip():
        raise ConfigError(f"Invalid static binding {text!r}, expected IP=MAC")
    return ip.strip(), canonical_mac(mac)


@dataclass(frozen=True)
class MonitorConfig:
    """Immutable configuration for one monitoring session."""
    interface: str = settings.DEFAULT_INTERFACE
    timeout: int = settings.DEFAULT_TIMEOUT
    json_output: bool = False
    verbose: bool = False
    alert_threshold: int = settings.DEFAULT_ALERT_THRESHOLD
    trusted_macs: FrozenSet[str] = frozenset()
    static_entries: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    history_limit: Optional[int] = None
    window_size: int = settings.RECENT_WINDOW_SIZE

    def __post_init__(self):
        # Normalize containers so callers can pass plain lists/dicts
        object.__setattr__(self, "trusted_macs",
                           frozenset(canonical_mac(mac) for mac in self.trusted_macs))
        object.__setattr__(self, "static_entries", MappingProxyType(
            {ip: canonical_mac(mac) for ip, mac in dict(self.static_entries).items()}
        ))
        object.__setattr__(self, "timeout",
                           coerce_int(self.timeout, settings.DEFAULT_TIMEOUT, "timeout"))
        object.__setattr__(self, "alert_threshold",
                           coerce_int(self.alert_threshold, settings.DEFAULT_ALERT_THRESHOLD,
                                      "alert threshold"))
        object.__setattr__(self, "window_size",
                           coerce_int(self.window_size, settings.RECENT_WINDOW_SIZE,
                                      "window size", minimum=1))
        if self.history_limit is not None:
            object.__setattr__(self, "history_limit",
                               coerce_int(self.history_limit, None, "history limit", minimum=1))

    def merged(self, **overrides) -> "MonitorConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)

    def with_bindings(self, static_entries: Mapping[str, str] = None,
                      trusted_macs: Iterable[str] = ()) -> "MonitorConfig":
        """Return a copy with extra static entries and trusted MACs added."""
        entries = dict(self.static_entries)
        entries.update(static_entries or {})
        return replace(self, static_entries=entries,
                       trusted_macs=self.trusted_macs | frozenset(trusted_macs))


def load_config_file(path: str, base: MonitorConfig = None) -> MonitorConfig:
    """
    Load a JSON config file on top of base (defaults if omitted).

    Raises:
        ConfigError: If the file is missing, unreadable or not valid JSON
    """
    base = base or MonitorConfig()

    if not os.path.exists(path):
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not load config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")

    static_entries = data.get("static_entries", data.get("trusted_ips", {}))
    if not isinstance(static_entries, dict):
        raise ConfigError("static_entries must map IP addresses to MAC addresses")

    trusted_macs = data.get("trusted_macs", [])
    if not isinstance(trusted_macs, list):
        raise ConfigError("trusted_macs must be a list of MAC addresses")

    config = base.merged(
        interface=data.get("interface"),
        timeout=data.get("timeout"),
        json_output=coerce_bool(data.get("json_output"), None, "json_output"),
        verbose=coerce_bool(data.get("verbose"), None, "verbose"),
        alert_threshold=data.get("alert_threshold"),
        history_limit=data.get("history_limit"),
        window_size=data.get("window_size"),
    )
    config = config.with_bindings(static_entries, trusted_macs)

    logger.info(f"Loaded config {path}: {len(config.static_entries)} static entries, "
                f"{len(config.trusted_macs)} trusted MACs")
    return config
