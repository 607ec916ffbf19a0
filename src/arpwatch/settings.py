"""
settings.py
Defaults for ArpWatch. Values here are used when neither the config file
nor the command line supplies one.
"""

VERSION = "1.0.0"

# Capture
DEFAULT_INTERFACE = "any"  # "any" = let scapy pick its default interface
DEFAULT_TIMEOUT = 0  # Seconds, 0 = run until interrupted

# Detection
DEFAULT_ALERT_THRESHOLD = 10  # Unique sender MACs per window before MAC flood
RECENT_WINDOW_SIZE = 100  # Packets kept for flood evaluation

# Logging
LOG_FILE = None  # e.g. "logs/arpwatch.log"
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Read-only HTTP view
API_HOST = "127.0.0.1"
API_PORT = 8081
