"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- BMKG feed client (HTTP)
- Earthquake stores (memory, SQLite, Firestore)
- Query API client and notification webhook (HTTP)
- Client state file and configuration loading (files/environment)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.bmkg_client import BMKGClient
from src.shell.store import EarthquakeStore, InMemoryStore, create_store
from src.shell.notification_client import NotificationClient
from src.shell.config_loader import load_config, Config

__all__ = [
    "BMKGClient",
    "EarthquakeStore",
    "InMemoryStore",
    "create_store",
    "NotificationClient",
    "load_config",
    "Config",
]
