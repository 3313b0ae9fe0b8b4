"""Sumo Logic collector client - verifies collector registration and manages its sources."""

__version__ = "0.1.0"
__description__ = "Sumo Logic collector and source management client"

from .config import CollectorClientConfig
from .api_client import CollectorClient, collector_exists
from .logging_config import setup_logging

__all__ = ["CollectorClient", "CollectorClientConfig", "collector_exists", "setup_logging"]
