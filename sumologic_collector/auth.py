"""Credential handling for the Sumo Logic collector client."""

import base64
from typing import Dict
from urllib.parse import urlparse

import structlog

from . import __version__
from .config import CollectorClientConfig
from .exceptions import ConfigurationError


logger = structlog.get_logger(__name__)


class SumoLogicAuth:
    """Builds basic authentication headers from an access id/key pair.

    Sumo Logic accepts the access id as the username and the access key as
    the password on every request, so there is no session to maintain.
    """

    def __init__(self, config: CollectorClientConfig):
        """Initialize authentication manager with configuration.

        Args:
            config: Client configuration containing credentials

        Raises:
            ConfigurationError: If required credentials are missing or invalid
        """
        self.config = config
        self._validate_credentials()

        logger.debug(
            "Initialized Sumo Logic credentials",
            endpoint=self.config.api_url,
            access_id=self.masked_access_id
        )

    @property
    def masked_access_id(self) -> str:
        """Access id shortened for log output."""
        return self.config.access_id[:8] + "..."

    def _validate_credentials(self) -> None:
        """Validate that required credentials are provided.

        Raises:
            ConfigurationError: If credentials are missing or invalid
        """
        if not self.config.access_id:
            raise ConfigurationError(
                "Sumo Logic Access ID is required",
                config_key="access_id"
            )

        if not self.config.access_key:
            raise ConfigurationError(
                "Sumo Logic Access Key is required",
                config_key="access_key"
            )

        parsed = urlparse(self.config.api_url)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigurationError(
                "Invalid Sumo Logic endpoint",
                config_key="endpoint",
                config_value=self.config.api_url
            )

    def get_auth_headers(self) -> Dict[str, str]:
        """Create basic authentication headers.

        Returns:
            Dictionary containing authorization headers
        """
        auth_string = f"{self.config.access_id}:{self.config.access_key}"
        auth_bytes = auth_string.encode('utf-8')
        auth_b64 = base64.b64encode(auth_bytes).decode('ascii')

        return {
            "Authorization": f"Basic {auth_b64}",
            "User-Agent": f"sumologic-collector/{__version__}",
            "Accept": "application/json"
        }
