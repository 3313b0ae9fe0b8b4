"""Configuration management for the Sumo Logic collector client."""

import os
import re
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator


DEFAULT_REGION = "us2"
DEFAULT_REQUEST_TIMEOUT = 60
DEFAULT_BACKOFF_STEP = 10.0
DEFAULT_CONNECT_TIMEOUT = 10.0


class CollectorClientConfig(BaseModel):
    """Configuration for the Sumo Logic collector client."""

    # Sumo Logic API credentials
    access_id: str = Field(..., description="Sumo Logic Access ID")
    access_key: str = Field(..., description="Sumo Logic Access Key")

    # API location
    region: str = Field(
        default=DEFAULT_REGION,
        description="Sumo Logic deployment region used to build the API URL"
    )
    endpoint: Optional[str] = Field(
        default=None,
        description="Explicit API base URL, overrides the region derived URL"
    )

    # Request behaviour
    request_timeout: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        description="Overall per-call deadline in seconds"
    )
    connect_timeout: Optional[float] = Field(
        default=None,
        description="Transport connect timeout in seconds, kept below the request deadline"
    )
    backoff_step: float = Field(
        default=DEFAULT_BACKOFF_STEP,
        description="Seconds added to the retry delay after each connect timeout"
    )

    # Logging configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    @validator("region")
    def validate_region(cls, v: str) -> str:
        """Validate deployment region."""
        v = v.strip().lower()
        if not re.fullmatch(r"[a-z0-9]+", v):
            raise ValueError("Region must be alphanumeric, e.g. 'us2' or 'eu'")
        return v

    @validator("endpoint")
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Validate explicit endpoint URL."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError("Endpoint must be a valid HTTP/HTTPS URL")
        return v.rstrip("/")

    @validator("request_timeout", pre=True)
    def validate_request_timeout(cls, v) -> int:
        """Validate request timeout; unset or zero means the default."""
        if v is None or v == "":
            return DEFAULT_REQUEST_TIMEOUT
        v = int(v)
        if v == 0:
            return DEFAULT_REQUEST_TIMEOUT
        if v < 0:
            raise ValueError("Request timeout must be greater than 0")
        return v

    @validator("connect_timeout", pre=True, always=True)
    def validate_connect_timeout(cls, v, values) -> Optional[float]:
        """Keep the connect timeout below the request deadline.

        Unset means 10 seconds, or half the deadline when that is shorter.
        """
        request_timeout = values.get("request_timeout")
        if v is None or v == "":
            if request_timeout is None:
                return DEFAULT_CONNECT_TIMEOUT
            return min(DEFAULT_CONNECT_TIMEOUT, request_timeout / 2)
        v = float(v)
        if v <= 0:
            raise ValueError("Connect timeout must be greater than 0")
        if request_timeout is not None and v >= request_timeout:
            raise ValueError("Connect timeout must be less than the request timeout")
        return v

    @validator("backoff_step")
    def validate_backoff_step(cls, v: float) -> float:
        """Validate retry backoff step."""
        if v < 0:
            raise ValueError("Backoff step must be non-negative")
        return v

    @validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper

    @validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "text"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Log format must be one of: {', '.join(valid_formats)}")
        return v_lower

    @property
    def api_url(self) -> str:
        """Base URL of the collector management API."""
        if self.endpoint:
            return self.endpoint
        return f"https://api.{self.region}.sumologic.com/api/v1"

    @classmethod
    def from_env(cls) -> "CollectorClientConfig":
        """Create configuration from environment variables.

        A ``.env`` file in the working directory is loaded first. Both the
        ``SUMOLOGIC_*`` names and the ``SUMO_*`` names used by the recipe
        attributes are accepted, ``SUMOLOGIC_*`` taking precedence.
        """
        load_dotenv()

        def get_env_with_fallback(primary: str, fallback: str, default: str = "") -> str:
            return os.getenv(primary) or os.getenv(fallback) or default

        return cls(
            access_id=get_env_with_fallback("SUMOLOGIC_ACCESS_ID", "SUMO_ACCESS_ID"),
            access_key=get_env_with_fallback("SUMOLOGIC_ACCESS_KEY", "SUMO_ACCESS_KEY"),
            region=get_env_with_fallback("SUMOLOGIC_REGION", "SUMO_REGION", DEFAULT_REGION),
            endpoint=os.getenv("SUMOLOGIC_ENDPOINT") or None,
            request_timeout=get_env_with_fallback("SUMOLOGIC_TIMEOUT", "SUMO_TIMEOUT") or None,
            connect_timeout=os.getenv("SUMOLOGIC_CONNECT_TIMEOUT") or None,
            log_level=get_env_with_fallback("SUMOLOGIC_LOG_LEVEL", "LOG_LEVEL", "INFO"),
            log_format=get_env_with_fallback("SUMOLOGIC_LOG_FORMAT", "LOG_FORMAT", "json"),
        )
