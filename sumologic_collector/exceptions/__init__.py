"""Custom exception classes for the Sumo Logic collector client."""

from typing import Optional, Dict, Any

import httpx


class SumoLogicError(Exception):
    """Base exception for all Sumo Logic collector operations.

    It carries a human readable message plus an optional context dictionary
    that is rendered into the string form and into ``to_dict()``.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Initialize the exception with a message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary containing additional error context
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of the exception."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context
        }


class APIError(SumoLogicError):
    """Raised when Sumo Logic API calls fail.

    This exception is raised when:
    - The API answers with a non-success status code
    - The transport fails for any reason other than a connect timeout

    The raw response is kept on ``response`` for diagnostics when one exists.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        response: Optional[httpx.Response] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """Initialize API error.

        Args:
            message: Error message describing the API failure
            status_code: HTTP status code from the failed request
            response_body: Raw response body from the failed request
            response: The raw response object, if the server answered
            context: Additional context about the API failure
        """
        super().__init__(message, context)
        if response is not None:
            if status_code is None:
                status_code = response.status_code
            if response_body is None:
                response_body = response.text
        self.status_code = status_code
        self.response_body = response_body
        self.response = response

    def __str__(self) -> str:
        """Return string representation including status code."""
        base_str = super().__str__()
        if self.status_code:
            return f"{base_str} (HTTP {self.status_code})"
        return base_str

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        result = super().to_dict()
        if self.status_code:
            result["status_code"] = self.status_code
        if self.response_body:
            result["response_body"] = self.response_body
        return result

    @property
    def is_client_error(self) -> bool:
        """Check if this is a client error (4xx status code)."""
        return self.status_code is not None and 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """Check if this is a server error (5xx status code)."""
        return self.status_code is not None and 500 <= self.status_code < 600


class ParseError(APIError):
    """Raised when a response body that should be JSON is not."""


class ConfigurationError(SumoLogicError):
    """Raised when client configuration is invalid.

    This exception is raised when:
    - Credentials are missing
    - The endpoint or timeout values are invalid
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue
            config_key: Configuration key that has the issue
            config_value: Configuration value that is invalid
            context: Additional context about the configuration error
        """
        super().__init__(message, context)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        result = super().to_dict()
        if self.config_key:
            result["config_key"] = self.config_key
        if self.config_value:
            result["config_value"] = self.config_value
        return result


class CollectorNotFoundError(SumoLogicError):
    """Raised when no collector with the requested name is registered."""

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"Collector '{name}' not found", context)
        self.name = name


class TimeoutError(SumoLogicError):
    """Raised when the overall request deadline elapses.

    Connect timeouts reported by the transport are retried; this error only
    surfaces once the whole operation has run out of time.
    """

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """Initialize timeout error.

        Args:
            message: Error message describing the timeout
            timeout_seconds: Timeout duration in seconds
            operation: Operation that timed out
            context: Additional context about the timeout
        """
        super().__init__(message, context)
        self.timeout_seconds = timeout_seconds
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        result = super().to_dict()
        if self.timeout_seconds:
            result["timeout_seconds"] = self.timeout_seconds
        if self.operation:
            result["operation"] = self.operation
        return result


# Export all exception classes
__all__ = [
    'SumoLogicError',
    'APIError',
    'ParseError',
    'ConfigurationError',
    'CollectorNotFoundError',
    'TimeoutError'
]
