"""Collector and source management client for the Sumo Logic REST API."""

import json
from typing import Dict, Any, Optional, List

import httpx
import structlog

from .auth import SumoLogicAuth
from .config import CollectorClientConfig, DEFAULT_REGION
from .exceptions import APIError, CollectorNotFoundError, ParseError
from .resilience import DeadlineRetry


logger = structlog.get_logger(__name__)


class CollectorClient:
    """Client for one named Sumo Logic collector and its sources.

    The collector list and the source list of the resolved collector are
    fetched lazily and cached on the instance. Mutations do not touch the
    caches; call :meth:`refresh` to re-fetch both.

    Attributes:
        name: Name of the collector this client manages
        config: Client configuration
        auth: Credential handler producing basic auth headers
        retry: Deadline and connect-timeout retry wrapper
        collectors: Cached collector list, ``None`` until fetched
        sources: Cached source list of the collector, ``None`` until fetched
    """

    def __init__(
        self,
        name: str,
        config: CollectorClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the client.

        Args:
            name: Collector name to resolve
            config: Configuration with credentials and API location
            transport: Optional httpx transport, mostly useful for tests
        """
        self.name = name
        self.config = config
        self.auth = SumoLogicAuth(config)
        self.retry = DeadlineRetry(
            timeout=config.request_timeout,
            backoff_step=config.backoff_step
        )
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

        self.collectors: Optional[List[Dict[str, Any]]] = None
        self.sources: Optional[List[Dict[str, Any]]] = None

        logger.info(
            "Initialized collector client",
            collector_name=name,
            endpoint=self.config.api_url,
            request_timeout=self.config.request_timeout,
            connect_timeout=self.config.connect_timeout,
            access_id=self.auth.masked_access_id
        )

    @classmethod
    def from_credentials(
        cls,
        name: str,
        access_id: str,
        access_key: str,
        request_timeout: Optional[int] = None,
        region: str = DEFAULT_REGION,
        **kwargs
    ) -> "CollectorClient":
        """Build a client straight from an access id/key pair."""
        transport = kwargs.pop("transport", None)
        config = CollectorClientConfig(
            access_id=access_id,
            access_key=access_key,
            request_timeout=request_timeout,
            region=region,
            **kwargs
        )
        return cls(name, config, transport=transport)

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client used for API requests."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    self.config.request_timeout,
                    connect=self.config.connect_timeout
                ),
                transport=self._transport,
                headers=self.auth.get_auth_headers()
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # Transport

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> httpx.Response:
        """Make an HTTP request under the configured deadline.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            endpoint: API path relative to the base URL
            params: Query parameters
            json_data: JSON request body
            headers: Additional headers

        Returns:
            HTTP response object with a success status

        Raises:
            APIError: If the request fails or returns a non-success status
            TimeoutError: If the overall deadline elapses
        """
        url = f"{self.config.api_url}{endpoint}"

        async def make_single_request() -> httpx.Response:
            logger.debug(
                "Making request",
                method=method,
                url=url,
                params=params,
                has_json_data=json_data is not None
            )
            response = await self._execute_http_request(method, url, params, json_data, headers)
            self._handle_response_errors(response, endpoint, method)
            return response

        return await self.retry.execute(make_single_request, operation=f"{method} {endpoint}")

    async def _execute_http_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]],
        json_data: Optional[Dict[str, Any]],
        headers: Optional[Dict[str, str]]
    ) -> httpx.Response:
        """Execute the actual HTTP request.

        Connect timeouts are re-raised untouched so the retry wrapper can see
        them; every other transport failure becomes an ``APIError``.
        """
        try:
            response = await self.http_client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=headers
            )
        except httpx.ConnectTimeout:
            raise
        except httpx.RequestError as e:
            raise APIError(
                f"Request to {url} failed: {e}",
                context={
                    "method": method,
                    "url": url,
                    "error_type": type(e).__name__
                }
            ) from e

        logger.debug(
            "Received response",
            status_code=response.status_code,
            response_size=len(response.content) if response.content else 0,
            url=url
        )
        return response

    def _handle_response_errors(
        self,
        response: httpx.Response,
        endpoint: str,
        method: str
    ) -> None:
        """Raise ``APIError`` for any non-success response."""
        if response.is_success:
            return

        raise APIError(
            f"Sumo Logic API request {method} {endpoint} failed",
            response=response,
            context={"endpoint": endpoint, "method": method}
        )

    def _parse_json_response(self, response: httpx.Response) -> Any:
        """Parse a JSON response body.

        Raises:
            ParseError: If the body is not JSON; status and body are logged first
        """
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            self._log_unexpected_body(response, "Sumo Logic sent something that does not appear to be JSON")
            raise ParseError(
                f"Failed to parse JSON response: {e}",
                response=response,
                context={"content_type": response.headers.get("content-type")}
            ) from e

    def _parse_json_object(self, response: httpx.Response) -> Dict[str, Any]:
        """Parse a JSON response body that must be an object.

        Raises:
            ParseError: If the body is not JSON or not a JSON object
        """
        data = self._parse_json_response(response)
        if not isinstance(data, dict):
            self._log_unexpected_body(response, "Sumo Logic sent JSON that is not an object")
            raise ParseError(
                f"Expected a JSON object, got {type(data).__name__}",
                response=response,
                context={"content_type": response.headers.get("content-type")}
            )
        return data

    def _log_unexpected_body(self, response: httpx.Response, event: str) -> None:
        logger.warning(
            event,
            status_code=response.status_code,
            body=response.text,
            content_type=response.headers.get("content-type")
        )

    async def _request_json(self, method: str, endpoint: str, **kwargs) -> Any:
        response = await self._make_request(method, endpoint, **kwargs)
        return self._parse_json_response(response)

    async def _request_json_object(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        response = await self._make_request(method, endpoint, **kwargs)
        return self._parse_json_object(response)

    # Collectors

    async def list_collectors(self) -> List[Dict[str, Any]]:
        """Fetch the full collector list and store it in the cache."""
        data = await self._request_json_object("GET", "/collectors")
        self.collectors = data.get("collectors") or []

        logger.info("Retrieved collectors", count=len(self.collectors))
        return self.collectors

    async def get_collectors(self) -> List[Dict[str, Any]]:
        """Return the cached collector list, fetching it if needed."""
        if self.collectors is None:
            await self.list_collectors()
        return self.collectors

    async def find_collector_metadata(self) -> Optional[Dict[str, Any]]:
        """Return the collector entry named ``self.name``, or ``None``."""
        for collector in await self.get_collectors():
            if collector.get("name") == self.name:
                return collector
        return None

    async def exists(self) -> bool:
        """Check whether a collector with this client's name is registered."""
        found = await self.find_collector_metadata() is not None
        logger.debug("Checked collector registration", collector_name=self.name, exists=found)
        return found

    async def get_collector_id(self) -> str:
        """Return the id of the resolved collector.

        Raises:
            CollectorNotFoundError: If no collector has this client's name
        """
        metadata = await self.find_collector_metadata()
        if metadata is None:
            raise CollectorNotFoundError(self.name)
        return str(metadata["id"])

    # Sources

    async def fetch_sources(self) -> List[Dict[str, Any]]:
        """Fetch the collector's source list and store it in the cache."""
        collector_id = await self.get_collector_id()
        data = await self._request_json_object("GET", f"/collectors/{collector_id}/sources")
        self.sources = data.get("sources") or []

        logger.info(
            "Retrieved sources",
            count=len(self.sources),
            collector_id=collector_id,
            collector_name=self.name
        )
        return self.sources

    async def get_sources(self) -> List[Dict[str, Any]]:
        """Return the cached source list, fetching it if needed."""
        if self.sources is None:
            await self.fetch_sources()
        return self.sources

    async def source_exists(self, source_name: str) -> bool:
        """Check whether the collector has a source called ``source_name``."""
        return await self.find_source(source_name) is not None

    async def find_source(self, source_name: str) -> Optional[Dict[str, Any]]:
        """Return the source called ``source_name``, or ``None``."""
        for source in await self.get_sources():
            if source.get("name") == source_name:
                return source
        return None

    async def add_source(self, source_data: Dict[str, Any]) -> httpx.Response:
        """Create a source on the collector.

        The response is returned as is because creation responses are not
        guaranteed to be JSON.
        """
        collector_id = await self.get_collector_id()

        logger.info(
            "Creating source",
            source_name=source_data.get("name"),
            collector_id=collector_id
        )
        return await self._make_request(
            "POST",
            f"/collectors/{collector_id}/sources",
            json_data={"source": source_data}
        )

    async def delete_source(self, source_id: str) -> httpx.Response:
        """Delete a source from the collector and return the raw response."""
        collector_id = await self.get_collector_id()

        logger.info("Deleting source", collector_id=collector_id, source_id=source_id)
        return await self._make_request(
            "DELETE",
            f"/collectors/{collector_id}/sources/{source_id}"
        )

    async def update_source(self, source_id: str, source_data: Dict[str, Any]) -> httpx.Response:
        """Replace a source definition using its current etag.

        Args:
            source_id: Id of the source to update
            source_data: New source fields; ``id`` is set to ``source_id``

        Returns:
            The raw response of the PUT request
        """
        collector_id = await self.get_collector_id()
        etag = await self.get_etag(source_id)

        logger.info("Updating source", collector_id=collector_id, source_id=source_id)
        return await self._make_request(
            "PUT",
            f"/collectors/{collector_id}/sources/{source_id}",
            json_data={"source": {**source_data, "id": source_id}},
            headers={"If-Match": etag}
        )

    async def get_etag(self, source_id: str) -> str:
        """Fetch the current etag of a source.

        The ``ETag`` response header is used; when the server omits it the
        ``etag`` field of the returned source is used instead.

        Raises:
            APIError: If neither the header nor the body carries an etag
        """
        collector_id = await self.get_collector_id()
        response = await self._make_request(
            "GET",
            f"/collectors/{collector_id}/sources/{source_id}"
        )

        etag = response.headers.get("etag")
        if not etag:
            body = self._parse_json_response(response)
            if isinstance(body, dict):
                source = body.get("source")
                if isinstance(source, dict):
                    etag = source.get("etag")
                etag = etag or body.get("etag")

        if not etag:
            raise APIError(
                f"No etag returned for source {source_id}",
                response=response,
                context={"collector_id": collector_id, "source_id": source_id}
            )
        return etag

    # Search and cache

    async def search(self, query: str) -> Any:
        """Run a log search and return the parsed result."""
        logger.debug("Searching logs", query=query)
        return await self._request_json("GET", "/logs/search", params={"q": query})

    async def refresh(self) -> None:
        """Discard cached collectors and sources and fetch them again.

        Sources are only re-fetched when the collector is registered.
        """
        self.collectors = None
        self.sources = None

        await self.list_collectors()
        if await self.exists():
            await self.fetch_sources()


async def collector_exists(
    name: str,
    access_id: str,
    access_key: str,
    request_timeout: Optional[int] = None,
    **kwargs
) -> bool:
    """Check once whether a collector called ``name`` is registered."""
    client = CollectorClient.from_credentials(
        name, access_id, access_key, request_timeout=request_timeout, **kwargs
    )
    async with client:
        return await client.exists()
