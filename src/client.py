"""
Cluster client - Shared handle to the Kubernetes API server.

The broker creates one client during init() and shares it by reference
with every controller.
"""

import logging
import ssl
from typing import Any, Dict, Optional, Union

import aiohttp

from config import ClusterConfig, get_config
from errors import ClusterAPIError

MERGE_PATCH = "application/merge-patch+json"


class ClusterClient:
    """Thin JSON client over an aiohttp session."""

    def __init__(
        self,
        config: ClusterConfig,
        logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.config = config
        self.base_url = config.api_url.rstrip("/")
        self.namespace = config.namespace
        self.logger = logger or logging.getLogger(__name__)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    def _ssl_context(self) -> Union[ssl.SSLContext, bool]:
        if not self.config.verify_ssl:
            return False
        if self.config.ca_file:
            return ssl.create_default_context(cafile=self.config.ca_file)
        return True

    async def connect(self) -> None:
        """Open the HTTP session and optionally probe the API server."""
        if not self.closed:
            return

        headers = {"Accept": "application/json"}
        token = self.config.resolve_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            connector=aiohttp.TCPConnector(ssl=self._ssl_context()),
        )

        if self.config.probe_on_connect:
            try:
                info = await self.version()
            except Exception:
                await self.close()
                raise
            self.logger.info(
                f"Connected to cluster at {self.base_url} "
                f"(version {info.get('gitVersion', 'unknown')})"
            )
        else:
            self.logger.info(f"Cluster client configured for {self.base_url}")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        content_type: Optional[str] = None,
    ) -> Any:
        """
        Send a request to the API server and decode the JSON response.

        Args:
            method: HTTP method
            path: API path, e.g. ``/api/v1/namespaces/default/pods``
            params: Optional query parameters
            json: Optional JSON body
            content_type: Override for the body content type

        Returns:
            The decoded JSON body, or None for an empty response.

        Raises:
            ClusterAPIError: If the server responds with status >= 400
            RuntimeError: If the client is not connected
        """
        if self.closed:
            raise RuntimeError("Cluster client is not connected")

        headers = {"Content-Type": content_type} if content_type else None
        url = f"{self.base_url}/{path.lstrip('/')}"
        self.logger.debug(f"{method} {url}")

        async with self._session.request(
            method, url, params=params, json=json, headers=headers
        ) as response:
            if response.status >= 400:
                body = await response.text()
                raise ClusterAPIError(response.status, response.reason or "", body)
            if response.status == 204 or response.content_length == 0:
                return None
            return await response.json(content_type=None)

    async def get(self, path: str, **params: Any) -> Any:
        return await self.request("GET", path, params=params or None)

    async def post(self, path: str, body: Any) -> Any:
        return await self.request("POST", path, json=body)

    async def put(self, path: str, body: Any) -> Any:
        return await self.request("PUT", path, json=body)

    async def patch(self, path: str, body: Any) -> Any:
        return await self.request("PATCH", path, json=body, content_type=MERGE_PATCH)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def version(self) -> Dict[str, Any]:
        """Fetch the API server version info."""
        return await self.get("/version") or {}


async def create_client(
    logger: Union[logging.Logger, logging.LoggerAdapter],
    config: Optional[ClusterConfig] = None,
) -> ClusterClient:
    """
    Create and connect the shared cluster client.

    Args:
        logger: Logger the client reports through
        config: Cluster configuration (defaults to the global config)

    Returns:
        A connected ClusterClient
    """
    client = ClusterClient(config or get_config().cluster, logger)
    await client.connect()
    return client
