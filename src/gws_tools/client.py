"""Shared authenticated HTTP client for Google REST APIs."""

import logging
from typing import Any

import httpx

from gws_tools.auth import CredentialManager
from gws_tools.errors import GoogleApiError

logger = logging.getLogger(__name__)


class GoogleApiClient:
    """Pooled HTTP/2 client that attaches OAuth bearer tokens.

    All failures surface as :class:`GoogleApiError`: non-2xx responses
    carry the HTTP status, transport errors use the ``NETWORK_ERROR`` code.

    Attributes:
        credentials: Supplies access tokens for each request.
        timeout: Default request timeout in seconds.
    """

    def __init__(self, credentials: CredentialManager, timeout: float = 30.0) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self._http_client: httpx.AsyncClient | None = None

    def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the shared client with connection pooling."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(self.timeout, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
        content: bytes | str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        access_token = await self.credentials.get_access_token()
        client = self._get_http_client()

        request_headers = {"Authorization": f"Bearer {access_token}"}
        if headers:
            request_headers.update(headers)

        kwargs: dict[str, Any] = {"params": params, "headers": request_headers}
        if json_data is not None:
            kwargs["json"] = json_data
        if content is not None:
            kwargs["content"] = content
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug("%s %s", method, url)
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = GoogleApiError.from_response(e.response)
            logger.debug("%s %s failed: %s (%s)", method, url, error, error.status_code)
            raise error from e
        except httpx.RequestError as e:
            raise GoogleApiError.from_transport_error(e) from e
        return response

    async def request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_data: Any = None,
    ) -> dict[str, Any]:
        """Make an authenticated JSON request.

        Args:
            method: HTTP method (GET, POST, etc.).
            url: Full URL to request.
            params: Optional query parameters.
            json_data: Optional JSON body.

        Returns:
            Decoded JSON body, or an empty dict when the body is empty.

        Raises:
            GoogleApiError: If the request fails.
        """
        response = await self._send(
            method,
            url,
            params=params,
            json_data=json_data,
            headers={"Accept": "application/json"},
        )
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    async def delete(self, url: str, params: dict[str, Any] | None = None) -> None:
        """Make an authenticated DELETE request.

        Raises:
            GoogleApiError: If the request fails.
        """
        await self._send("DELETE", url, params=params)

    async def raw_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        content: bytes | str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Make an authenticated request returning the raw response.

        Used for media downloads and multipart uploads.

        Raises:
            GoogleApiError: If the request fails.
        """
        return await self._send(
            method,
            url,
            params=params,
            content=content,
            headers=headers,
            timeout=timeout,
        )
