# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
HTTP transport backed by httpx.

Turns an HttpRequest (or a mapping with the same keys) into one call on a
shared ``httpx.AsyncClient``. Non-2xx responses raise HttpStatusError,
which the default classifier treats as a rate limit when the status is 429.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from typing_extensions import Self

from ..exceptions import HttpStatusError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class HttpRequest:
    """
    A single HTTP call.

    Attributes:
        url: Absolute URL, or a path relative to the transport's base_url
        method: HTTP method
        params: Query parameters
        headers: Extra headers merged over the transport defaults
        json: JSON body
    """

    url: str
    method: str = "GET"
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    json: Any = None

    @classmethod
    def from_value(cls, value: "HttpRequest | Mapping[str, Any] | str") -> "HttpRequest":
        """Coerce a request payload: an HttpRequest, a mapping, or a bare URL."""
        if isinstance(value, HttpRequest):
            return value
        if isinstance(value, str):
            return cls(url=value)
        if isinstance(value, Mapping):
            if "url" not in value:
                raise ValueError("HTTP request mapping must contain 'url'")
            return cls(
                url=value["url"],
                method=value.get("method", "GET"),
                params=value.get("params"),
                headers=value.get("headers"),
                json=value.get("json"),
            )
        raise TypeError(f"Unsupported HTTP request payload: {type(value).__name__}")


@dataclass
class HttpResponse:
    """Successful response: status, lowercase headers and the decoded body."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None


def _decode_body(response: httpx.Response) -> Any:
    """Return the parsed JSON body, or the raw text when it is not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpTransport:
    """
    Transport performing requests through ``httpx.AsyncClient``.

    The transport owns its client unless one is passed in. Use it as an async
    context manager (or call ``aclose()``) to release connections.

    Example:
        async with HttpTransport(
            base_url="https://euw1.api.example.com",
            headers={"X-Api-Token": token},
        ) as transport:
            scheduler = create_scheduler(transport=transport)
            ...
    """

    def __init__(
        self,
        base_url: str = "",
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            base_url: Prefix for relative request URLs
            headers: Default headers sent with every request
            timeout: Per-request timeout in seconds
            client: Pre-built client (not closed by ``aclose()``)
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=dict(headers or {}),
            timeout=timeout,
        )

    async def __call__(self, request: Any) -> HttpResponse:
        http_request = HttpRequest.from_value(request)
        logger.debug(f"Executing API request: {http_request.method} {http_request.url}")

        try:
            response = await self._client.request(
                http_request.method,
                http_request.url,
                params=http_request.params,
                headers=http_request.headers,
                json=http_request.json,
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"{http_request.method} {http_request.url} failed: {e}"
            ) from e

        headers = {name.lower(): value for name, value in response.headers.items()}
        body = _decode_body(response)

        if not response.is_success:
            raise HttpStatusError(
                response.status_code,
                headers=headers,
                body=body,
                message=(
                    f"{http_request.method} {http_request.url} returned "
                    f"HTTP {response.status_code}"
                ),
            )

        return HttpResponse(status_code=response.status_code, headers=headers, data=body)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self.aclose()


__all__ = ["DEFAULT_TIMEOUT_SECONDS", "HttpRequest", "HttpResponse", "HttpTransport"]
