# =============================================================================
# core/client.py  —  Fastalert REST API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps ONE httpx.AsyncClient (one connection pool) pointed at the
#   Fastalert API and exposes the two operations the tools need:
#
#     search_channels(name)   GET  /organization/channels?name=...
#     send_message(message)   POST /send-message
#
# ONE REQUEST PATH:
#   Both operations go through _request(), which makes exactly one HTTP call
#   and applies one error policy:
#     - 2xx            → body["data"]["data"], or [] if missing/empty
#     - any other code → ApiError.from_response(...)   (returned, not raised)
#     - no response    → the httpx exception propagates unchanged
#
#   No retries, no batching.  Callers treat a missing "data.data" and an
#   empty one the same way.
# =============================================================================

import logging
from typing import Any, Optional, Union

import httpx

from core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from core.models import ApiError, Channel, Message

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-KEY"

CHANNELS_PATH = "/organization/channels"
SEND_MESSAGE_PATH = "/send-message"


def _decode(response: httpx.Response) -> Any:
    """Return the JSON body, or None when the body is empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class FastalertClient:
    """Async client for the Fastalert API.

    Args:
        api_key: Fastalert API key.  Required.
        base_url: API root, e.g. "https://apialert.testflight.biz/api/v1".
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass httpx.MockTransport).

    Raises:
        ValueError: api_key is empty.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("API key is required")

        self.base_url = base_url
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={
                API_KEY_HEADER: api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "FastalertClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @property
    def is_closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Union[list[Any], ApiError]:
        response = await self._http.request(method, path, json=json, params=params)
        body = _decode(response)

        if not response.is_success:
            error = ApiError.from_response(response.status_code, body)
            logger.warning(
                "%s %s failed: status=%s code=%s message=%s",
                method, path, error.status, error.code, error.message,
            )
            return error

        data = body.get("data") if isinstance(body, dict) else None
        records = data.get("data") if isinstance(data, dict) else None
        return records or []

    async def search_channels(self, name: Optional[str] = None) -> Union[list[Channel], ApiError]:
        """List the organization's channels, optionally filtered by name."""
        params = {"name": name} if name is not None else None
        return await self._request("GET", CHANNELS_PATH, params=params)

    async def send_message(self, message: Message) -> Union[list[dict[str, Any]], ApiError]:
        """Send a message; returns the created message records."""
        return await self._request("POST", SEND_MESSAGE_PATH, json=message.to_payload())
