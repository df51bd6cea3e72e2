"""
REST HTTP client for the wellness sessions backend.

Every request carries the bearer token and is bounded by a 10 second
ceiling. Failures are mapped onto the error taxonomy in errors.py.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx

from wellness_sessions.errors import AuthExpiry, ServerRejection, TransientNetworkError

DEFAULT_BASE_URL = "http://localhost:5000/api"
REQUEST_TIMEOUT_S = 10.0

logger = logging.getLogger(__name__)


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT_S,
        on_unauthorized: Optional[Callable[[], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._on_unauthorized = on_unauthorized
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "wellness-sessions/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _message_of(json_data: Any) -> Optional[str]:
        if isinstance(json_data, dict):
            message = json_data.get("message")
            if isinstance(message, str) and message:
                return message
        return None

    @classmethod
    def _unwrap(cls, json_data: Any, status_code: int) -> Any:
        """Unwrap the standard API response: { "success": true, "data": <actual_data> }"""
        if isinstance(json_data, dict) and "success" in json_data:
            if not json_data["success"]:
                raise ServerRejection(
                    cls._message_of(json_data) or "Request was rejected", status_code, json_data,
                )
            if "data" in json_data:
                return json_data["data"]
        return json_data

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            # httpx bounds each phase separately; the whole call gets one deadline
            resp = await asyncio.wait_for(
                self._client.request(method, path, params=params, json=body, headers=self._auth_headers()),
                self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.warning("%s %s timed out: %s", method, path, e)
            raise TransientNetworkError(f"Request timed out: {method} {path}")
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransientNetworkError(f"Connection failed: {e}")
        except httpx.HTTPError as e:
            logger.warning("%s %s could not be read: %s", method, path, e)
            raise TransientNetworkError(f"Unreadable response: {e}")

        try:
            json_data = resp.json() if resp.content else None
        except ValueError:
            json_data = None

        if resp.status_code == 401:
            logger.info("%s %s returned 401, escalating to auth handler", method, path)
            if self._on_unauthorized:
                self._on_unauthorized()
            raise AuthExpiry(self._message_of(json_data) or "Authentication expired")
        if resp.status_code >= 500:
            logger.error("%s %s returned HTTP %s", method, path, resp.status_code)
            raise TransientNetworkError(
                self._message_of(json_data) or f"HTTP {resp.status_code}: {resp.text[:200]}"
            )
        if resp.status_code >= 400:
            raise ServerRejection(
                self._message_of(json_data) or f"HTTP {resp.status_code}: {resp.text[:200]}",
                resp.status_code,
                json_data if isinstance(json_data, dict) else None,
            )
        return self._unwrap(json_data, resp.status_code)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, body=body)

    async def delete(self, path: str) -> Any:
        return await self._request("DELETE", path)

    async def close(self) -> None:
        await self._client.aclose()
