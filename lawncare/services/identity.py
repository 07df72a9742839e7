"""HTTP client for the hosted auth service (GoTrue-compatible REST API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import ConfigError, InvalidCredentials, UpstreamError

logger = logging.getLogger(__name__)


class IdentityClient:
    """Thin async wrapper around ``{base_url}/auth/v1``.

    Every call opens a short-lived ``httpx.AsyncClient``. Pass ``transport`` to
    route requests somewhere other than the network (``httpx.MockTransport`` in
    tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 6.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _ensure_configured(self) -> None:
        if not self.configured:
            raise ConfigError()

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, context: str, **kwargs: Any) -> httpx.Response:
        self._ensure_configured()
        try:
            async with self._client() as client:
                return await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Identity provider unreachable during %s: %s", context, exc)
            raise UpstreamError("Identity provider unavailable") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(data, dict):
            for key in ("error_description", "msg", "message", "error"):
                if data.get(key):
                    return str(data[key])
        return f"HTTP {response.status_code}"

    def _raise_for_status(self, response: httpx.Response, context: str) -> None:
        if response.status_code >= 500:
            logger.error("Identity provider error %s during %s", response.status_code, context)
            raise UpstreamError(f"Identity provider error: {self._error_message(response)}")
        if response.status_code >= 400:
            logger.warning("Identity provider rejected %s (%s)", context, response.status_code)
            raise InvalidCredentials()

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            "/token",
            "password sign in",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers=self._headers(),
        )
        self._raise_for_status(response, "password sign in")
        return response.json() or {}

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            "/token",
            "session refresh",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
            headers=self._headers(),
        )
        self._raise_for_status(response, "session refresh")
        return response.json() or {}

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Return the user behind ``access_token`` or ``None`` when the token is rejected."""

        response = await self._request("GET", "/user", "user lookup", headers=self._headers(access_token))
        if response.status_code in {401, 403}:
            return None
        self._raise_for_status(response, "user lookup")
        data = response.json()
        return data if isinstance(data, dict) and data.get("id") else None

    async def sign_out(self, access_token: str) -> None:
        response = await self._request("POST", "/logout", "sign out", headers=self._headers(access_token))
        # An already-expired token has nothing left to revoke.
        if response.status_code in {401, 403, 404}:
            logger.info("Sign out with a token the provider no longer accepts (%s)", response.status_code)
            return
        self._raise_for_status(response, "sign out")
