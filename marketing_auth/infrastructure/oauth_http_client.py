# marketing_auth/infrastructure/oauth_http_client.py
from typing import Optional

import httpx


class OAuthHTTPClient:
    """Thin async wrapper over httpx for the provider token and profile endpoints."""

    def __init__(self, timeout: float = 30, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def request_token(self, method: str, url: str, data: dict) -> dict:
        """
        Redeem an authorization code. The body is returned even on a 4xx so the
        caller can inspect the provider's error payload.
        """
        async with self._client() as client:
            if method.upper() == "GET":
                r = await client.get(url, params=data)
            else:
                r = await client.post(url, data=data, headers={"Accept": "application/json"})
        return r.json()

    async def get_json(self, url: str, params: Optional[dict] = None, bearer: Optional[str] = None) -> dict:
        headers = {"Authorization": f"Bearer {bearer}"} if bearer else None
        async with self._client() as client:
            r = await client.get(url, params=params, headers=headers)
            r.raise_for_status()
            return r.json()
