"""HTTP client for the dashboard API, used by the Gradio frontend and the CLI."""
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings


class DashboardClientError(Exception):
    """The dashboard API rejected a request or could not be reached.

    ``status_code`` is 0 when no response was received.
    """

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class DashboardClient:
    """Async client holding the session token of one signed-in user."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.token = token
        # Tool calls may wait for the whole agent deadline
        self.timeout = timeout or settings.client_timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _send(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        allow_error_envelope: bool = False,
    ) -> Dict[str, Any]:
        async with httpx.AsyncClient(
            base_url=self.api_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(
                    method, path, json=json, params=params, headers=self._headers()
                )
            except httpx.RequestError as e:
                raise DashboardClientError(0, f"Could not reach the dashboard API at {self.api_url}: {e}")

        # Tool endpoints return a failed envelope with status 500
        if allow_error_envelope and response.status_code == 500:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and "success" in body:
                return body

        if response.is_error:
            raise DashboardClientError(response.status_code, _error_message(response))
        return response.json()

    async def login(self, username: str, password: str) -> Dict[str, Any]:
        """Sign in and keep the returned token."""
        body = await self._send("POST", "/login", json={"username": username, "password": password})
        self.token = body["token"]
        return body

    async def me(self) -> Dict[str, Any]:
        return await self._send("GET", "/api/me")

    async def run_tool(self, tool: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Call a tool endpoint and return its envelope, successful or not."""
        try:
            return await self._send("POST", f"/api/{tool}", json=payload, allow_error_envelope=True)
        except DashboardClientError as e:
            if e.status_code == 400:
                return {"success": False, "error": e.message}
            raise

    async def list_users(self) -> List[Dict[str, Any]]:
        body = await self._send("GET", "/api/users")
        return body.get("users", [])

    async def add_user(self, username: str, password: str) -> Dict[str, Any]:
        return await self._send("POST", "/api/users", json={"username": username, "password": password})

    async def delete_user(self, username: str) -> Dict[str, Any]:
        return await self._send("DELETE", "/api/users", params={"username": username})
