"""Async HTTP client for the XAI backend."""

import asyncio
import logging
from pathlib import Path
from typing import Any

import httpx

from prism.core.session import Navigator, NullNavigator, SessionStore
from prism.error_handling import ServerError, SessionError, TransportError

logger = logging.getLogger(__name__)

# Endpoints whose 401/403 responses belong to the caller, not the session
AUTH_PATHS = ("/auth/login", "/auth/register")


class PrismClient:
    """Backend API client with Prism-specific transport policy.

    Every call carries the bearer token held by the session store. A 401 or
    403 from any non-auth endpoint clears the session, asks the navigator to
    send the user to sign-in, and raises SessionError.
    """

    def __init__(
        self,
        base_url: str,
        session: SessionStore | None = None,
        navigator: Navigator | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or SessionStore()
        self.navigator = navigator or NullNavigator()

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "PrismClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # Auth

    async def login(self, username: str, password: str) -> dict[str, Any]:
        """Sign in and store the returned bearer token."""
        data = await self._request(
            "POST", "/auth/login", json={"username": username, "password": password}
        )
        token = data.get("accessToken") if isinstance(data, dict) else None
        if not token:
            raise ServerError(200, data, message="Login response did not include a token")

        self.session.set(token, data.get("username") or username)
        logger.info(f"Signed in as {self.session.username}")
        return data

    async def register(self, username: str, email: str, password: str) -> Any:
        return await self._request(
            "POST",
            "/auth/register",
            json={"username": username, "email": email, "password": password},
        )

    def logout(self) -> None:
        self.session.clear()

    # Datasets

    async def list_datasets(self) -> Any:
        return await self._request("GET", "/datasets")

    async def get_dataset(self, dataset_id: Any) -> Any:
        return await self._request("GET", f"/datasets/{dataset_id}")

    async def upload_dataset(self, path: str | Path) -> Any:
        """Upload a CSV file as a single multipart ``file`` field."""
        path = Path(path)
        content = await asyncio.to_thread(path.read_bytes)
        files = {"file": (path.name, content, "text/csv")}
        return await self._request("POST", "/datasets/upload", files=files)

    async def delete_dataset(self, dataset_id: Any) -> Any:
        return await self._request("DELETE", f"/datasets/{dataset_id}")

    # Models

    async def list_models(self) -> Any:
        return await self._request("GET", "/models")

    async def get_model(self, model_id: Any) -> Any:
        return await self._request("GET", f"/models/{model_id}")

    async def train_model(self, payload: dict[str, Any]) -> Any:
        return await self._request("POST", "/models/train", json=payload)

    async def predict(self, model_id: Any, input_data: dict[str, Any]) -> Any:
        return await self._request("POST", f"/models/{model_id}/predict", json=input_data)

    async def explain(self, model_id: Any, input_data: dict[str, Any]) -> Any:
        return await self._request("POST", f"/models/{model_id}/explain", json=input_data)

    async def delete_model(self, model_id: Any) -> Any:
        return await self._request("DELETE", f"/models/{model_id}")

    # Transport

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        headers = {}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"

        try:
            response = await self.client.request(
                method, path, json=json, files=files, headers=headers
            )
        except httpx.TimeoutException as e:
            raise TransportError("Request timed out", original_error=e) from e
        except httpx.RequestError as e:
            raise TransportError("Network Error", original_error=e) from e

        if response.status_code in (401, 403) and not self._is_auth_path(path):
            logger.warning(
                f"{method} {path} returned {response.status_code}; clearing session"
            )
            self.session.clear()
            self.navigator.to_login()
            raise SessionError(response.status_code)

        body = self._parse_body(response)
        if response.is_error:
            raise ServerError(response.status_code, body)

        return self._unwrap(body)

    @staticmethod
    def _is_auth_path(path: str) -> bool:
        return any(path.startswith(auth_path) for auth_path in AUTH_PATHS)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _unwrap(body: Any) -> Any:
        """Strip the ``{success, message, data}`` envelope when present."""
        if isinstance(body, dict) and "success" in body and "data" in body:
            return body["data"]
        return body
