"""Imaging backend REST client."""

from dataclasses import dataclass
from typing import Protocol

import httpx

LOGIN_PATH = "/api/auth/login"
REFRESH_PATH = "/api/auth/refresh"
IMAGE_PATH = "/api/image"
RESULTS_PATH = "/api/results"


class BackendClient(Protocol):
    """Interface for the imaging backend endpoints."""

    async def login(self, username: str, password: str) -> dict[str, object]:
        """Exchange credentials for tokens and return the raw payload."""

    async def refresh(self, refresh_token: str) -> dict[str, object]:
        """Exchange a refresh token for new tokens and return the raw payload."""

    async def get(self, path: str, headers: dict[str, str]) -> object | None:
        """GET a protected path and return its JSON body, or None if empty."""


@dataclass
class HttpxBackendClient(BackendClient):
    """HTTPX-backed imaging backend client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10.0

    @classmethod
    def create(cls, base_url: str, timeout: float = 10.0) -> "HttpxBackendClient":
        """Create a backend client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def login(self, username: str, password: str) -> dict[str, object]:
        """Call the login endpoint."""
        response = await self.http_client.post(
            f"{self.base_url}{LOGIN_PATH}",
            json={"username": username, "password": password},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def refresh(self, refresh_token: str) -> dict[str, object]:
        """Call the token refresh endpoint."""
        response = await self.http_client.post(
            f"{self.base_url}{REFRESH_PATH}",
            json={"refresh_token": refresh_token},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def get(self, path: str, headers: dict[str, str]) -> object | None:
        """GET a protected path with the given headers."""
        response = await self.http_client.get(
            f"{self.base_url}{path}",
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        if not response.content.strip():
            return None
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
