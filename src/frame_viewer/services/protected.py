"""Authenticated GET execution with a single retry on 401."""

import logging
from dataclasses import dataclass
from typing import TypeVar

import httpx
from pydantic import BaseModel

from frame_viewer.adapters.backend_client import BackendClient
from frame_viewer.domain.errors import RequestError, RequestErrorKind
from frame_viewer.services.auth import AuthManager

_logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ProtectedRequestExecutor:
    """Routes protected GETs through the auth manager.

    A request is attempted at most twice: the second attempt only follows a
    401 and a forced token refresh, and its outcome is final. Failures are
    returned as ``RequestError`` values; an empty body is returned as None.
    """

    client: BackendClient
    auth: AuthManager
    logger: logging.Logger = _logger

    async def get(
        self, endpoint: str, model: type[ModelT]
    ) -> ModelT | RequestError | None:
        """GET ``endpoint`` and decode the body into ``model``."""
        try:
            await self.auth.ensure_fresh()
            try:
                payload = await self.client.get(endpoint, self.auth.authorize())
            except httpx.HTTPStatusError as exc:
                if exc.response.status_code != httpx.codes.UNAUTHORIZED:
                    raise
                # No session means the pre-flight login was just rejected.
                if self.auth.session is None:
                    raise
                self.logger.warning(
                    "GET %s unauthorized; refreshing token and retrying", endpoint
                )
                await self.auth.ensure_fresh(force=True)
                payload = await self.client.get(endpoint, self.auth.authorize())
            if payload is None:
                return None
            return model.model_validate(payload)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            self.logger.warning("GET %s failed (%s)", endpoint, status_code)
            return RequestError(
                kind=RequestErrorKind.HTTP,
                detail=f"GET {endpoint} returned {status_code}",
                status_code=status_code,
            )
        except httpx.HTTPError as exc:
            self.logger.warning("GET %s transport error: %s", endpoint, exc)
            return RequestError(kind=RequestErrorKind.TRANSPORT, detail=str(exc))
        except ValueError as exc:
            self.logger.warning("GET %s returned an undecodable body: %s", endpoint, exc)
            return RequestError(kind=RequestErrorKind.DECODE, detail=str(exc))
