"""Bearer token lifecycle for the imaging backend."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx

from frame_viewer.adapters.backend_client import BackendClient
from frame_viewer.config import SessionCredentials
from frame_viewer.domain.errors import AuthError, AuthErrorKind
from frame_viewer.domain.models import Session, TokenResponse

_logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Return the current UTC instant."""
    return datetime.now(tz=UTC)


@dataclass
class TokenStore:
    """Holds the current session, if one has been issued."""

    session: Session | None = None

    def is_valid(self, now: datetime) -> bool:
        """Return True while the access token is inside its renewal window."""
        return self.session is not None and now < self.session.expires_at

    def authorization_headers(self) -> dict[str, str]:
        """Return the bearer header, or nothing when no session exists."""
        if self.session is None or not self.session.access_token:
            return {}
        return {"Authorization": f"Bearer {self.session.access_token}"}


@dataclass
class AuthManager:
    """Obtains a session and keeps it fresh for protected calls.

    The stored expiry is pulled forward by ``safety_margin_seconds`` so a token
    is renewed before it can lapse during an in-flight request. Refresh
    failures keep the previous session; the next protected call surfaces the
    problem as a 401.
    """

    client: BackendClient
    credentials: SessionCredentials
    safety_margin_seconds: int = 20
    clock: Callable[[], datetime] = utcnow
    logger: logging.Logger = _logger
    tokens: TokenStore = field(default_factory=TokenStore)

    @property
    def session(self) -> Session | None:
        """Return the current session."""
        return self.tokens.session

    async def login(
        self, username: str | None = None, password: str | None = None
    ) -> Session | AuthError:
        """Exchange credentials for a new session."""
        resolved_username = username or self.credentials.username
        resolved_password = password or self.credentials.password
        self.logger.info("Attempting login as %s", resolved_username)
        result = await self._exchange(
            lambda: self.client.login(resolved_username, resolved_password),
            action="Login",
        )
        if isinstance(result, Session):
            self.logger.info("Login successful")
        return result

    async def ensure_fresh(self, *, force: bool = False) -> AuthError | None:
        """Refresh the session when it is due, or always when forced."""
        session = self.tokens.session
        if session is None:
            self.logger.warning("No session issued yet; logging in again")
            result = await self.login()
            return result if isinstance(result, AuthError) else None
        if not force and self.tokens.is_valid(self.clock()):
            return None

        if force:
            self.logger.info("Forcing token refresh")
        else:
            self.logger.info("Access token expired; attempting refresh")
        result = await self._exchange(
            lambda: self.client.refresh(session.refresh_token),
            action="Token refresh",
        )
        if isinstance(result, AuthError):
            return result
        self.logger.info("Token refresh completed")
        return None

    def authorize(self, headers: dict[str, str] | None = None) -> dict[str, str]:
        """Return request headers with the bearer credential attached."""
        return {**(headers or {}), **self.tokens.authorization_headers()}

    async def _exchange(
        self,
        call: Callable[[], Awaitable[dict[str, object]]],
        *,
        action: str,
    ) -> Session | AuthError:
        try:
            payload = await call()
            token = TokenResponse.model_validate(payload)
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            self.logger.warning("%s failed: HTTP %s", action, status_code)
            return AuthError(
                kind=AuthErrorKind.LOGIN_REJECTED,
                detail=f"{action} rejected",
                status_code=status_code,
            )
        except httpx.HTTPError as exc:
            self.logger.warning("%s transport error: %s", action, exc)
            return AuthError(kind=AuthErrorKind.TRANSPORT, detail=str(exc))
        except ValueError as exc:
            self.logger.warning("%s returned an invalid token payload: %s", action, exc)
            return AuthError(kind=AuthErrorKind.LOGIN_REJECTED, detail=str(exc))
        return self._store(token)

    def _store(self, token: TokenResponse) -> Session:
        lifetime = timedelta(seconds=token.expires_in - self.safety_margin_seconds)
        session = Session(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=self.clock() + lifetime,
        )
        self.tokens.session = session
        return session
