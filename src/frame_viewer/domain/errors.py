"""Outcome values for failed authentication and protected requests."""

from dataclasses import dataclass
from enum import Enum


class AuthErrorKind(Enum):
    """Reasons a login or token refresh did not produce a session."""

    LOGIN_REJECTED = "login_rejected"
    TRANSPORT = "transport"


class RequestErrorKind(Enum):
    """Reasons a protected GET did not produce a decoded payload."""

    HTTP = "http"
    TRANSPORT = "transport"
    DECODE = "decode"


@dataclass(frozen=True)
class AuthError:
    """Failed credential exchange or refresh."""

    kind: AuthErrorKind
    detail: str
    status_code: int | None = None


@dataclass(frozen=True)
class RequestError:
    """Failed protected request."""

    kind: RequestErrorKind
    detail: str
    status_code: int | None = None
