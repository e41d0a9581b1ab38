"""Domain models for backend sessions, frames and inference results."""

import base64
import binascii
from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


@dataclass(frozen=True)
class Session:
    """Authenticated session issued by the backend."""

    access_token: str
    refresh_token: str
    expires_at: datetime


class TokenResponse(BaseModel):
    """Payload returned by the login and refresh endpoints."""

    access_token: str = Field(min_length=1)
    refresh_token: str
    expires_in: int


class Frame(BaseModel):
    """Latest camera frame as served by the image endpoint."""

    image_id: str
    image_data_base64: str

    @field_validator("image_data_base64")
    @classmethod
    def check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error as exc:
            raise ValueError("image_data_base64 is not valid base64") from exc
        return value

    def image_bytes(self) -> bytes:
        """Decode the base64 image payload."""
        return base64.b64decode(self.image_data_base64)


class InferenceResult(BaseModel):
    """Analysis results computed for a frame."""

    image_id: str
    intensity_average: float
    focus_score: float
    classification_label: str
    histogram: list[int] = Field(default_factory=list)


@dataclass
class PollCursor:
    """Last frame id the poll loop resolved."""

    last_seen_image_id: str = ""
