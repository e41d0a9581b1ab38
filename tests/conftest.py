"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from frame_viewer.adapters.backend_client import IMAGE_PATH, BackendClient
from frame_viewer.config import SessionCredentials, Settings
from frame_viewer.domain.connection import ConnectionState
from frame_viewer.domain.models import Frame, InferenceResult
from frame_viewer.services.auth import AuthManager
from frame_viewer.services.polling import PollListener, PollLoop
from frame_viewer.services.protected import ProtectedRequestExecutor

BASE_URL = "https://backend.test"


def token_payload(
    access_token: str = "A", refresh_token: str = "R", expires_in: int = 40
) -> dict[str, object]:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_in": expires_in,
    }


def http_status_error(status_code: int, path: str = "/") -> httpx.HTTPStatusError:
    request = httpx.Request("GET", f"{BASE_URL}{path}")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(
        f"HTTP {status_code}", request=request, response=response
    )


def make_frame(image_id: str) -> Frame:
    return Frame(image_id=image_id, image_data_base64="ZmFrZS1pbWFnZQ==")


def make_result(image_id: str, label: str = "healthy") -> InferenceResult:
    return InferenceResult(
        image_id=image_id,
        intensity_average=0.42,
        focus_score=0.87,
        classification_label=label,
        histogram=[1, 2, 3, 4],
    )


@dataclass
class FakeClock:
    """Manually advanced UTC clock."""

    now: datetime = field(default_factory=lambda: datetime(2024, 5, 1, tzinfo=UTC))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _play(script: list[object], default: object) -> object:
    outcome = script.pop(0) if script else default
    if isinstance(outcome, Exception):
        raise outcome
    return outcome


@dataclass
class FakeBackendClient(BackendClient):
    """Scripted backend; exceptions in a script are raised when reached."""

    login_script: list[object] = field(default_factory=list)
    refresh_script: list[object] = field(default_factory=list)
    get_script: list[object] = field(default_factory=list)
    login_calls: list[tuple[str, str]] = field(default_factory=list)
    refresh_calls: list[str] = field(default_factory=list)
    get_calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    async def login(self, username: str, password: str) -> dict[str, object]:
        self.login_calls.append((username, password))
        return _play(self.login_script, token_payload())

    async def refresh(self, refresh_token: str) -> dict[str, object]:
        self.refresh_calls.append(refresh_token)
        return _play(
            self.refresh_script, token_payload(access_token="A2", refresh_token="R2")
        )

    async def get(self, path: str, headers: dict[str, str]) -> object | None:
        self.get_calls.append((path, dict(headers)))
        return _play(self.get_script, None)


@dataclass
class RecordingListener(PollListener):
    """Listener that records every event it receives."""

    frames: list[tuple[Frame, InferenceResult]] = field(default_factory=list)
    states: list[ConnectionState] = field(default_factory=list)

    def on_new_frame(self, frame: Frame, result: InferenceResult) -> None:
        self.frames.append((frame, result))

    def on_connection_state_changed(self, state: ConnectionState) -> None:
        self.states.append(state)


@dataclass
class ScriptedExecutor:
    """Executor double that replays outcomes and stops the loop when done."""

    images: list[object] = field(default_factory=list)
    results: list[object] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)
    loop: PollLoop | None = None

    async def get(self, endpoint: str, model: type) -> object | None:
        self.calls.append(endpoint)
        script = self.images if endpoint == IMAGE_PATH else self.results
        if not script:
            assert self.loop is not None
            self.loop.stop()
            return None
        outcome = script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def build_poll_loop(
    images: list[object], results: list[object]
) -> tuple[PollLoop, ScriptedExecutor, RecordingListener]:
    executor = ScriptedExecutor(images=list(images), results=list(results))
    loop = PollLoop(executor=executor, poll_interval=0, failure_backoff=0)
    executor.loop = loop
    listener = RecordingListener()
    loop.subscribe(listener)
    return loop, executor, listener


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_base_url=f"{BASE_URL}/",
        username="operator",
        password="secret",
    )


@pytest.fixture
def credentials() -> SessionCredentials:
    return SessionCredentials(base_url=BASE_URL, username="operator", password="secret")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackendClient:
    return FakeBackendClient()


@pytest.fixture
def auth_manager(
    backend: FakeBackendClient, credentials: SessionCredentials, clock: FakeClock
) -> AuthManager:
    return AuthManager(client=backend, credentials=credentials, clock=clock)


@pytest.fixture
def executor(
    backend: FakeBackendClient, auth_manager: AuthManager
) -> ProtectedRequestExecutor:
    return ProtectedRequestExecutor(client=backend, auth=auth_manager)
