"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from frame_viewer.adapters.backend_client import HttpxBackendClient
from frame_viewer.config import Settings
from frame_viewer.services.auth import AuthManager
from frame_viewer.services.polling import PollLoop
from frame_viewer.services.protected import ProtectedRequestExecutor


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    backend_client: HttpxBackendClient
    auth_manager: AuthManager
    executor: ProtectedRequestExecutor
    poll_loop: PollLoop
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    credentials = resolved_settings.credentials()
    backend_client = HttpxBackendClient.create(
        base_url=credentials.base_url,
        timeout=resolved_settings.request_timeout_seconds,
    )
    auth_manager = AuthManager(
        client=backend_client,
        credentials=credentials,
        safety_margin_seconds=resolved_settings.token_safety_margin_seconds,
    )
    executor = ProtectedRequestExecutor(client=backend_client, auth=auth_manager)
    poll_loop = PollLoop(
        executor=executor,
        poll_interval=resolved_settings.poll_interval_seconds,
        failure_backoff=resolved_settings.failure_backoff_seconds,
    )

    async def close_resources() -> None:
        await backend_client.close()

    return AppContainer(
        settings=resolved_settings,
        backend_client=backend_client,
        auth_manager=auth_manager,
        executor=executor,
        poll_loop=poll_loop,
        close_resources=close_resources,
    )
