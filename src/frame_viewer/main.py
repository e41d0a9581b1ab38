"""Headless console viewer."""

import asyncio
import logging
import signal
from dataclasses import dataclass

from frame_viewer.app_logging import configure_logging
from frame_viewer.config import Settings
from frame_viewer.containers import AppContainer, build_container
from frame_viewer.domain.connection import ConnectionState
from frame_viewer.domain.errors import AuthError
from frame_viewer.domain.models import Frame, InferenceResult

_logger = logging.getLogger(__name__)


@dataclass
class ConsoleListener:
    """Logs each delivered frame and status change."""

    logger: logging.Logger = _logger

    def on_new_frame(self, frame: Frame, result: InferenceResult) -> None:
        self.logger.info(
            "Frame %s: %s (focus=%.3f, intensity=%.3f, %s bytes, %s bins)",
            frame.image_id,
            result.classification_label,
            result.focus_score,
            result.intensity_average,
            len(frame.image_bytes()),
            len(result.histogram),
        )

    def on_connection_state_changed(self, state: ConnectionState) -> None:
        self.logger.info("Status: %s", state.label)


async def run_viewer(container: AppContainer) -> None:
    """Log in, then poll until the loop is stopped."""
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, container.poll_loop.stop)
        except NotImplementedError:
            _logger.debug("Signal handlers are not supported on this platform")
    try:
        session = await container.auth_manager.login()
        if isinstance(session, AuthError):
            _logger.warning("Initial login failed: %s", session.detail)
        container.poll_loop.subscribe(ConsoleListener())
        await container.poll_loop.run()
    finally:
        await container.close_resources()


def main() -> None:
    """Run the viewer with settings from the environment."""
    settings = Settings()
    configure_logging(settings.log_file)
    asyncio.run(run_viewer(build_container(settings)))


if __name__ == "__main__":
    main()
