"""Continuous frame acquisition and connection health tracking."""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from frame_viewer.adapters.backend_client import IMAGE_PATH, RESULTS_PATH
from frame_viewer.domain.connection import ConnectionState
from frame_viewer.domain.models import Frame, InferenceResult, PollCursor
from frame_viewer.services.protected import ProtectedRequestExecutor

_logger = logging.getLogger(__name__)


class PollListener(Protocol):
    """Consumer of poll loop events."""

    def on_new_frame(self, frame: Frame, result: InferenceResult) -> None:
        """Receive a newly resolved frame with its results."""

    def on_connection_state_changed(self, state: ConnectionState) -> None:
        """Receive a connection state transition."""


@dataclass
class ConnectionStateTracker:
    """Edge-triggered connection state machine.

    ``FAILED`` is only reported after the connection has gone through
    ``RECONNECTING`` and come back to ``CONNECTED``; a hard failure straight
    out of a healthy streak stays silent.
    """

    notify: Callable[[ConnectionState], None]
    state: ConnectionState | None = None
    was_connected: bool = False
    reconnecting: bool = False

    def mark_connected(self) -> None:
        """Record a fully delivered frame."""
        if not self.was_connected:
            self.was_connected = True
            self._transition(ConnectionState.CONNECTED)

    def mark_soft_miss(self) -> None:
        """Record a cycle that produced no usable data."""
        if self.was_connected and not self.reconnecting:
            self.was_connected = False
            self.reconnecting = True
            self._transition(ConnectionState.RECONNECTING)

    def mark_hard_failure(self) -> None:
        """Record a cycle aborted by an unexpected fault."""
        if self.was_connected and self.reconnecting:
            self.was_connected = False
            self.reconnecting = False
            self._transition(ConnectionState.FAILED)

    def _transition(self, state: ConnectionState) -> None:
        self.state = state
        self.notify(state)


@dataclass
class PollLoop:
    """Polls the backend for new frames until stopped.

    Results are fetched only when the frame id changes. The cursor advances
    even when results are missing so a broken frame is not retried forever.
    """

    executor: ProtectedRequestExecutor
    poll_interval: float = 1.0
    failure_backoff: float = 1.5
    logger: logging.Logger = _logger
    cursor: PollCursor = field(default_factory=PollCursor)
    listeners: list[PollListener] = field(default_factory=list)
    tracker: ConnectionStateTracker = field(init=False)
    _stop_event: asyncio.Event = field(init=False, repr=False)
    _running: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.tracker = ConnectionStateTracker(notify=self._publish_state)
        self._stop_event = asyncio.Event()

    @property
    def connection_state(self) -> ConnectionState | None:
        """Return the last reported connection state."""
        return self.tracker.state

    @property
    def stopped(self) -> bool:
        """Return True once a requested stop has taken effect."""
        return self._stop_event.is_set() and not self._running

    def subscribe(self, listener: PollListener) -> None:
        """Register a listener; events are delivered in subscription order."""
        self.listeners.append(listener)

    def stop(self) -> None:
        """Ask the loop to exit at its next check point."""
        self._stop_event.set()

    async def run(self) -> None:
        """Poll until ``stop`` is called."""
        if self._running:
            raise RuntimeError("Poll loop is already running")
        self._running = True
        self.logger.info("Poll loop started")
        try:
            while not self._stop_event.is_set():
                try:
                    delay = await self.poll_once()
                except Exception:
                    if self._stop_event.is_set():
                        break
                    self.logger.exception("Polling cycle failed")
                    self.tracker.mark_hard_failure()
                    delay = self.failure_backoff
                await self._wait(delay)
        finally:
            self._running = False
        self.logger.info("Poll loop stopped")

    async def poll_once(self) -> float:
        """Run one acquisition cycle and return the delay before the next."""
        frame = await self.executor.get(IMAGE_PATH, Frame)
        if self._stop_event.is_set():
            return 0.0
        if not isinstance(frame, Frame):
            self.logger.warning("No frame received: %s", frame)
            self.tracker.mark_soft_miss()
            return self.poll_interval

        if frame.image_id == self.cursor.last_seen_image_id:
            return self.poll_interval

        result = await self.executor.get(RESULTS_PATH, InferenceResult)
        if self._stop_event.is_set():
            return 0.0
        self.cursor.last_seen_image_id = frame.image_id
        if not isinstance(result, InferenceResult):
            self.logger.warning(
                "No results for frame %s: %s", frame.image_id, result
            )
            self.tracker.mark_soft_miss()
            return self.poll_interval
        if result.image_id != frame.image_id:
            self.logger.warning(
                "Results for frame %s arrived while polling frame %s",
                result.image_id,
                frame.image_id,
            )
            self.tracker.mark_soft_miss()
            return self.poll_interval

        listener_error: Exception | None = None
        for listener in list(self.listeners):
            try:
                listener.on_new_frame(frame, result)
            except Exception as exc:
                self.logger.exception("Frame listener failed for %s", frame.image_id)
                listener_error = listener_error or exc
        if listener_error is not None:
            raise listener_error
        if self._stop_event.is_set():
            return 0.0
        self.tracker.mark_connected()
        return self.poll_interval

    async def _wait(self, delay: float) -> None:
        if delay <= 0 or self._stop_event.is_set():
            return
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)

    def _publish_state(self, state: ConnectionState) -> None:
        self.logger.info("Connection state changed: %s", state.label)
        for listener in list(self.listeners):
            try:
                listener.on_connection_state_changed(state)
            except Exception:
                self.logger.exception("Connection state listener failed")
