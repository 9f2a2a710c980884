"""Single active interview session.

Only one candidate records at a time, so the API works against a
module-level singleton controller.

Usage::

    from byc.services.interview import manager

    controller = await manager.start_session()
    controller.start_countdown()
    await manager.submit_session()
"""

import logging
import uuid
from collections.abc import Callable
from pathlib import Path

from byc.core.config import get_settings
from byc.core.exceptions import SessionAlreadyActiveError, SessionNotFoundError
from byc.core.models import CompletionRecord, SessionSnapshot
from byc.services.capture import BaseCaptureDevice, create_capture_device
from byc.services.interview.artifacts import ArtifactStore
from byc.services.interview.controller import RecordingSessionController
from byc.services.interview.questions import get_questions
from byc.services.progress import report_video_completion

logger = logging.getLogger(__name__)


def _device_factory(provider: str) -> Callable[[], BaseCaptureDevice]:
    settings = get_settings()

    def factory() -> BaseCaptureDevice:
        if provider == "local":
            return create_capture_device(
                "local",
                camera_index=settings.camera_index,
                width=settings.video_width,
                height=settings.video_height,
                fps=settings.video_fps,
                sample_rate=settings.audio_sample_rate,
                channels=settings.audio_channels,
            )
        if provider == "synthetic":
            return create_capture_device("synthetic", sample_rate=settings.audio_sample_rate)
        return create_capture_device(provider)

    return factory


# ---------------------------------------------------------------------------
# Module-level singleton management
# ---------------------------------------------------------------------------

_active_session: RecordingSessionController | None = None
_last_route: str | None = None


def _remember_route(route: str) -> None:
    global _last_route
    _last_route = route
    logger.info("Interview finished; proceed to %s", route)


async def start_session(provider: str | None = None) -> RecordingSessionController:
    """Create the session controller and request the capture device.

    A denied or missing device does not fail the call: the returned session
    runs in browse-only mode.

    Args:
        provider: Capture provider override; defaults to ``settings.capture_provider``.

    Raises:
        SessionAlreadyActiveError: If a session is already running.
    """
    global _active_session
    if _active_session is not None and not _active_session.closed:
        raise SessionAlreadyActiveError()

    settings = get_settings()
    questions = get_questions()
    session_id = uuid.uuid4().hex[:12]
    controller = RecordingSessionController(
        questions,
        _device_factory(provider or settings.capture_provider),
        # Each session writes into its own directory
        ArtifactStore(Path(settings.recordings_dir) / session_id),
        on_complete=report_video_completion,
        on_navigate=_remember_route,
        countdown_seconds=settings.countdown_seconds,
        low_time_threshold=settings.low_time_threshold,
        session_id=session_id,
    )
    _active_session = controller

    await controller.acquire_device()
    logger.info(
        "Interview session %s started (%d questions, device=%s)",
        controller.session_id,
        len(questions),
        controller.device_available,
    )
    return controller


def get_active_session() -> RecordingSessionController | None:
    """Return the currently active session, or None."""
    return _active_session


def require_session() -> RecordingSessionController:
    """Return the active session or raise :class:`SessionNotFoundError`."""
    if _active_session is None:
        raise SessionNotFoundError()
    return _active_session


def last_route() -> str | None:
    """Route announced by the most recent successful submission."""
    return _last_route


async def submit_session() -> tuple[CompletionRecord, SessionSnapshot]:
    """Submit the active session, then release it.

    A rejected or failed submission leaves the session active so the
    candidate can fix the cause and submit again.

    Returns:
        The completion record and the final snapshot taken before teardown.
    """
    controller = require_session()
    record = await controller.submit_session()
    snapshot = controller.snapshot()
    await end_session()
    return record, snapshot


async def end_session() -> bool:
    """Tear down the active session (navigating away). Returns False if none."""
    global _active_session
    controller = _active_session
    if controller is None:
        return False
    _active_session = None
    await controller.teardown()
    return True


async def cleanup() -> None:
    """Release any active session on application shutdown."""
    if await end_session():
        logger.info("Active interview session released on shutdown")
