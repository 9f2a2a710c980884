"""Recording session controller for the video interview phase.

Walks a candidate through a fixed list of prompts. For each prompt the
controller runs ``idle -> countdown -> recording -> stopped -> reviewing``
against one capture device, keeps exactly one recorded artifact per prompt,
and only allows submission once every prompt has one.

Timers are plain ``loop.call_later`` callbacks owned by the controller. Every
state change bumps a generation counter and cancels the pending handle, so a
callback that was already queued can never act on a newer state. Device calls
that block (open, stop, discard, close) and artifact file writes run in worker
threads; results that come back after the state moved on are dropped.

Usage::

    controller = RecordingSessionController(questions, device_factory, store)
    async with controller:
        controller.start_countdown()
        ...
        await controller.stop_recording()
        await controller.submit_session()
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ClassVar

from byc.core.exceptions import (
    ArtifactNotFoundError,
    ProgressReportError,
    RecordingInProgressError,
    SessionAlreadySubmittedError,
    SessionIncompleteError,
)
from byc.core.models import (
    CompletionRecord,
    PreviewBinding,
    PreviewSource,
    Question,
    QuestionStatus,
    RecordingState,
    SessionSnapshot,
)
from byc.services.capture.base import BaseCaptureDevice
from byc.services.interview.artifacts import ArtifactStore, RecordingArtifact

logger = logging.getLogger(__name__)

PHASE_NAME = "video"
NEXT_ROUTE = "/assessment/complete"
TICK_SECONDS = 1.0

ProgressCallback = Callable[[CompletionRecord, int], Awaitable[None]]
NavigateCallback = Callable[[str], None]

# ---------------------------------------------------------------------------
# Recording substates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    kind: ClassVar[RecordingState] = RecordingState.idle


@dataclass(frozen=True)
class Countdown:
    remaining: int
    kind: ClassVar[RecordingState] = RecordingState.countdown


@dataclass(frozen=True)
class Recording:
    elapsed: int = 0
    kind: ClassVar[RecordingState] = RecordingState.recording


@dataclass(frozen=True)
class Stopped:
    kind: ClassVar[RecordingState] = RecordingState.stopped


@dataclass(frozen=True)
class Reviewing:
    handle: str
    kind: ClassVar[RecordingState] = RecordingState.reviewing


SessionPhase = Idle | Countdown | Recording | Stopped | Reviewing


class RecordingSessionController:
    """Owns the capture device, timers and artifacts of one interview session.

    Args:
        questions: Ordered, non-empty sequence of prompts.
        device_factory: Returns an unopened capture device; called once by
            ``acquire_device()``.
        store: Artifact store for this session.
        on_complete: Progress callback, awaited exactly once on submission with
            the completion record and the overall progress percentage.
        on_navigate: Receives the next route after a successful submission.
        countdown_seconds: Ticks before capture starts.
        low_time_threshold: Remaining seconds below which the timer is flagged.
        loop: Object providing ``call_later``; defaults to the running loop.
        session_id: Identifier used in logs and snapshots.
    """

    def __init__(
        self,
        questions: Sequence[Question],
        device_factory: Callable[[], BaseCaptureDevice],
        store: ArtifactStore,
        *,
        on_complete: ProgressCallback | None = None,
        on_navigate: NavigateCallback | None = None,
        countdown_seconds: int = 3,
        low_time_threshold: int = 30,
        loop: asyncio.AbstractEventLoop | None = None,
        session_id: str | None = None,
    ) -> None:
        if not questions:
            raise ValueError("An interview session needs at least one question")

        self.session_id = session_id or uuid.uuid4().hex[:12]
        self._questions = tuple(questions)
        self._device_factory = device_factory
        self._store = store
        self._on_complete = on_complete
        self._on_navigate = on_navigate
        self._countdown_seconds = countdown_seconds
        self._low_time_threshold = low_time_threshold
        self._loop = loop

        self._index = 0
        self._phase: SessionPhase = Idle()
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None

        self._device: BaseCaptureDevice | None = None
        self._device_error: str | None = None
        self._capture_error: str | None = None
        self._acquire_attempted = False
        self._preview = PreviewBinding()

        self._capture_task: asyncio.Task | None = None
        self._submitting = False
        self._submitted = False
        self._torn_down = False

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecordingState:
        return self._phase.kind

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def question_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question:
        return self._questions[self._index]

    @property
    def device_available(self) -> bool:
        return self._device is not None

    @property
    def device_error(self) -> str | None:
        return self._device_error

    @property
    def preview(self) -> PreviewBinding:
        return self._preview

    @property
    def artifact_count(self) -> int:
        return self._store.count

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def closed(self) -> bool:
        return self._torn_down

    @property
    def can_start(self) -> bool:
        return (
            self._active
            and self.device_available
            and isinstance(self._phase, Idle)
            and not self._capture_pending
        )

    @property
    def can_stop(self) -> bool:
        return self._active and isinstance(self._phase, Recording)

    @property
    def can_review(self) -> bool:
        return (
            self._active and isinstance(self._phase, Stopped) and self._store.has(self._index)
        )

    @property
    def can_rerecord(self) -> bool:
        if not self._active:
            return False
        if isinstance(self._phase, Stopped | Reviewing | Recording):
            return True
        return isinstance(self._phase, Idle) and self._store.has(self._index)

    @property
    def can_advance(self) -> bool:
        return (
            self._active
            and isinstance(self._phase, Idle | Stopped | Reviewing)
            and self._store.has(self._index)
            and self._index < len(self._questions) - 1
        )

    @property
    def can_submit(self) -> bool:
        return (
            self._active
            and isinstance(self._phase, Idle | Stopped | Reviewing)
            and not self._capture_pending
            and self._store.count == len(self._questions)
        )

    @property
    def is_low_time(self) -> bool:
        if not isinstance(self._phase, Recording):
            return False
        return self.current_question.time_limit - self._phase.elapsed < self._low_time_threshold

    @property
    def _active(self) -> bool:
        return not (self._submitted or self._submitting or self._torn_down)

    @property
    def _capture_pending(self) -> bool:
        """A stopped capture is still being collected from the device or written."""
        return self._capture_task is not None and not self._capture_task.done()

    def question_at(self, index: int) -> Question:
        """Return any prompt for read-only browsing; works without a device."""
        return self._questions[index]

    # ------------------------------------------------------------------
    # Device lifecycle
    # ------------------------------------------------------------------

    async def acquire_device(self) -> bool:
        """Request the camera and microphone once.

        Failure is not raised: the session stays usable for browsing prompts,
        recording controls stay disabled and ``device_error`` explains why.

        Returns:
            True if a device is held after the call.
        """
        if self._torn_down or self._acquire_attempted:
            return self.device_available
        self._acquire_attempted = True

        try:
            device = self._device_factory()
            await asyncio.to_thread(device.open)
        except Exception as exc:
            self._device_error = getattr(exc, "detail", None) or str(exc) or type(exc).__name__
            logger.warning(
                "Session %s: capture device unavailable, recording disabled: %s",
                self.session_id,
                self._device_error,
            )
            return False

        if self._torn_down:
            # Torn down while the permission prompt was pending
            await asyncio.to_thread(device.close)
            return False

        self._device = device
        self._bind_live()
        logger.info("Session %s: acquired %s", self.session_id, device.describe())
        return True

    async def teardown(self) -> None:
        """Cancel timers, release the device and all artifacts. Idempotent."""
        if self._torn_down:
            return
        self._torn_down = True
        self._cancel_timer()
        self._generation += 1

        # A stop already in flight finishes first and drops its media
        await self.wait_for_capture()

        if self._device is not None:
            device, self._device = self._device, None
            try:
                await asyncio.to_thread(_release_device, device)
            except Exception:
                logger.exception("Session %s: failed to release capture device", self.session_id)

        released = self._store.release_all()
        self._preview = PreviewBinding()
        logger.info(
            "Session %s torn down (%d artifacts released)", self.session_id, released
        )

    async def __aenter__(self) -> "RecordingSessionController":
        await self.acquire_device()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.teardown()

    # ------------------------------------------------------------------
    # Recording cycle
    # ------------------------------------------------------------------

    def start_countdown(self) -> bool:
        """Begin the countdown from ``idle``. Returns False when not allowed."""
        if not self.can_start:
            logger.debug("Session %s: start ignored in state %s", self.session_id, self.state)
            return False

        self._capture_error = None
        if self._countdown_seconds <= 0:
            self._begin_capture()
        else:
            self._enter(Countdown(remaining=self._countdown_seconds))
            self._schedule(self._on_countdown_tick)
        return True

    async def stop_recording(self) -> bool:
        """Stop an active capture and wait until its artifact is stored. No-op otherwise."""
        if not self.can_stop:
            return False
        self._finish_capture()
        await self.wait_for_capture()
        return True

    async def wait_for_capture(self) -> None:
        """Wait for a stopped capture to be stored (or dropped)."""
        task = self._capture_task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def review(self) -> bool:
        """Play back the stored artifact of the current question."""
        if not self.can_review:
            return False
        artifact = self._store.get(self._index)
        self._enter(Reviewing(handle=artifact.handle))
        self._preview = PreviewBinding(
            source=PreviewSource.artifact, artifact_handle=artifact.handle
        )
        return True

    async def re_record(self) -> bool:
        """Discard the current question's recording and return to ``idle``."""
        if not self.can_rerecord:
            return False

        if isinstance(self._phase, Recording):
            device = self._device
            # Leave recording first so no tick or stop races the discard
            self._enter(Stopped())
            generation = self._generation
            await asyncio.to_thread(device.discard_recording)
            if not self._is_current(generation):
                return True

        self._store.revoke(self._index)
        self._enter(Idle())
        self._bind_live()
        return True

    def advance(self) -> bool:
        """Move to the next question once the current one is recorded."""
        if not self.can_advance:
            return False

        self._index += 1
        self._capture_error = None
        self._enter(Idle())
        self._bind_live()
        logger.debug("Session %s: question %d", self.session_id, self._index + 1)
        return True

    async def submit_session(self) -> CompletionRecord:
        """Report completion, then finish the session.

        The progress callback runs before anything is released: if it fails
        the recordings stay in place and submission can be retried.

        Raises:
            SessionAlreadySubmittedError: On a second (or concurrent) call.
            RecordingInProgressError: While a countdown or capture is running.
            SessionIncompleteError: If any question lacks a recording.
            ProgressReportError: If the progress callback failed.
        """
        if self._submitted or self._submitting:
            raise SessionAlreadySubmittedError()
        if isinstance(self._phase, Countdown | Recording) or self._capture_pending:
            raise RecordingInProgressError()
        if not self.can_submit:
            raise SessionIncompleteError(self._store.count, len(self._questions))

        record = CompletionRecord(
            phase_name=PHASE_NAME,
            completed=True,
            completed_at=datetime.now(UTC),
        )
        if self._on_complete is not None:
            self._submitting = True
            try:
                await self._on_complete(record, 100)
            except Exception as exc:
                logger.exception(
                    "Session %s: completion could not be reported", self.session_id
                )
                raise ProgressReportError() from exc
            finally:
                self._submitting = False

        self._submitted = True
        self._cancel_timer()
        self._generation += 1
        released = self._store.release_all()
        self._preview = PreviewBinding(
            source=PreviewSource.live if self.device_available else PreviewSource.none
        )
        logger.info(
            "Session %s submitted (%d artifacts released)", self.session_id, released
        )

        if self._on_navigate is not None:
            self._on_navigate(NEXT_ROUTE)
        return record

    # ------------------------------------------------------------------
    # Playback / preview
    # ------------------------------------------------------------------

    def artifact_for(self, question_index: int) -> RecordingArtifact:
        artifact = self._store.get(question_index)
        if artifact is None:
            raise ArtifactNotFoundError(question_index)
        return artifact

    def preview_frame(self) -> bytes | None:
        """Latest live frame, only while the preview is bound to the device."""
        if self._preview.source != PreviewSource.live or self._device is None:
            return None
        return self._device.preview_frame()

    def snapshot(self) -> SessionSnapshot:
        question = self.current_question
        artifact = self._store.get(self._index)
        return SessionSnapshot(
            session_id=self.session_id,
            question_index=self._index,
            question_count=len(self._questions),
            question=question,
            state=self.state,
            countdown_remaining=(
                self._phase.remaining if isinstance(self._phase, Countdown) else 0
            ),
            elapsed_seconds=self._phase.elapsed if isinstance(self._phase, Recording) else 0,
            time_limit=question.time_limit,
            statuses=[
                QuestionStatus.recorded if self._store.has(i) else QuestionStatus.unrecorded
                for i in range(len(self._questions))
            ],
            recorded_count=self._store.count,
            artifact=artifact.to_info() if artifact else None,
            device_available=self.device_available,
            device_error=self._device_error,
            capture_error=self._capture_error,
            preview=self._preview,
            can_start=self.can_start,
            can_stop=self.can_stop,
            can_review=self.can_review,
            can_rerecord=self.can_rerecord,
            can_advance=self.can_advance,
            can_submit=self.can_submit,
            is_low_time=self.is_low_time,
            submitted=self._submitted,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _enter(self, phase: SessionPhase) -> None:
        """Switch substate; any armed timer belongs to the old state."""
        self._cancel_timer()
        self._generation += 1
        self._phase = phase

    def _schedule(self, callback: Callable[[], None]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(TICK_SECONDS, self._fire, self._generation, callback)

    def _fire(self, generation: int, callback: Callable[[], None]) -> None:
        if generation != self._generation or not self._active:
            return
        self._timer = None
        callback()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _bind_live(self) -> None:
        source = PreviewSource.live if self._device is not None else PreviewSource.none
        self._preview = PreviewBinding(source=source)

    def _on_countdown_tick(self) -> None:
        remaining = self._phase.remaining - 1
        if remaining <= 0:
            self._begin_capture()
            return
        self._enter(Countdown(remaining=remaining))
        self._schedule(self._on_countdown_tick)

    def _begin_capture(self) -> None:
        try:
            self._device.start_recording()
        except Exception as exc:
            logger.exception("Session %s: could not start capture", self.session_id)
            self._capture_error = getattr(exc, "detail", None) or str(exc)
            self._enter(Idle())
            return

        self._enter(Recording(elapsed=0))
        self._schedule(self._on_recording_tick)
        logger.debug(
            "Session %s: recording question %d (limit %ss)",
            self.session_id,
            self._index + 1,
            self.current_question.time_limit,
        )

    def _on_recording_tick(self) -> None:
        elapsed = self._phase.elapsed + 1
        self._enter(Recording(elapsed=elapsed))
        if elapsed >= self.current_question.time_limit:
            logger.debug("Session %s: time limit reached", self.session_id)
            self._finish_capture()
            return
        self._schedule(self._on_recording_tick)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._active

    def _finish_capture(self) -> asyncio.Task:
        """Leave ``recording`` and collect the capture in the background."""
        self._enter(Stopped())
        self._capture_task = asyncio.get_running_loop().create_task(
            self._store_capture(self._device, self._index, self._generation)
        )
        return self._capture_task

    async def _store_capture(
        self, device: BaseCaptureDevice, index: int, generation: int
    ) -> None:
        """Turn the captured media into the artifact of question ``index``."""
        try:
            media = await asyncio.to_thread(device.stop_recording)
            if not media.tracks:
                raise ValueError("No media was captured")
            if not self._is_current(generation):
                media.discard()
                return
            artifact = await asyncio.to_thread(self._store.write, index, media)
        except Exception as exc:
            logger.exception(
                "Session %s: recording for question %d was lost", self.session_id, index + 1
            )
            if self._is_current(generation):
                self._capture_error = str(exc)
                self._enter(Idle())
                self._bind_live()
            return

        if self._is_current(generation):
            self._store.commit(artifact)
        else:
            # Re-recorded or torn down while the files were written
            self._store.discard(artifact)


def _release_device(device: BaseCaptureDevice) -> None:
    if device.is_recording:
        device.discard_recording()
    device.close()
