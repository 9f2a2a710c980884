"""Shared pytest fixtures for the BYC assessment test suite.

Provides a manual clock standing in for the event loop's ``call_later``,
a scriptable capture device, and database setup helpers.
"""

import threading
from dataclasses import dataclass, field
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from byc.core.models import Question
from byc.services.capture.base import BaseCaptureDevice, MediaTrack, RecordedMedia
from byc.services.interview.artifacts import ArtifactStore
from byc.services.interview.controller import RecordingSessionController
from byc.services.storage.database import Base

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


@dataclass
class _TimerHandle:
    when: float
    callback: object
    args: tuple = field(default_factory=tuple)
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Replacement for ``loop.call_later``; time moves only on ``advance()``."""

    def __init__(self) -> None:
        self.now = 0.0
        self._handles: list[_TimerHandle] = []

    def call_later(self, delay, callback, *args) -> _TimerHandle:
        handle = _TimerHandle(when=self.now + delay, callback=callback, args=args)
        self._handles.append(handle)
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for h in self._handles if not h.cancelled)

    def advance(self, seconds: float = 1.0) -> None:
        """Fire every callback due within ``seconds``, in order."""
        target = self.now + seconds
        while True:
            due = [h for h in self._handles if not h.cancelled and h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self._handles.remove(handle)
            self.now = handle.when
            handle.callback(*handle.args)
        self.now = target
        self._handles = [h for h in self._handles if not h.cancelled]


@pytest.fixture
def clock():
    """Manual clock passed to the controller as its ``loop``."""
    return ManualClock()


# ---------------------------------------------------------------------------
# Capture device
# ---------------------------------------------------------------------------


class FakeCaptureDevice(BaseCaptureDevice):
    """Capture device that counts calls and returns canned tracks.

    Args:
        open_error: Exception raised by ``open()`` (simulates a denied prompt).
        start_error: Exception raised by ``start_recording()``.
        empty: Return no tracks from ``stop_recording()``.
        stop_gate: Event ``stop_recording()`` waits on before returning.

    Blocking calls note the thread they ran on in ``threads``.
    """

    def __init__(self, open_error=None, start_error=None, empty=False, stop_gate=None) -> None:
        self.open_error = open_error
        self.start_error = start_error
        self.empty = empty
        self.stop_gate = stop_gate
        self.threads: dict[str, int] = {}
        self.open_calls = 0
        self.close_calls = 0
        self.start_calls = 0
        self.stop_calls = 0
        self.discard_calls = 0
        self._open = False
        self._recording = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_recording(self) -> bool:
        return self._recording

    def open(self) -> None:
        self.open_calls += 1
        self.threads["open"] = threading.get_ident()
        if self.open_error is not None:
            raise self.open_error
        self._open = True

    def close(self) -> None:
        self.close_calls += 1
        self.threads["close"] = threading.get_ident()
        self._open = False
        self._recording = False

    def start_recording(self) -> None:
        self.start_calls += 1
        if self.start_error is not None:
            raise self.start_error
        self._recording = True

    def stop_recording(self) -> RecordedMedia:
        self.stop_calls += 1
        self.threads["stop"] = threading.get_ident()
        if self.stop_gate is not None:
            self.stop_gate.wait(timeout=5)
        if not self._recording or self.empty:
            self._recording = False
            return RecordedMedia()
        self._recording = False
        return RecordedMedia(
            tracks=[
                MediaTrack("video", "video/mp4", ".mp4", b"fake-video"),
                MediaTrack("audio", "audio/wav", ".wav", b"fake-audio"),
            ],
            duration_seconds=1.0,
        )

    def discard_recording(self) -> None:
        self.discard_calls += 1
        self.threads["discard"] = threading.get_ident()
        self._recording = False

    def preview_frame(self) -> bytes | None:
        return b"jpeg-frame"


@pytest.fixture
def device_cls():
    """The fake device class, for tests that need a scripted failure."""
    return FakeCaptureDevice


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


@pytest.fixture
def two_questions():
    """Two prompts with the default two-minute limit."""
    return (
        Question(id=1, prompt="Describe a hard problem you solved.", tips=("Context",)),
        Question(id=2, prompt="Why data engineering?", tips=("Be genuine",)),
    )


@pytest.fixture
def store(tmp_path):
    """Artifact store writing into a temporary session directory."""
    return ArtifactStore(tmp_path / "session")


@pytest.fixture
async def make_controller(clock, store, two_questions):
    """Factory for controllers wired to the manual clock and mock callbacks.

    The returned controller exposes ``on_complete`` / ``on_navigate`` mocks
    as attributes for assertions. All controllers are torn down afterwards.
    """
    created = []

    def _make(device=None, questions=None, **kwargs):
        device = device if device is not None else FakeCaptureDevice()
        on_complete = AsyncMock()
        on_navigate = MagicMock()
        controller = RecordingSessionController(
            questions if questions is not None else two_questions,
            lambda: device,
            store,
            on_complete=on_complete,
            on_navigate=on_navigate,
            loop=clock,
            session_id="test-session",
            **kwargs,
        )
        controller.device = device
        controller.on_complete = on_complete
        controller.on_navigate = on_navigate
        created.append(controller)
        return controller

    yield _make
    for controller in created:
        await controller.teardown()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def db_engine(tmp_path):
    """SQLite engine in a temp directory with all tables created."""
    from byc.services.storage import models_db  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """A single ``AsyncSession`` on the test engine."""
    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    async with factory() as session:
        yield session
