"""
Abstract base class for capture devices.

A capture device is the camera + microphone handle the recording controller
owns for the lifetime of an interview session. Implementations wrap a
platform backend (OpenCV / sounddevice) or a generated stream.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class MediaTrack:
    """One encoded track of a recording (e.g. the video or the audio).

    Small tracks carry their bytes in ``data``; large ones are left on disk
    at ``path`` and moved into place by the artifact store.
    """

    kind: str
    media_type: str
    suffix: str
    data: bytes = b""
    path: Path | None = None


@dataclass(frozen=True)
class RecordedMedia:
    """Everything captured between one start/stop pair."""

    tracks: list[MediaTrack] = field(default_factory=list)
    duration_seconds: float = 0.0

    def discard(self) -> None:
        """Delete any temporary track files that were never stored."""
        for track in self.tracks:
            if track.path is not None:
                track.path.unlink(missing_ok=True)


class BaseCaptureDevice(ABC):
    """Interface that every capture backend must implement.

    ``open()``, ``stop_recording()``, ``discard_recording()`` and ``close()``
    may block (driver handshakes, encoding, joining reader threads); callers
    run them off the event loop. ``open()`` may raise ``DeviceUnavailableError``.
    """

    @abstractmethod
    def open(self) -> None:
        """Acquire the camera and microphone.

        Raises:
            DeviceUnavailableError: If permission is denied or no device exists.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call more than once."""

    @abstractmethod
    def start_recording(self) -> None:
        """Begin buffering captured media."""

    @abstractmethod
    def stop_recording(self) -> RecordedMedia:
        """Finish the current capture and return the encoded tracks."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True between a successful ``open()`` and ``close()``."""

    @property
    @abstractmethod
    def is_recording(self) -> bool:
        """True between ``start_recording()`` and ``stop_recording()``."""

    def discard_recording(self) -> None:
        """Abandon an in-progress capture without keeping its media."""
        self.stop_recording()

    def preview_frame(self) -> bytes | None:
        """Return the latest live frame as JPEG bytes, if the backend has video."""
        return None

    def describe(self) -> str:
        """Human-readable backend name for logs and the UI."""
        return type(self).__name__
