"""Generated capture device for demos and headless hosts.

Produces a sine tone for the elapsed recording time and encodes it as a
16-bit WAV track. No camera track is produced.
"""

import io
import logging
import time

import numpy as np
import soundfile as sf

from byc.core.exceptions import DeviceUnavailableError
from byc.services.capture.base import BaseCaptureDevice, MediaTrack, RecordedMedia

logger = logging.getLogger(__name__)


class SyntheticCaptureDevice(BaseCaptureDevice):
    """In-process device that never touches hardware.

    Args:
        sample_rate: Audio sample rate of the generated track.
        frequency: Tone frequency in Hz.
        available: When False, ``open()`` behaves like a denied permission prompt.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        frequency: float = 440.0,
        available: bool = True,
    ) -> None:
        self._sample_rate = sample_rate
        self._frequency = frequency
        self._available = available
        self._open = False
        self._started_at: float | None = None

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_recording(self) -> bool:
        return self._started_at is not None

    def open(self) -> None:
        if not self._available:
            raise DeviceUnavailableError("Permission denied for camera and microphone")
        self._open = True
        logger.debug("Synthetic capture device opened")

    def close(self) -> None:
        self._open = False
        self._started_at = None

    def start_recording(self) -> None:
        if not self._open:
            raise DeviceUnavailableError("Device is not open")
        self._started_at = time.monotonic()

    def stop_recording(self) -> RecordedMedia:
        if self._started_at is None:
            return RecordedMedia()

        duration = max(time.monotonic() - self._started_at, 0.0)
        self._started_at = None
        return RecordedMedia(
            tracks=[self._render_tone(duration)],
            duration_seconds=duration,
        )

    def _render_tone(self, duration: float) -> MediaTrack:
        """Encode ``duration`` seconds of tone (at least one frame) as WAV."""
        num_samples = max(int(duration * self._sample_rate), 1)
        t = np.arange(num_samples, dtype=np.float32) / self._sample_rate
        samples = 0.5 * np.sin(2 * np.pi * self._frequency * t)

        buf = io.BytesIO()
        sf.write(buf, samples, self._sample_rate, format="WAV", subtype="PCM_16")
        return MediaTrack(kind="audio", media_type="audio/wav", suffix=".wav", data=buf.getvalue())

    def describe(self) -> str:
        return f"synthetic ({self._frequency:.0f} Hz tone)"
