"""Camera + microphone capture using OpenCV and sounddevice.

The camera is read continuously on a background thread so that the live
preview always has a fresh frame. While recording, frames are appended to an
mp4 file (``mp4v``) and microphone blocks are buffered in memory, then written
as a 16-bit WAV track on stop.

Both libraries are imported lazily: hosts without a camera stack or PortAudio
report ``DeviceUnavailableError`` instead of failing at import time.
"""

import io
import logging
import os
import tempfile
import threading
import time
from pathlib import Path

import numpy as np
import soundfile as sf

from byc.core.exceptions import DeviceUnavailableError
from byc.services.capture.base import BaseCaptureDevice, MediaTrack, RecordedMedia

logger = logging.getLogger(__name__)


class LocalCaptureDevice(BaseCaptureDevice):
    """Webcam and default microphone of the host.

    Args:
        camera_index: OpenCV camera index.
        width: Requested frame width.
        height: Requested frame height.
        fps: Frame rate written into the mp4 container.
        sample_rate: Microphone sample rate in Hz.
        channels: Microphone channel count.
    """

    def __init__(
        self,
        camera_index: int = 0,
        width: int = 1280,
        height: int = 720,
        fps: int = 30,
        sample_rate: int = 16000,
        channels: int = 1,
    ) -> None:
        self._camera_index = camera_index
        self._width = width
        self._height = height
        self._fps = fps
        self._sample_rate = sample_rate
        self._channels = channels

        self._cv2 = None
        self._capture = None
        self._stream = None
        self._reader: threading.Thread | None = None
        self._stop_reader = threading.Event()

        self._lock = threading.Lock()
        self._latest_frame: np.ndarray | None = None
        self._writer = None
        self._video_path: Path | None = None
        self._audio_blocks: list[np.ndarray] = []
        self._recording = False
        self._started_at: float | None = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    @property
    def is_recording(self) -> bool:
        return self._recording

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        try:
            import cv2
            import sounddevice as sd
        except (ImportError, OSError) as exc:
            raise DeviceUnavailableError(f"Capture libraries unavailable: {exc}") from None

        capture = cv2.VideoCapture(self._camera_index)
        if not capture.isOpened():
            capture.release()
            raise DeviceUnavailableError(f"Camera {self._camera_index} could not be opened")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)

        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="float32",
                callback=self._on_audio_block,
            )
            stream.start()
        except Exception as exc:
            capture.release()
            raise DeviceUnavailableError(f"Microphone could not be opened: {exc}") from None

        self._cv2 = cv2
        self._capture = capture
        self._stream = stream
        self._stop_reader.clear()
        self._reader = threading.Thread(target=self._read_frames, daemon=True)
        self._reader.start()
        logger.info("Opened camera %s and microphone at %s Hz", self._camera_index, self._sample_rate)

    def close(self) -> None:
        if self._capture is None:
            return

        if self._recording:
            self.discard_recording()

        self._stop_reader.set()
        if self._reader is not None:
            self._reader.join(timeout=2.0)
            self._reader = None

        try:
            self._stream.stop()
            self._stream.close()
        except Exception:
            logger.warning("Failed to close microphone stream", exc_info=True)
        self._capture.release()

        self._capture = None
        self._stream = None
        self._latest_frame = None
        logger.info("Released camera %s and microphone", self._camera_index)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def start_recording(self) -> None:
        if self._capture is None:
            raise DeviceUnavailableError("Device is not open")

        fd, name = tempfile.mkstemp(suffix=".mp4", prefix="byc-capture-")
        os.close(fd)  # VideoWriter opens the path itself
        with self._lock:
            self._video_path = Path(name)
            self._writer = None  # created on the first frame, sized from it
            self._audio_blocks = []
            self._recording = True
            self._started_at = time.monotonic()

    def stop_recording(self) -> RecordedMedia:
        with self._lock:
            if not self._recording:
                return RecordedMedia()
            self._recording = False
            writer, self._writer = self._writer, None
            video_path, self._video_path = self._video_path, None
            blocks, self._audio_blocks = self._audio_blocks, []
            duration = time.monotonic() - (self._started_at or time.monotonic())
            self._started_at = None

        tracks: list[MediaTrack] = []
        if writer is not None:
            writer.release()
            # The mp4 stays on disk; the artifact store moves it into place
            tracks.append(
                MediaTrack(kind="video", media_type="video/mp4", suffix=".mp4", path=video_path)
            )
        else:
            video_path.unlink(missing_ok=True)

        if blocks:
            tracks.append(self._encode_audio(blocks))

        return RecordedMedia(tracks=tracks, duration_seconds=duration)

    def preview_frame(self) -> bytes | None:
        with self._lock:
            frame = self._latest_frame
        if frame is None or self._cv2 is None:
            return None
        ok, encoded = self._cv2.imencode(".jpg", frame)
        return encoded.tobytes() if ok else None

    def describe(self) -> str:
        return f"camera {self._camera_index} + microphone"

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read_frames(self) -> None:
        """Background loop: keep the latest frame and feed the writer."""
        while not self._stop_reader.is_set():
            ok, frame = self._capture.read()
            if not ok:
                time.sleep(0.01)
                continue
            with self._lock:
                self._latest_frame = frame
                if not self._recording:
                    continue
                if self._writer is None:
                    height, width = frame.shape[:2]
                    fourcc = self._cv2.VideoWriter_fourcc(*"mp4v")
                    self._writer = self._cv2.VideoWriter(
                        str(self._video_path), fourcc, self._fps, (width, height)
                    )
                self._writer.write(frame)

    def _on_audio_block(self, indata, _frames, _time, status) -> None:  # noqa: ANN001
        """sounddevice callback; runs on the PortAudio thread."""
        if status:
            logger.debug("Microphone status: %s", status)
        with self._lock:
            if self._recording:
                self._audio_blocks.append(indata.copy())

    def _encode_audio(self, blocks: list[np.ndarray]) -> MediaTrack:
        samples = np.concatenate(blocks, axis=0)
        buf = io.BytesIO()
        sf.write(buf, samples, self._sample_rate, format="WAV", subtype="PCM_16")
        return MediaTrack(kind="audio", media_type="audio/wav", suffix=".wav", data=buf.getvalue())

    def discard_recording(self) -> None:
        with self._lock:
            self._recording = False
            writer, self._writer = self._writer, None
            video_path, self._video_path = self._video_path, None
            self._audio_blocks = []
            self._started_at = None
        if writer is not None:
            writer.release()
        if video_path is not None:
            video_path.unlink(missing_ok=True)
