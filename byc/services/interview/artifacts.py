"""Per-question storage of recorded answers.

Each stored recording gets an opaque handle (``artifact-<hex>``) and one file
per captured track under the session directory. A question holds at most one
artifact: storing a new one revokes the previous one first.
"""

import logging
import shutil
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from byc.core.models import ArtifactInfo
from byc.services.capture.base import RecordedMedia

logger = logging.getLogger(__name__)


@dataclass
class RecordingArtifact:
    """A recorded answer for one question."""

    handle: str
    question_index: int
    files: dict[str, Path] = field(default_factory=dict)
    media_types: dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_info(self) -> ArtifactInfo:
        return ArtifactInfo(
            handle=self.handle,
            question_index=self.question_index,
            tracks=sorted(self.files),
            duration_seconds=round(self.duration_seconds, 2),
            created_at=self.created_at,
        )


class ArtifactStore:
    """Owns the recorded artifacts of one interview session.

    Args:
        root_dir: Directory the track files are written to. Created lazily.
    """

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)
        self._by_question: dict[int, RecordingArtifact] = {}

    @property
    def root_dir(self) -> Path:
        return self._root

    @property
    def count(self) -> int:
        return len(self._by_question)

    @property
    def handles(self) -> set[str]:
        return {a.handle for a in self._by_question.values()}

    def has(self, question_index: int) -> bool:
        return question_index in self._by_question

    def get(self, question_index: int) -> RecordingArtifact | None:
        return self._by_question.get(question_index)

    def resolve(self, handle: str) -> RecordingArtifact | None:
        """Look up an artifact by handle; revoked handles resolve to None."""
        for artifact in self._by_question.values():
            if artifact.handle == handle:
                return artifact
        return None

    def write(self, question_index: int, media: RecordedMedia) -> RecordingArtifact:
        """Write ``media`` to disk under a fresh handle without registering it.

        Only touches the filesystem, so it can run in a worker thread. Track
        files left on disk by the device are moved, not copied into memory.
        Pass the result to :meth:`commit` or :meth:`discard`.
        """
        handle = f"artifact-{uuid.uuid4().hex[:12]}"
        self._root.mkdir(parents=True, exist_ok=True)

        artifact = RecordingArtifact(
            handle=handle,
            question_index=question_index,
            duration_seconds=media.duration_seconds,
        )
        try:
            for track in media.tracks:
                path = self._root / f"q{question_index + 1}-{handle}-{track.kind}{track.suffix}"
                if track.path is not None:
                    shutil.move(track.path, path)
                else:
                    path.write_bytes(track.data)
                artifact.files[track.kind] = path
                artifact.media_types[track.kind] = track.media_type
        except Exception:
            self._unlink(artifact)
            media.discard()
            raise
        return artifact

    def commit(self, artifact: RecordingArtifact) -> RecordingArtifact:
        """Make ``artifact`` the recording of its question, revoking the previous one."""
        self.revoke(artifact.question_index)
        self._by_question[artifact.question_index] = artifact
        logger.debug(
            "Stored %s for question %d (%d tracks)",
            artifact.handle,
            artifact.question_index + 1,
            len(artifact.files),
        )
        return artifact

    def put(self, question_index: int, media: RecordedMedia) -> RecordingArtifact:
        """Store ``media`` as the recording for ``question_index``."""
        return self.commit(self.write(question_index, media))

    def discard(self, artifact: RecordingArtifact) -> None:
        """Delete the files of an artifact that was written but never committed."""
        self._unlink(artifact)

    def revoke(self, question_index: int) -> bool:
        """Delete the artifact of ``question_index``. Returns False if there was none."""
        artifact = self._by_question.pop(question_index, None)
        if artifact is None:
            return False

        self._unlink(artifact)
        logger.debug("Revoked %s for question %d", artifact.handle, question_index + 1)
        return True

    def release_all(self) -> int:
        """Revoke every artifact and remove the session directory if empty."""
        released = 0
        for question_index in list(self._by_question):
            if self.revoke(question_index):
                released += 1

        try:
            self._root.rmdir()
        except OSError:
            pass  # missing or not empty
        return released

    @staticmethod
    def _unlink(artifact: RecordingArtifact) -> None:
        for path in artifact.files.values():
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not delete %s", path, exc_info=True)
