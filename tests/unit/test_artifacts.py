"""Tests for the per-question ArtifactStore."""

import pytest

from byc.services.capture.base import MediaTrack, RecordedMedia
from byc.services.interview.artifacts import ArtifactStore


def _media(payload: bytes = b"data") -> RecordedMedia:
    return RecordedMedia(
        tracks=[
            MediaTrack("video", "video/mp4", ".mp4", payload),
            MediaTrack("audio", "audio/wav", ".wav", payload),
        ],
        duration_seconds=10 / 3,
    )


class TestPut:
    """Storing recordings."""

    def test_writes_one_file_per_track(self, store: ArtifactStore) -> None:
        artifact = store.put(0, _media(b"abc"))

        assert artifact.handle.startswith("artifact-")
        assert set(artifact.files) == {"video", "audio"}
        assert artifact.files["audio"].read_bytes() == b"abc"
        assert artifact.files["video"].name == f"q1-{artifact.handle}-video.mp4"
        assert artifact.media_types["audio"] == "audio/wav"
        assert store.has(0)
        assert store.count == 1

    def test_put_replaces_previous(self, store: ArtifactStore) -> None:
        """A question never holds more than one artifact."""
        first = store.put(0, _media())
        second = store.put(0, _media())

        assert first.handle != second.handle
        assert store.count == 1
        assert store.resolve(first.handle) is None
        assert not first.files["video"].exists()
        assert store.resolve(second.handle) is second

    def test_to_info(self, store: ArtifactStore) -> None:
        info = store.put(1, _media()).to_info()
        assert info.question_index == 1
        assert info.tracks == ["audio", "video"]
        assert info.duration_seconds == 3.33


class TestRevoke:
    """Revoking and releasing recordings."""

    def test_revoke_missing_returns_false(self, store: ArtifactStore) -> None:
        assert store.revoke(0) is False

    def test_revoke_deletes_files(self, store: ArtifactStore) -> None:
        artifact = store.put(0, _media())
        assert store.revoke(0) is True
        assert not store.has(0)
        assert not any(p.exists() for p in artifact.files.values())

    def test_release_all_removes_directory(self, store: ArtifactStore) -> None:
        store.put(0, _media())
        store.put(1, _media())

        assert store.release_all() == 2
        assert store.count == 0
        assert store.handles == set()
        assert not store.root_dir.exists()

    def test_release_all_without_directory(self, store: ArtifactStore) -> None:
        assert store.release_all() == 0


class TestWriteCommit:
    """Writing files apart from registering the artifact."""

    def test_write_does_not_register(self, store: ArtifactStore) -> None:
        artifact = store.write(0, _media(b"xyz"))

        assert artifact.files["video"].read_bytes() == b"xyz"
        assert not store.has(0)
        assert store.resolve(artifact.handle) is None

        assert store.commit(artifact) is artifact
        assert store.get(0) is artifact

    def test_commit_replaces_previous(self, store: ArtifactStore) -> None:
        first = store.put(0, _media())
        second = store.commit(store.write(0, _media()))

        assert store.handles == {second.handle}
        assert not first.files["audio"].exists()

    def test_discard_uncommitted(self, store: ArtifactStore) -> None:
        artifact = store.write(0, _media())
        store.discard(artifact)
        assert not any(p.exists() for p in artifact.files.values())
        assert store.count == 0

    def test_path_track_is_moved(self, store: ArtifactStore, tmp_path) -> None:
        """A track backed by a temp file is moved, not copied."""
        source = tmp_path / "capture.mp4"
        source.write_bytes(b"mp4-bytes")
        media = RecordedMedia(
            tracks=[MediaTrack("video", "video/mp4", ".mp4", path=source)],
            duration_seconds=1.0,
        )

        artifact = store.put(0, media)

        assert not source.exists()
        assert artifact.files["video"].read_bytes() == b"mp4-bytes"
        assert artifact.files["video"].parent == store.root_dir

    def test_failed_write_cleans_up(self, store: ArtifactStore, tmp_path) -> None:
        """A missing source file leaves neither partial files nor an artifact."""
        media = RecordedMedia(
            tracks=[
                MediaTrack("audio", "audio/wav", ".wav", b"wav"),
                MediaTrack("video", "video/mp4", ".mp4", path=tmp_path / "gone.mp4"),
            ],
        )

        with pytest.raises(OSError):
            store.write(0, media)
        assert store.count == 0
        assert list(store.root_dir.iterdir()) == []
