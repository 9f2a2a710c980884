"""
Interview module - Video interview recording session.
"""

from .artifacts import ArtifactStore, RecordingArtifact
from .controller import RecordingSessionController
from .questions import DEFAULT_QUESTIONS, get_questions

__all__ = [
    "DEFAULT_QUESTIONS",
    "ArtifactStore",
    "RecordingArtifact",
    "RecordingSessionController",
    "get_questions",
]
