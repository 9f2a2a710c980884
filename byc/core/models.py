"""
Pydantic v2 models used across the service and API layers.

Interview: Question, RecordingState, SessionSnapshot, artifacts
Progress: AssessmentProgress, PhaseResult, UserProfile, CompletionRecord
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: datetime


# ---------------------------------------------------------------------------
# Interview questions
# ---------------------------------------------------------------------------


class Question(BaseModel):
    """A single interview prompt. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: int
    prompt: str
    time_limit: int = Field(default=120, gt=0)  # seconds
    tips: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Recording session
# ---------------------------------------------------------------------------


class RecordingState(StrEnum):
    """Per-question recording substate."""

    idle = "idle"
    countdown = "countdown"
    recording = "recording"
    stopped = "stopped"
    reviewing = "reviewing"


class QuestionStatus(StrEnum):
    """Whether a question has a stored recording."""

    unrecorded = "unrecorded"
    recorded = "recorded"


class PreviewSource(StrEnum):
    """What the preview surface is currently showing."""

    none = "none"  # no device and nothing to play back
    live = "live"
    artifact = "artifact"


class PreviewBinding(BaseModel):
    """Current binding of the preview surface."""

    source: PreviewSource = PreviewSource.none
    artifact_handle: str | None = None


class ArtifactInfo(BaseModel):
    """Read-only description of a stored recording."""

    handle: str
    question_index: int
    tracks: list[str] = Field(default_factory=list)
    duration_seconds: float = 0.0
    created_at: datetime


class SessionSnapshot(BaseModel):
    """Point-in-time view of an interview session, suitable for rendering."""

    session_id: str
    question_index: int
    question_count: int
    question: Question
    state: RecordingState
    countdown_remaining: int = 0
    elapsed_seconds: int = 0
    time_limit: int
    statuses: list[QuestionStatus] = Field(default_factory=list)
    recorded_count: int = 0
    artifact: ArtifactInfo | None = None
    device_available: bool = False
    device_error: str | None = None
    capture_error: str | None = None
    preview: PreviewBinding = Field(default_factory=PreviewBinding)
    can_start: bool = False
    can_stop: bool = False
    can_review: bool = False
    can_rerecord: bool = False
    can_advance: bool = False
    can_submit: bool = False
    is_low_time: bool = False
    submitted: bool = False


class ActionResponse(BaseModel):
    """Result of a session action; ``accepted`` is False for guarded no-ops."""

    accepted: bool
    session: SessionSnapshot


# ---------------------------------------------------------------------------
# Assessment progress
# ---------------------------------------------------------------------------


class AssessmentPhase(StrEnum):
    """Phases of the diagnostic assessment, in order."""

    not_started = "not-started"
    aptitude = "aptitude"
    coding = "coding"
    problem_solving = "problem-solving"
    video = "video"
    completed = "completed"


class PhaseResult(BaseModel):
    """Outcome of one assessment phase."""

    completed: bool = False
    score: int | None = None
    completed_at: datetime | None = None


class AssessmentProgress(BaseModel):
    """Candidate's progress through the assessment."""

    current_phase: AssessmentPhase = AssessmentPhase.not_started
    aptitude: PhaseResult | None = None
    coding: PhaseResult | None = None
    problem_solving: PhaseResult | None = None
    video: PhaseResult | None = None
    overall_progress: int = Field(default=0, ge=0, le=100)


class UserProfile(BaseModel):
    """The (mock) candidate profile kept in the key-value store."""

    id: str
    name: str
    email: str
    avatar: str | None = None
    role: str | None = None
    assessment_progress: AssessmentProgress = Field(default_factory=AssessmentProgress)
    created_at: datetime


class CompletionRecord(BaseModel):
    """Completion event reported to the progress tracker."""

    phase_name: str
    completed: bool = True
    completed_at: datetime


class SubmitResponse(BaseModel):
    """POST /interview/session/submit response."""

    completion: CompletionRecord
    overall_progress: int
    next_route: str
    session: SessionSnapshot


# ---------------------------------------------------------------------------
# Error
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error envelope returned by the API."""

    detail: str
    code: str
    timestamp: str
