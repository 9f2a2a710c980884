"""
BYC assessment exception hierarchy.

All application-specific exceptions inherit from BycError,
enabling centralized error handling in the API middleware layer.
"""

from datetime import UTC, datetime


class BycError(Exception):
    """Base exception for all BYC assessment errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "BYC_ERROR",
        status_code: int = 500,
    ) -> None:
        self.detail = detail
        self.code = code
        self.status_code = status_code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class SessionNotFoundError(BycError):
    """Raised when no interview session is active."""

    def __init__(self) -> None:
        super().__init__(
            detail="No interview session is active",
            code="SESSION_NOT_FOUND",
            status_code=404,
        )


class SessionAlreadyActiveError(BycError):
    """Raised when trying to start a session while one is already active."""

    def __init__(self) -> None:
        super().__init__(
            detail="An interview session is already active",
            code="SESSION_ALREADY_ACTIVE",
            status_code=409,
        )


class SessionIncompleteError(BycError):
    """Raised when submitting before every question has a recording."""

    def __init__(self, recorded: int, total: int) -> None:
        super().__init__(
            detail=f"Only {recorded} of {total} questions are recorded",
            code="SESSION_INCOMPLETE",
            status_code=409,
        )


class SessionAlreadySubmittedError(BycError):
    """Raised when a session is submitted a second time."""

    def __init__(self) -> None:
        super().__init__(
            detail="This interview session was already submitted",
            code="SESSION_ALREADY_SUBMITTED",
            status_code=409,
        )


class ArtifactNotFoundError(BycError):
    """Raised when a question has no stored recording (or track)."""

    def __init__(self, question_index: int, kind: str | None = None) -> None:
        what = f"{kind} track" if kind else "recording"
        super().__init__(
            detail=f"No {what} for question {question_index + 1}",
            code="ARTIFACT_NOT_FOUND",
            status_code=404,
        )


class DeviceUnavailableError(BycError):
    """Raised by capture backends when the camera or microphone cannot be opened."""

    def __init__(self, detail: str = "Capture device unavailable") -> None:
        super().__init__(
            detail=detail,
            code="DEVICE_UNAVAILABLE",
            status_code=503,
        )


class QuestionBankError(BycError):
    """Raised when the configured question file is missing or malformed."""

    def __init__(self, detail: str = "Question bank could not be loaded") -> None:
        super().__init__(detail=detail, code="QUESTION_BANK_ERROR", status_code=500)


class RecordingInProgressError(BycError):
    """Raised when submitting while a countdown or capture is running."""

    def __init__(self) -> None:
        super().__init__(
            detail="Stop the current recording before submitting",
            code="RECORDING_IN_PROGRESS",
            status_code=409,
        )


class ProgressReportError(BycError):
    """Raised when the completed interview could not be recorded on the profile.

    The session is left as it was, recordings included, so submission can be
    retried.
    """

    def __init__(self, detail: str = "Assessment progress could not be saved") -> None:
        super().__init__(detail=detail, code="PROGRESS_UNAVAILABLE", status_code=503)
