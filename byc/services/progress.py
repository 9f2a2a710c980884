"""Assessment progress tracking.

Phase results are stored on the candidate profile. Overall progress only ever
moves forward: a completion that reports a lower percentage than the stored
one leaves the stored value untouched.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from byc.core.models import AssessmentPhase, AssessmentProgress, CompletionRecord, PhaseResult
from byc.services.storage.database import get_session
from byc.services.storage.repository import ProfileRepository

logger = logging.getLogger(__name__)

# AssessmentProgress attribute for each phase that carries a result
_PHASE_FIELDS = {
    AssessmentPhase.aptitude: "aptitude",
    AssessmentPhase.coding: "coding",
    AssessmentPhase.problem_solving: "problem_solving",
    AssessmentPhase.video: "video",
}


class ProgressTracker:
    """Records phase completions on the stored profile.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._profiles = ProfileRepository(session)

    async def get_progress(self) -> AssessmentProgress:
        return (await self._profiles.get_user()).assessment_progress

    async def record_phase_completion(
        self,
        record: CompletionRecord,
        overall_progress: int,
        next_phase: AssessmentPhase = AssessmentPhase.completed,
    ) -> AssessmentProgress:
        """Store a phase result and move the candidate on.

        Args:
            record: The completion event (phase name, flag, timestamp).
            overall_progress: Reported overall percentage, 0-100.
            next_phase: Phase the candidate proceeds to.

        Returns:
            The updated progress.

        Raises:
            ValueError: If the phase name is not a scored assessment phase.
        """
        phase = AssessmentPhase(record.phase_name)
        field_name = _PHASE_FIELDS.get(phase)
        if field_name is None:
            raise ValueError(f"Phase {record.phase_name!r} has no result slot")

        user = await self._profiles.get_user()
        progress = user.assessment_progress
        previous = getattr(progress, field_name)

        result = PhaseResult(
            completed=record.completed,
            score=previous.score if previous else None,
            completed_at=record.completed_at,
        )
        updated = progress.model_copy(
            update={
                field_name: result,
                "current_phase": next_phase,
                "overall_progress": max(progress.overall_progress, min(overall_progress, 100)),
            }
        )
        await self._profiles.update_user(
            {"assessment_progress": updated.model_dump(mode="json")}
        )
        logger.info(
            "Phase %s completed; overall progress %d%%", phase, updated.overall_progress
        )
        return updated


async def report_video_completion(record: CompletionRecord, overall_progress: int) -> None:
    """Progress callback handed to the interview controller."""
    async with get_session() as session:
        tracker = ProgressTracker(session)
        await tracker.record_phase_completion(record, overall_progress)
