"""
Candidate profile and assessment progress endpoints.
"""

from fastapi import APIRouter

from byc.core.models import UserProfile
from byc.services.storage.database import get_session
from byc.services.storage.repository import ProfileRepository

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("", response_model=UserProfile)
async def get_progress():
    """Return the candidate profile including assessment progress."""
    async with get_session() as session:
        repo = ProfileRepository(session)
        return await repo.get_user()
