"""
Repositories over the ``kv_store`` table.

``KeyValueRepository`` receives an ``AsyncSession`` and reads / writes JSON
blobs. ``ProfileRepository`` keeps the candidate profile under a single key.
Both call ``flush()`` rather than ``commit()`` so that transaction boundaries
are controlled by the caller (typically :func:`get_session`).
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from byc.core.models import AssessmentProgress, UserProfile
from byc.services.storage.models_db import KeyValue

logger = logging.getLogger(__name__)

USER_KEY = "byc_user"


def default_profile() -> UserProfile:
    """The mock candidate used until a profile has been stored."""
    return UserProfile(
        id="1",
        name="Alex Johnson",
        email="alex@example.com",
        role="Data Engineer",
        assessment_progress=AssessmentProgress(),
        created_at=datetime.now(UTC),
    )


class KeyValueRepository:
    """Data-access layer for JSON blobs.

    Args:
        session: An active SQLAlchemy ``AsyncSession``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> dict | None:
        """Return the value stored under *key*, or None."""
        result = await self._session.execute(select(KeyValue).where(KeyValue.key == key))
        row = result.scalar_one_or_none()
        return row.value if row is not None else None

    async def set(self, key: str, value: dict) -> None:
        """Insert or replace the value under *key*."""
        row = await self._session.get(KeyValue, key)
        if row is None:
            self._session.add(KeyValue(key=key, value=value))
        else:
            # Assign a new object so the JSON column is marked dirty
            row.value = dict(value)
        await self._session.flush()

    async def delete(self, key: str) -> bool:
        """Remove *key*. Returns False if it did not exist."""
        row = await self._session.get(KeyValue, key)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True


class ProfileRepository:
    """Reads and updates the stored candidate profile."""

    def __init__(self, session: AsyncSession) -> None:
        self._kv = KeyValueRepository(session)

    async def get_user(self) -> UserProfile:
        """Return the stored profile, falling back to the default mock profile."""
        data = await self._kv.get(USER_KEY)
        if data is None:
            return default_profile()
        return UserProfile.model_validate(data)

    async def update_user(self, updates: dict) -> UserProfile:
        """Shallow-merge *updates* into the profile and persist it.

        Args:
            updates: Top-level ``UserProfile`` fields to replace.

        Returns:
            The merged, validated profile.
        """
        current = await self.get_user()
        merged = {**current.model_dump(mode="json"), **updates}
        profile = UserProfile.model_validate(merged)
        await self._kv.set(USER_KEY, profile.model_dump(mode="json"))
        logger.debug("Updated profile %s (%s)", profile.id, ", ".join(sorted(updates)))
        return profile
