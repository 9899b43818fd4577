"""Access-profile lookup with fallback to session metadata."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.repositories import profile_repo
from app.models.session import AccessProfile, ProfileSource, Session

logger = logging.getLogger(__name__)


class SqlProfileStore:
    """Reads role and onboarding state from the ``profiles`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def fetch_access_profile(self, user_id: str) -> AccessProfile:
        async with self._session_factory() as db:
            role, onboarding_completed = await profile_repo.get_access_profile(db, user_id)
        return AccessProfile(
            role=role,
            onboarding_completed=onboarding_completed,
            source=ProfileSource.STORE,
        )


def profile_from_session(session: Session) -> AccessProfile:
    """Second tier: whatever the auth provider embedded in the session."""
    return AccessProfile(
        role=session.metadata_role,
        onboarding_completed=session.metadata_onboarding_completed,
        source=ProfileSource.SESSION,
    )


async def resolve_access_profile(store, session: Session) -> AccessProfile:
    """Look the profile up in ``store``, falling back to session metadata.

    A missing row counts as a failed lookup. Missing metadata fields default
    to the student role with onboarding incomplete.
    """
    try:
        return await store.fetch_access_profile(session.user_id)
    except Exception as e:
        logger.warning(
            f"Profile lookup failed for user {session.user_id}, using session metadata: {e}"
        )
        return profile_from_session(session)
