"""Profile repository."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.exceptions import ConnectionError, DatabaseError, RecordNotFoundError
from app.db.models import Profile

logger = logging.getLogger(__name__)


async def get_profile_by_id(db: AsyncSession, user_id: str) -> Profile | None:
    """Get a profile by user ID."""
    try:
        result = await db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()
    except OperationalError as e:
        logger.error(f"Database connection error in get_profile_by_id for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error getting profile {user_id}: {e}")
        raise DatabaseError(f"Failed to get profile: {e}") from e


async def get_access_profile(db: AsyncSession, user_id: str) -> tuple[str, bool]:
    """Return ``(role, onboarding_completed)`` for a user.

    Raises:
        RecordNotFoundError: if the user has no profile row
    """
    try:
        result = await db.execute(
            select(Profile.role, Profile.onboarding_completed).where(Profile.id == user_id)
        )
        row = result.one_or_none()
    except OperationalError as e:
        logger.error(f"Database connection error in get_access_profile for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error getting access profile for user {user_id}: {e}")
        raise DatabaseError(f"Failed to get access profile: {e}") from e

    if row is None:
        raise RecordNotFoundError(f"No profile for user {user_id}")
    return row.role, row.onboarding_completed


async def set_onboarding_completed(db: AsyncSession, user_id: str, completed: bool = True) -> Profile:
    """Mark a user's onboarding as completed (or not)."""
    profile = await get_profile_by_id(db, user_id)
    if profile is None:
        raise RecordNotFoundError(f"No profile for user {user_id}")
    try:
        profile.onboarding_completed = completed
        await db.flush()
        return profile
    except OperationalError as e:
        logger.error(f"Database connection error in set_onboarding_completed for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error updating onboarding for user {user_id}: {e}")
        raise DatabaseError(f"Failed to update onboarding: {e}") from e
