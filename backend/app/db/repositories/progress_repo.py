"""Progress repository — snapshot persistence and the case-attempt log."""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.progress import score_points
from app.db.exceptions import ConcurrentUpdateError, ConnectionError, DatabaseError
from app.db.models import CaseAttempt, UserProgress
from app.models.progress import ProgressSnapshot, SubmissionResult

logger = logging.getLogger(__name__)


def _dump_stats(stats: dict) -> dict:
    return {key: value.model_dump() for key, value in stats.items()}


def _to_snapshot(row: UserProgress) -> ProgressSnapshot:
    return ProgressSnapshot(
        cases_completed=row.cases_completed,
        total_correct=row.total_correct,
        accuracy=row.accuracy,
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        total_time_spent=row.total_time_spent,
        category_progress=row.category_progress or {},
        specialty_progress=row.specialty_progress or {},
    )


async def get_progress(db: AsyncSession, user_id: str) -> tuple[ProgressSnapshot, int]:
    """Load a user's snapshot and its version.

    Users with no row yet get an all-zero snapshot and version 0.
    """
    try:
        # populate_existing: versioned updates bypass the identity map
        result = await db.execute(
            select(UserProgress)
            .where(UserProgress.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
    except OperationalError as e:
        logger.error(f"Database connection error in get_progress for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error getting progress for user {user_id}: {e}")
        raise DatabaseError(f"Failed to get progress: {e}") from e

    if row is None:
        return ProgressSnapshot(), 0
    return _to_snapshot(row), row.version


async def save_progress(
    db: AsyncSession,
    user_id: str,
    snapshot: ProgressSnapshot,
    expected_version: int,
) -> int:
    """Persist ``snapshot`` if the stored version still equals ``expected_version``.

    Version 0 means "no row yet" and inserts. Returns the new version.

    Raises:
        ConcurrentUpdateError: another write landed since the snapshot was read
    """
    values = {
        "cases_completed": snapshot.cases_completed,
        "total_correct": snapshot.total_correct,
        "accuracy": snapshot.accuracy,
        "current_streak": snapshot.current_streak,
        "longest_streak": snapshot.longest_streak,
        "total_time_spent": snapshot.total_time_spent,
        "category_progress": _dump_stats(snapshot.category_progress),
        "specialty_progress": _dump_stats(snapshot.specialty_progress),
    }

    try:
        if expected_version == 0:
            db.add(UserProgress(user_id=user_id, version=1, **values))
            await db.flush()
            return 1

        result = await db.execute(
            update(UserProgress)
            .where(UserProgress.user_id == user_id)
            .where(UserProgress.version == expected_version)
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
    except IntegrityError as e:
        logger.warning(f"Progress row for user {user_id} was created concurrently: {e}")
        raise ConcurrentUpdateError(user_id, expected_version) from e
    except OperationalError as e:
        logger.error(f"Database connection error in save_progress for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error saving progress for user {user_id}: {e}")
        raise DatabaseError(f"Failed to save progress: {e}") from e

    if result.rowcount != 1:
        logger.warning(f"Stale progress write for user {user_id} at version {expected_version}")
        raise ConcurrentUpdateError(user_id, expected_version)
    return expected_version + 1


async def record_attempt(db: AsyncSession, user_id: str, result: SubmissionResult) -> CaseAttempt:
    """Append a submission to the user's case-attempt log."""
    attempt = CaseAttempt(
        id=str(uuid.uuid4()),
        user_id=user_id,
        case_id=result.case_id,
        category=result.case_category,
        specialty_tags=list(result.specialty_tags),
        is_correct=result.is_correct,
        score=score_points(result.score),
        time_spent=result.time_spent,
        hints_used=result.hints_used,
    )
    try:
        db.add(attempt)
        await db.flush()
        return attempt
    except OperationalError as e:
        logger.error(f"Database connection error in record_attempt for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error recording attempt for user {user_id}: {e}")
        raise DatabaseError(f"Failed to record attempt: {e}") from e


async def get_recent_attempts(db: AsyncSession, user_id: str, limit: int = 20) -> list[CaseAttempt]:
    """Most recent attempts first."""
    try:
        result = await db.execute(
            select(CaseAttempt)
            .where(CaseAttempt.user_id == user_id)
            .order_by(CaseAttempt.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
    except OperationalError as e:
        logger.error(f"Database connection error in get_recent_attempts for user {user_id}: {e}")
        raise ConnectionError("Database connection failed") from e
    except Exception as e:
        logger.error(f"Unexpected error getting attempts for user {user_id}: {e}")
        raise DatabaseError(f"Failed to get attempts: {e}") from e
