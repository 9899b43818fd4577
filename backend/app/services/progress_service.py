"""Read-aggregate-write cycle for case submissions."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.progress import apply_submission, evaluate_milestones
from app.db.exceptions import RecordNotFoundError
from app.db.repositories import profile_repo, progress_repo
from app.models.progress import SubmissionOutcome, SubmissionResult

logger = logging.getLogger(__name__)


async def get_progress_overview(db: AsyncSession, user_id: str) -> SubmissionOutcome:
    """Current snapshot and the milestones it satisfies."""
    snapshot, _version = await progress_repo.get_progress(db, user_id)
    return SubmissionOutcome(progress=snapshot, milestones=evaluate_milestones(snapshot))


async def submit_case(db: AsyncSession, user_id: str, result: SubmissionResult) -> SubmissionOutcome:
    """Apply one submission to the stored snapshot and commit.

    The write is conditional on the version that was read, so two
    concurrent submissions for the same user cannot silently overwrite each
    other; the loser gets ``ConcurrentUpdateError`` and nothing is retried.
    """
    if await profile_repo.get_profile_by_id(db, user_id) is None:
        raise RecordNotFoundError(f"No profile for user {user_id}")

    previous, version = await progress_repo.get_progress(db, user_id)
    snapshot = apply_submission(previous, result)
    await progress_repo.save_progress(db, user_id, snapshot, expected_version=version)
    await progress_repo.record_attempt(db, user_id, result)
    await db.commit()

    milestones = evaluate_milestones(snapshot, result)
    logger.info(
        f"Recorded case {result.case_id} for user {user_id}: "
        f"correct={result.is_correct} completed={snapshot.cases_completed} streak={snapshot.current_streak}"
    )
    return SubmissionOutcome(progress=snapshot, milestones=milestones)
