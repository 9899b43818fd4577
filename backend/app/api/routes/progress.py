"""Progress tracking endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from app.api.dependencies import CurrentSession, DbSession
from app.db.exceptions import ConcurrentUpdateError, RecordNotFoundError
from app.db.repositories import progress_repo
from app.models.envelope import success_response
from app.models.progress import SubmissionResult
from app.services import progress_service

router = APIRouter()


@router.get("")
async def get_progress(session: CurrentSession, db: DbSession) -> dict:
    """Get the user's progress snapshot and current milestones."""
    overview = await progress_service.get_progress_overview(db, session.user_id)
    return success_response(overview.model_dump(by_alias=True))


@router.post("/submissions")
async def submit_case(body: SubmissionResult, session: CurrentSession, db: DbSession) -> dict:
    """Record a case submission and return the updated snapshot."""
    try:
        outcome = await progress_service.submit_case(db, session.user_id, body)
    except RecordNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        ) from exc
    except ConcurrentUpdateError as exc:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Progress was updated by another submission, reload and retry",
        ) from exc
    return success_response(outcome.model_dump(by_alias=True))


@router.get("/attempts")
async def get_attempts(
    session: CurrentSession,
    db: DbSession,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """Most recent case attempts."""
    attempts = await progress_repo.get_recent_attempts(db, session.user_id, limit=limit)
    return success_response({
        "attempts": [
            {
                "caseId": a.case_id,
                "caseCategory": a.category,
                "specialtyTags": a.specialty_tags,
                "isCorrect": a.is_correct,
                "score": a.score,
                "timeSpent": a.time_spent,
                "hintsUsed": a.hints_used,
                "createdAt": a.created_at.isoformat(),
            }
            for a in attempts
        ]
    })
