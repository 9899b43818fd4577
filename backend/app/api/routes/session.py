"""Session endpoints — who am I, and onboarding completion."""

from fastapi import APIRouter, HTTPException, status

from app.api.dependencies import CurrentSession, DbSession, ProfileStore
from app.db.exceptions import RecordNotFoundError
from app.db.repositories import profile_repo
from app.models.envelope import success_response
from app.models.session import SessionInfo
from app.services.profile_service import resolve_access_profile

router = APIRouter()


@router.get("")
async def get_session_info(session: CurrentSession, store: ProfileStore) -> dict:
    """Return the current session with its resolved role and onboarding state."""
    profile = await resolve_access_profile(store, session)
    info = SessionInfo(
        user_id=session.user_id,
        email=session.email,
        role=profile.role,
        onboarding_completed=profile.onboarding_completed,
        profile_source=profile.source,
    )
    return success_response(info.model_dump(mode="json"))


@router.post("/onboarding")
async def complete_onboarding(session: CurrentSession, db: DbSession) -> dict:
    """Mark onboarding as finished so protected pages stop redirecting."""
    try:
        profile = await profile_repo.set_onboarding_completed(db, session.user_id)
    except RecordNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        ) from exc
    await db.commit()
    return success_response({
        "user_id": profile.id,
        "onboarding_completed": profile.onboarding_completed,
    })
