"""API dependencies — DB sessions and session authentication."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_session
from app.models.session import Session
from app.services.session_service import SessionResolver

# ---------------------------------------------------------------------------
# Database dependency
# ---------------------------------------------------------------------------

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]

# ---------------------------------------------------------------------------
# Session authentication
# ---------------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=False)


def get_session_resolver(request: Request) -> SessionResolver:
    """The resolver configured on the application."""
    return request.app.state.session_resolver


async def get_current_session(
    request: Request,
    resolver: Annotated[SessionResolver, Depends(get_session_resolver)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)] = None,
) -> Session:
    """Authenticate an API request from a Bearer token or the session cookie.

    API routes bypass the page gate, so they answer 401 instead of redirecting.
    """
    if credentials is not None:
        session = resolver.session_from_token(credentials.credentials)
    else:
        session = (await resolver.resolve(request.cookies)).session

    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return session


CurrentSession = Annotated[Session, Depends(get_current_session)]


def get_profile_store(request: Request):
    """The profile store configured on the application."""
    return request.app.state.profile_store


ProfileStore = Annotated[object, Depends(get_profile_store)]
