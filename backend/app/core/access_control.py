"""Route access control.

Decides, for every page request, whether it is served or redirected:

  - unauthenticated users on protected or admin pages → /login?redirect=<path>
  - authenticated users on login/register pages → /cases (or /onboarding)
  - non-admin users on admin pages → /cases
  - users who have not finished onboarding → /onboarding (except on it)

Paths that match none of the route lists are allowed regardless of auth state.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlencode

from app.core.routes import DEFAULT_ROUTE_TABLE, RouteKind, RouteTable, classify_route, is_passthrough
from app.models.session import AccessProfile, Session
from app.services.profile_service import resolve_access_profile
from app.services.session_service import SessionCookie

logger = logging.getLogger(__name__)


class DecisionKind(str, Enum):
    PASS_THROUGH = "pass_through"
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_LANDING = "redirect_landing"
    REDIRECT_ONBOARDING = "redirect_onboarding"


@dataclass(frozen=True)
class AccessDecision:
    kind: DecisionKind
    location: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.location is not None


PASS_THROUGH = AccessDecision(DecisionKind.PASS_THROUGH)
ALLOW = AccessDecision(DecisionKind.ALLOW)


def login_redirect(path: str, table: RouteTable) -> AccessDecision:
    return AccessDecision(
        DecisionKind.REDIRECT_LOGIN,
        f"{table.login}?{urlencode({'redirect': path})}",
    )


def decide_access(
    path: str,
    session: Session | None,
    profile: AccessProfile | None,
    table: RouteTable = DEFAULT_ROUTE_TABLE,
) -> AccessDecision:
    """Pure access decision. Rules are evaluated in order; first match wins."""
    if is_passthrough(path):
        return PASS_THROUGH

    kind = classify_route(path, table)
    if profile is None:
        profile = AccessProfile()

    if session is None:
        if kind in (RouteKind.PROTECTED, RouteKind.ADMIN):
            return login_redirect(path, table)
        return ALLOW

    if kind is RouteKind.AUTH:
        if not profile.onboarding_completed:
            return AccessDecision(DecisionKind.REDIRECT_ONBOARDING, table.onboarding)
        return AccessDecision(DecisionKind.REDIRECT_LANDING, table.landing)

    if kind is RouteKind.ADMIN and not profile.is_admin:
        return AccessDecision(DecisionKind.REDIRECT_LANDING, table.landing)

    if (
        kind is RouteKind.PROTECTED
        and not path.startswith(table.onboarding)
        and not profile.onboarding_completed
    ):
        return AccessDecision(DecisionKind.REDIRECT_ONBOARDING, table.onboarding)

    return ALLOW


@dataclass(frozen=True)
class AccessOutcome:
    decision: AccessDecision
    cookies: tuple[SessionCookie, ...] = field(default_factory=tuple)
    session: Session | None = None
    profile: AccessProfile | None = None


class AccessController:
    """Resolves the session and profile for a request, then decides access.

    ``session_resolver`` must provide ``async resolve(cookies)`` and
    ``profile_store`` must provide ``async fetch_access_profile(user_id)``.
    """

    def __init__(self, table: RouteTable, session_resolver, profile_store) -> None:
        self.table = table
        self.session_resolver = session_resolver
        self.profile_store = profile_store

    async def evaluate(self, path: str, cookies: Mapping[str, str]) -> AccessOutcome:
        if is_passthrough(path):
            return AccessOutcome(PASS_THROUGH)

        try:
            resolution = await self.session_resolver.resolve(cookies)
            session, refreshed = resolution.session, resolution.cookies
        except Exception as e:
            logger.warning(f"Session lookup failed for {path}, treating as anonymous: {e}")
            session, refreshed = None, ()

        profile = None
        if session is not None:
            try:
                profile = await resolve_access_profile(self.profile_store, session)
            except Exception as e:
                logger.warning(f"Access profile unavailable for user {session.user_id}, using defaults: {e}")
                profile = AccessProfile()

        decision = decide_access(path, session, profile, self.table)
        if decision.is_redirect:
            logger.debug(f"Redirecting {path} → {decision.location} ({decision.kind.value})")
        return AccessOutcome(decision, tuple(refreshed), session, profile)
