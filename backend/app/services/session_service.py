"""Session resolution from the signed session cookie.

The hosted auth provider issues HS256 JWTs and stores them in an HTTP-only
cookie. Resolving a session also rotates tokens that are close to expiry,
so the refreshed cookie has to be attached to whatever response the request
ends in, redirects included.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from starlette.responses import Response

from app.config import Settings
from app.models.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionCookie:
    """A cookie to set (or clear, when ``max_age`` is 0) on the response."""

    name: str
    value: str
    max_age: int
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"

    def apply(self, response: Response) -> None:
        response.set_cookie(
            self.name,
            self.value,
            max_age=self.max_age,
            path=self.path,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )


def cookie_headers(cookies: tuple[SessionCookie, ...]) -> list[tuple[bytes, bytes]]:
    """Render cookies as raw ``set-cookie`` header pairs."""
    scratch = Response()
    for cookie in cookies:
        cookie.apply(scratch)
    return [(k, v) for k, v in scratch.raw_headers if k == b"set-cookie"]


@dataclass(frozen=True)
class SessionResolution:
    session: Session | None
    cookies: tuple[SessionCookie, ...] = field(default_factory=tuple)


class SessionResolver:
    """Validates session tokens and rotates them before they expire."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        cookie_name: str = "arka_session",
        expiration_minutes: int = 60,
        refresh_minutes: int = 10,
        cookie_secure: bool = False,
    ) -> None:
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.cookie_name = cookie_name
        self.expiration = timedelta(minutes=expiration_minutes)
        self.refresh_window = timedelta(minutes=refresh_minutes)
        self.cookie_secure = cookie_secure

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionResolver":
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            cookie_name=settings.session_cookie_name,
            expiration_minutes=settings.jwt_expiration_minutes,
            refresh_minutes=settings.session_refresh_minutes,
            cookie_secure=settings.session_cookie_secure,
        )

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def create_access_token(
        self,
        user_id: str,
        email: str,
        user_metadata: dict[str, Any] | None = None,
        expires_in: timedelta | None = None,
    ) -> str:
        """Create a signed session token."""
        expire = datetime.now(UTC) + (expires_in if expires_in is not None else self.expiration)
        payload = {
            "sub": user_id,
            "email": email,
            "user_metadata": user_metadata or {},
            "exp": expire,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Decode and validate a token. Raises ``JWTError`` on failure."""
        payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        if payload.get("sub") is None:
            raise JWTError("Missing subject")
        return payload

    def session_from_token(self, token: str) -> Session | None:
        """Return the session for a bearer token, or None if it is not valid."""
        try:
            payload = self.decode(token)
        except JWTError:
            return None
        return _session_from_payload(payload)

    # ------------------------------------------------------------------
    # Cookies
    # ------------------------------------------------------------------

    def session_cookie(self, token: str) -> SessionCookie:
        return SessionCookie(
            name=self.cookie_name,
            value=token,
            max_age=int(self.expiration.total_seconds()),
            secure=self.cookie_secure,
        )

    def clear_cookie(self) -> SessionCookie:
        return SessionCookie(name=self.cookie_name, value="", max_age=0, secure=self.cookie_secure)

    async def resolve(self, cookies: Mapping[str, str]) -> SessionResolution:
        """Resolve the request's session; never raises.

        Any failure is treated as an anonymous request.
        """
        token = cookies.get(self.cookie_name)
        if not token:
            return SessionResolution(session=None)

        try:
            payload = self.decode(token)
        except ExpiredSignatureError:
            logger.info("Session token expired, clearing cookie")
            return SessionResolution(session=None, cookies=(self.clear_cookie(),))
        except JWTError as e:
            logger.warning(f"Invalid session token: {e}")
            return SessionResolution(session=None, cookies=(self.clear_cookie(),))
        except Exception as e:
            logger.warning(f"Session resolution failed, treating request as anonymous: {e}")
            return SessionResolution(session=None)

        session = _session_from_payload(payload)
        exp = payload.get("exp")
        if exp is None:
            return SessionResolution(session=session)
        expires_at = datetime.fromtimestamp(exp, UTC)
        if expires_at - datetime.now(UTC) > self.refresh_window:
            return SessionResolution(session=session)

        rotated = self.create_access_token(
            session.user_id, session.email, dict(session.user_metadata),
        )
        logger.debug(f"Rotated session token for user {session.user_id}")
        return SessionResolution(session=session, cookies=(self.session_cookie(rotated),))


def _session_from_payload(payload: dict) -> Session:
    return Session(
        user_id=str(payload["sub"]),
        email=payload.get("email") or "",
        user_metadata=payload.get("user_metadata") or {},
    )
