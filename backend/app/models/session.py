"""Session and access-profile models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class UserRole(str, Enum):
    STUDENT = "student"
    RESIDENT = "resident"
    ATTENDING = "attending"
    ADMIN = "admin"


class Session(BaseModel):
    """One authenticated principal for the duration of a request."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: str = ""
    user_metadata: dict[str, Any] = {}

    @property
    def metadata_role(self) -> str:
        role = self.user_metadata.get("role")
        # metadata is user-editable; anything but a non-empty string is ignored
        if isinstance(role, str) and role:
            return role
        return UserRole.STUDENT.value

    @property
    def metadata_onboarding_completed(self) -> bool:
        return self.user_metadata.get("onboarding_completed") is True


class ProfileSource(str, Enum):
    STORE = "store"
    SESSION = "session"


class AccessProfile(BaseModel):
    """Role and onboarding state used to gate routes."""

    model_config = ConfigDict(frozen=True)

    role: str = UserRole.STUDENT.value
    onboarding_completed: bool = False
    source: ProfileSource = ProfileSource.SESSION

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class SessionInfo(BaseModel):
    """Session summary returned by the API."""

    user_id: str
    email: str
    role: str
    onboarding_completed: bool
    profile_source: ProfileSource
