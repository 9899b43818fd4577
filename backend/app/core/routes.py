"""Route table and path classification for the access gate.

The table is an immutable value handed to the access controller; changing
which pages are public, protected or admin-only is a configuration change,
not a code change.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from app.config import Settings

PASSTHROUGH_PREFIXES = ("/api/", "/_next/", "/static/")


class RouteKind(str, Enum):
    PUBLIC = "public"
    AUTH = "auth"
    PROTECTED = "protected"
    ADMIN = "admin"
    OTHER = "other"


@dataclass(frozen=True)
class RouteTable:
    """Ordered path-prefix lists used to classify page requests."""

    public: tuple[str, ...]
    auth: tuple[str, ...]
    protected: tuple[str, ...]
    admin: tuple[str, ...]
    onboarding: str = "/onboarding"
    landing: str = "/cases"
    login: str = "/login"

    @classmethod
    def build(
        cls,
        public: Iterable[str],
        auth: Iterable[str],
        protected: Iterable[str],
        admin: Iterable[str],
    ) -> "RouteTable":
        return cls(
            public=tuple(public),
            auth=tuple(auth),
            protected=tuple(protected),
            admin=tuple(admin),
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RouteTable":
        """Build the table from the configured route lists."""
        return cls.build(
            settings.public_routes,
            settings.auth_routes,
            settings.protected_routes,
            settings.admin_routes,
        )


DEFAULT_ROUTE_TABLE = RouteTable.build(
    public=("/", "/pricing", "/about", "/contact", "/terms", "/privacy"),
    auth=("/login", "/register", "/forgot-password"),
    protected=(
        "/cases",
        "/progress",
        "/assessments",
        "/specialty",
        "/achievements",
        "/settings",
        "/onboarding",
    ),
    admin=("/admin",),
)


def is_passthrough(path: str) -> bool:
    """True for API routes and static assets, which skip the gate entirely."""
    return path.startswith(PASSTHROUGH_PREFIXES) or "." in path


def matches_route(path: str, routes: Iterable[str]) -> bool:
    """Prefix match against ``routes``; the root entry only matches ``/`` exactly."""
    for route in routes:
        if route == "/":
            if path == "/":
                return True
        elif path.startswith(route):
            return True
    return False


def classify_route(path: str, table: RouteTable = DEFAULT_ROUTE_TABLE) -> RouteKind:
    """Return the access tier of ``path``. First matching list wins."""
    for kind, routes in (
        (RouteKind.PUBLIC, table.public),
        (RouteKind.AUTH, table.auth),
        (RouteKind.PROTECTED, table.protected),
        (RouteKind.ADMIN, table.admin),
    ):
        if matches_route(path, routes):
            return kind
    return RouteKind.OTHER
