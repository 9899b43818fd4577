"""Tests for route classification."""

import pytest

from app.config import Settings
from app.core.routes import DEFAULT_ROUTE_TABLE, RouteKind, RouteTable, classify_route, is_passthrough, matches_route


@pytest.mark.parametrize(
    "path",
    ["/api/v1/progress", "/_next/static/chunk.js", "/static/app.css", "/favicon.ico", "/images/logo.png"],
)
def test_passthrough_paths(path):
    assert is_passthrough(path)


@pytest.mark.parametrize("path", ["/", "/cases", "/admin/users", "/api"])
def test_page_paths_are_not_passthrough(path):
    assert not is_passthrough(path)


def test_root_matches_only_exactly():
    assert matches_route("/", ["/"])
    assert not matches_route("/anything", ["/"])


def test_prefix_match_is_plain_string_prefix():
    assert matches_route("/cases/chest-pain-001", ["/cases"])
    assert matches_route("/cases-archive", ["/cases"])
    assert not matches_route("/case", ["/cases"])


@pytest.mark.parametrize(
    "path,kind",
    [
        ("/", RouteKind.PUBLIC),
        ("/pricing", RouteKind.PUBLIC),
        ("/login", RouteKind.AUTH),
        ("/forgot-password", RouteKind.AUTH),
        ("/cases", RouteKind.PROTECTED),
        ("/specialty/em", RouteKind.PROTECTED),
        ("/onboarding", RouteKind.PROTECTED),
        ("/admin", RouteKind.ADMIN),
        ("/admin/cases/abc/edit", RouteKind.ADMIN),
        ("/dashboard", RouteKind.OTHER),
        ("/profile", RouteKind.OTHER),
    ],
)
def test_classify_default_table(path, kind):
    assert classify_route(path, DEFAULT_ROUTE_TABLE) is kind


def test_first_matching_list_wins():
    table = RouteTable.build(public=["/docs"], auth=[], protected=["/docs"], admin=["/docs"])
    assert classify_route("/docs/intro", table) is RouteKind.PUBLIC


def test_table_from_settings():
    config = Settings(protected_routes=["/dashboard"], admin_routes=["/ops"])
    table = RouteTable.from_settings(config)

    assert classify_route("/dashboard", table) is RouteKind.PROTECTED
    assert classify_route("/ops/users", table) is RouteKind.ADMIN
    assert classify_route("/cases", table) is RouteKind.OTHER


def test_table_is_immutable():
    with pytest.raises(AttributeError):
        DEFAULT_ROUTE_TABLE.admin = ("/other",)
