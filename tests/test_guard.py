"""Tests for the route guard."""

import pytest

from oneclick.routing.guard import match_route, normalize_path, resolve_route
from oneclick.schemas.routes import DecisionKind, GuardState
from oneclick.schemas.users import Role

SIGNED_OUT = GuardState(session_loaded=True, signed_in=False)
NO_ROLE = GuardState(session_loaded=True, signed_in=True)
VOLUNTEER = GuardState(session_loaded=True, signed_in=True, role=Role.VOLUNTEER)
CLIENT = GuardState(session_loaded=True, signed_in=True, role=Role.CLIENT)


def test_loading_before_session_known():
    decision = resolve_route("/client-dashboard", GuardState(session_loaded=False, signed_in=False))
    assert decision.kind is DecisionKind.LOADING


@pytest.mark.parametrize("path", ["/client-dashboard", "/", "/role-selection", "/book/abc"])
def test_signed_out_redirects_to_auth(path):
    decision = resolve_route(path, SIGNED_OUT)
    assert decision.kind is DecisionKind.REDIRECT
    assert decision.target == "/auth"


def test_signed_out_renders_auth():
    assert resolve_route("/auth", SIGNED_OUT).kind is DecisionKind.RENDER


def test_no_role_redirects_to_role_selection():
    decision = resolve_route("/my-bookings", NO_ROLE)
    assert decision.kind is DecisionKind.REDIRECT
    assert decision.target == "/role-selection"


def test_no_role_renders_role_selection():
    assert resolve_route("/role-selection", NO_ROLE).kind is DecisionKind.RENDER


@pytest.mark.parametrize(
    ("state", "dashboard"),
    [(VOLUNTEER, "/volunteer-dashboard"), (CLIENT, "/client-dashboard")],
)
@pytest.mark.parametrize("path", ["/", "/auth", "/role-selection"])
def test_entry_paths_redirect_to_role_dashboard(state, dashboard, path):
    decision = resolve_route(path, state)
    assert decision.kind is DecisionKind.REDIRECT
    assert decision.target == dashboard


def test_role_does_not_restrict_pages():
    decision = resolve_route("/volunteer-dashboard", CLIENT)
    assert decision.kind is DecisionKind.RENDER
    assert decision.page == "volunteer_dashboard"


def test_parameterised_route_matches_one_segment():
    assert match_route("/volunteer/123") == "volunteer_detail"
    assert match_route("/volunteer/123/extra") is None
    assert match_route("/volunteer/") is None


def test_unknown_path_is_not_found():
    assert resolve_route("/nope", CLIENT).kind is DecisionKind.NOT_FOUND
    assert resolve_route("/nope", SIGNED_OUT).kind is DecisionKind.NOT_FOUND


def test_normalize_path():
    assert normalize_path("my-bookings/?x=1") == "/my-bookings"
    assert normalize_path("") == "/"
