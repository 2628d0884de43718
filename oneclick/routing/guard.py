"""Route table and the session/role guard.

The guard is a pure function of the requested path and the three guard
conditions, so it can be re-evaluated on every navigation and every
session or role change.
"""

from oneclick.schemas.routes import DecisionKind, GuardState, RouteDecision
from oneclick.schemas.users import Role

AUTH_PATH = "/auth"
ROLE_SELECTION_PATH = "/role-selection"
ROOT_PATH = "/"

# Path pattern -> page name. ``{id}`` matches exactly one segment.
ROUTES: dict[str, str] = {
    AUTH_PATH: "auth",
    ROLE_SELECTION_PATH: "role_selection",
    ROOT_PATH: "root",
    "/client-dashboard": "client_dashboard",
    "/volunteer-dashboard": "volunteer_dashboard",
    "/volunteer-profile": "volunteer_profile_editor",
    "/volunteer/{id}": "volunteer_detail",
    "/my-bookings": "my_bookings",
    "/book/{id}": "booking",
    "/volunteer-bookings": "volunteer_bookings",
    "/profile": "profile",
    "/contact": "contact",
    "/volunteer-analytics": "volunteer_analytics",
    "/client-reviews": "client_reviews",
}

DASHBOARDS: dict[Role, str] = {
    Role.VOLUNTEER: "/volunteer-dashboard",
    Role.CLIENT: "/client-dashboard",
}


def dashboard_for(role: Role) -> str:
    """Landing page for a role."""
    return DASHBOARDS[role]


def normalize_path(path: str) -> str:
    """Drop query/fragment and trailing slashes; always start with ``/``."""
    path = path.split("?", 1)[0].split("#", 1)[0].strip() or ROOT_PATH
    if not path.startswith("/"):
        path = f"/{path}"
    return path.rstrip("/") or ROOT_PATH


def match_route(path: str) -> str | None:
    """Page name for ``path``, or None when no route matches."""
    segments = normalize_path(path).strip("/").split("/")
    for pattern, page in ROUTES.items():
        pattern_segments = pattern.strip("/").split("/")
        if len(pattern_segments) != len(segments):
            continue
        if all((p == "{id}" and bool(s)) or p == s for p, s in zip(pattern_segments, segments)):
            return page
    return None


def resolve_route(path: str, state: GuardState) -> RouteDecision:
    """
    Decide what a navigation to ``path`` shows.

    - Session not loaded yet: a loading placeholder for every path.
    - Unknown path: the not-found page.
    - Signed out: only ``/auth`` renders; everything else redirects there.
    - Signed in without a role: only role selection renders.
    - Signed in with a role: everything renders, except ``/``, ``/auth`` and
      role selection, which redirect to the role's dashboard.
    """
    path = normalize_path(path)

    if not state.session_loaded:
        return RouteDecision(kind=DecisionKind.LOADING, path=path)

    page = match_route(path)
    if page is None:
        return RouteDecision(kind=DecisionKind.NOT_FOUND, path=path)

    if not state.signed_in:
        if path == AUTH_PATH:
            return RouteDecision(kind=DecisionKind.RENDER, path=path, page=page)
        return RouteDecision(kind=DecisionKind.REDIRECT, path=path, target=AUTH_PATH)

    if state.role is None:
        if path == ROLE_SELECTION_PATH:
            return RouteDecision(kind=DecisionKind.RENDER, path=path, page=page)
        return RouteDecision(kind=DecisionKind.REDIRECT, path=path, target=ROLE_SELECTION_PATH)

    if path in (ROOT_PATH, AUTH_PATH, ROLE_SELECTION_PATH):
        return RouteDecision(kind=DecisionKind.REDIRECT, path=path, target=dashboard_for(state.role))

    return RouteDecision(kind=DecisionKind.RENDER, path=path, page=page)
