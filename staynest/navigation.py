"""
Declarative route table for the page surface.

Each entry binds a path pattern (``:name`` captures one segment) to a view,
an optional guard, or a permanent redirect. Lookup is first-match, so static
paths are listed ahead of their dynamic siblings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from staynest.access import GateOutcome, RequiredRole, check_access
from staynest.models import SessionState

ADMIN_TABS = ("overview", "users", "listings", "featured", "testimonials", "flags", "logs")


@dataclass(frozen=True)
class Route:
    pattern: str
    view: Optional[str] = None
    guarded: bool = False
    required_role: RequiredRole = None
    redirect_to: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def segments(self) -> List[str]:
        return _split(self.pattern)


def public(pattern: str, view: str) -> Route:
    return Route(pattern, view)


def guarded(pattern: str, view: str, role: RequiredRole = None, **params: str) -> Route:
    return Route(pattern, view, guarded=True, required_role=role, params=params)


def legacy(pattern: str, target: str) -> Route:
    return Route(pattern, redirect_to=target)


ROUTES: Tuple[Route, ...] = (
    public("/", "Home"),
    public("/login", "Login"),
    public("/register", "Register"),
    public("/listings", "Listings"),
    public("/listing/:id", "ListingDetail"),

    guarded("/dashboard/student", "StudentDashboard", "student"),
    guarded("/dashboard/student/:tab", "StudentDashboard", "student"),
    guarded("/my-bookings", "StudentBookings", "student"),

    guarded("/dashboard/owner/create-listing", "CreateListing", "owner"),
    guarded("/dashboard/owner/edit-listing/:id", "EditListing", "owner"),
    guarded("/dashboard/owner", "OwnerDashboard", "owner"),
    guarded("/dashboard/owner/:tab", "OwnerDashboard", "owner"),

    guarded("/dashboard/admin", "AdminDashboard", "admin"),
    *(guarded(f"/dashboard/admin/{tab}", "AdminDashboard", "admin", tab=tab) for tab in ADMIN_TABS),

    guarded("/profile", "Profile"),
    guarded("/profile/modern", "ProfileModern"),

    legacy("/student/dashboard", "/dashboard/student"),
    legacy("/owner/dashboard", "/dashboard/owner"),
    legacy("/owner/create-listing", "/dashboard/owner/create-listing"),
    legacy("/admin/dashboard", "/dashboard/admin"),
)

NOT_FOUND_VIEW = "NotFound"
LOADING_VIEW = "Loading"


def _split(path: str) -> List[str]:
    return [s for s in path.split("?", 1)[0].split("#", 1)[0].split("/") if s]


def _match(route: Route, segments: List[str]) -> Optional[Dict[str, str]]:
    pattern = route.segments
    if len(pattern) != len(segments):
        return None
    captured: Dict[str, str] = {}
    for expected, actual in zip(pattern, segments):
        if expected.startswith(":"):
            captured[expected[1:]] = actual
        elif expected != actual:
            return None
    return captured


def resolve(path: str, routes: Tuple[Route, ...] = ROUTES) -> Optional[Tuple[Route, Dict[str, str]]]:
    """First route matching `path` and the captured params, or None."""
    segments = _split(path)
    for route in routes:
        captured = _match(route, segments)
        if captured is not None:
            return route, {**route.params, **captured}
    return None


class NavigationKind(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    LOADING = "loading"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Navigation:
    kind: NavigationKind
    view: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)
    location: Optional[str] = None
    permanent: bool = False


def navigate(path: str, session: SessionState, routes: Tuple[Route, ...] = ROUTES) -> Navigation:
    """Decide what `path` produces for `session`; guarded views are gated before they render."""
    match = resolve(path, routes)
    if match is None:
        return Navigation(NavigationKind.NOT_FOUND, view=NOT_FOUND_VIEW)

    route, params = match
    if route.redirect_to:
        return Navigation(NavigationKind.REDIRECT, location=route.redirect_to, permanent=True)

    if route.guarded:
        decision = check_access(session, route.required_role)
        if decision.outcome is GateOutcome.LOADING:
            return Navigation(NavigationKind.LOADING, view=LOADING_VIEW)
        if decision.outcome is GateOutcome.REDIRECT:
            return Navigation(NavigationKind.REDIRECT, location=decision.location)

    return Navigation(NavigationKind.RENDER, view=route.view, params=params)
