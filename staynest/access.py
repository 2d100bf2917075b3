"""
Role-based access gate for guarded views.

The decision is made from the SessionState passed in by the caller on every
navigation; nothing is cached between calls.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Collection, FrozenSet, Optional, Union

from staynest.models import SessionState

LOG = logging.getLogger("access")

ROLES = ("student", "owner", "admin")

LOGIN_PATH = "/login"
HOME_PATH = "/"

ROLE_DASHBOARDS = {
    "student": "/dashboard/student",
    "owner":   "/dashboard/owner",
    "admin":   "/dashboard/admin",
}

RequiredRole = Optional[Union[str, Collection[str]]]


class GateOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    ALLOW = "allow"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOW


def normalize_roles(required_role: RequiredRole) -> Optional[FrozenSet[str]]:
    """None means any authenticated user; an empty collection admits nobody."""
    if required_role is None:
        return None
    if isinstance(required_role, str):
        return frozenset([required_role]) if required_role else None
    return frozenset(required_role)


def dashboard_for(role: Optional[str]) -> str:
    return ROLE_DASHBOARDS.get(role or "", HOME_PATH)


def check_access(session: SessionState, required_role: RequiredRole = None) -> GateDecision:
    if session.loading:
        return GateDecision(GateOutcome.LOADING)

    if not session.is_authenticated:
        return GateDecision(GateOutcome.REDIRECT, LOGIN_PATH)

    allowed = normalize_roles(required_role)
    role = session.user.role if session.user else None
    if allowed is not None and role not in allowed:
        target = dashboard_for(role)
        LOG.info("role %r not in %s; redirecting to %s", role, sorted(allowed), target)
        return GateDecision(GateOutcome.REDIRECT, target)

    return GateDecision(GateOutcome.ALLOW)
