# staynest/client.py
"""
Thin clients for the remote StayNest REST API (listings, saved searches, auth).
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from staynest.engine import is_present, parse_bound
from staynest.models import FilterSpec, Listing, SavedSearch, SearchFilters, SessionState, SessionUser

LOG = logging.getLogger("client")

DEFAULT_TIMEOUT = 15


def _whole(v: float) -> Any:
    return int(v) if float(v).is_integer() else v


def listing_params(spec: FilterSpec) -> Dict[str, Any]:
    """Query params forwarded to GET /listings (server-side filtering is best-effort)."""
    params: Dict[str, Any] = {}
    if is_present(spec.city):
        params["city"] = spec.city
    if (v := parse_bound(spec.min_rent)) is not None:
        params["minRent"] = _whole(v)
    if (v := parse_bound(spec.max_rent)) is not None:
        params["maxRent"] = _whole(v)
    if is_present(spec.gender):
        params["genderAllowed"] = spec.gender
    if is_present(spec.type):
        params["type"] = spec.type
    return params


def search_filters(spec: FilterSpec) -> SearchFilters:
    """FilterSpec -> the shape stored with a saved search; unparseable bounds are dropped."""
    return SearchFilters(
        city=spec.city if is_present(spec.city) else None,
        min_rent=parse_bound(spec.min_rent),
        max_rent=parse_bound(spec.max_rent),
        gender_allowed=spec.gender if is_present(spec.gender) else None,
        type=spec.type if is_present(spec.type) else None,
        verified=spec.verified,
        sort=spec.sort,
    )


def _auth(token: Optional[str]) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


class _ApiClient:
    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _json(self, resp) -> Dict[str, Any]:
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            LOG.warning("Unexpected %s response body; ignoring it", type(data).__name__)
            return {}
        return data


class ListingsClient(_ApiClient):
    def fetch(self, spec: Optional[FilterSpec] = None) -> List[Listing]:
        """
        GET /listings. Records that fail validation are logged and skipped.
        """
        params = listing_params(spec or FilterSpec())
        resp = self.http.get(f"{self.base_url}/listings", params=params, timeout=self.timeout)
        rows = self._json(resp).get("listings") or []
        LOG.debug("fetched %d listings with %s", len(rows), params)

        listings = []
        for row in rows:
            try:
                listings.append(Listing.model_validate(row))
            except ValidationError as e:
                LOG.warning("Skipping invalid listing %r: %s", row.get("_id") if isinstance(row, dict) else row,
                            e.errors()[0]["msg"])
        return listings

    def create(self, payload: Dict[str, Any], token: str) -> Listing:
        resp = self.http.post(f"{self.base_url}/listings", json=payload,
                              headers=_auth(token), timeout=self.timeout)
        return Listing.model_validate(self._json(resp).get("listing"))

    def update(self, listing_id: str, payload: Dict[str, Any], token: str) -> Listing:
        resp = self.http.put(f"{self.base_url}/listings/{listing_id}", json=payload,
                             headers=_auth(token), timeout=self.timeout)
        return Listing.model_validate(self._json(resp).get("listing"))


class SavedSearchesClient(_ApiClient):
    """CRUD over /saved-searches; every call needs the owner's token."""

    def fetch(self, token: str) -> List[SavedSearch]:
        resp = self.http.get(f"{self.base_url}/saved-searches", headers=_auth(token), timeout=self.timeout)
        return [SavedSearch.model_validate(s) for s in self._json(resp).get("searches") or []]

    def create(self, search: SavedSearch, token: str) -> SavedSearch:
        resp = self.http.post(
            f"{self.base_url}/saved-searches",
            json=search.model_dump(mode="json", by_alias=True, exclude={"id", "created_at"}),
            headers=_auth(token),
            timeout=self.timeout,
        )
        return SavedSearch.model_validate(self._json(resp).get("savedSearch"))

    def update(self, search: SavedSearch, token: str) -> SavedSearch:
        resp = self.http.put(
            f"{self.base_url}/saved-searches/{search.id}",
            json=search.model_dump(mode="json", by_alias=True, exclude={"id", "created_at"}),
            headers=_auth(token),
            timeout=self.timeout,
        )
        return SavedSearch.model_validate(self._json(resp).get("savedSearch"))

    def delete(self, search_id: str, token: str) -> None:
        resp = self.http.delete(f"{self.base_url}/saved-searches/{search_id}",
                                headers=_auth(token), timeout=self.timeout)
        resp.raise_for_status()


class AuthClient(_ApiClient):
    def current_session(self, token: Optional[str]) -> SessionState:
        """
        Resolve a bearer token into a SessionState.
        Rejected tokens and transport failures both end up signed out.
        """
        if not token:
            return SessionState()
        try:
            resp = self.http.get(
                f"{self.base_url}/auth/me",
                headers=_auth(token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            LOG.warning("Fetch user failed (%s); treating session as signed out", e)
            return SessionState()

        if resp.status_code in (401, 403):
            LOG.info("Token rejected by auth service (%s)", resp.status_code)
            return SessionState()
        try:
            resp.raise_for_status()
            payload = resp.json() or {}
        except (requests.RequestException, ValueError) as e:
            LOG.warning("Unusable /auth/me response (%s); treating session as signed out", e)
            return SessionState()

        user = payload.get("user") if isinstance(payload, dict) else None
        if not user:
            return SessionState()
        return SessionState(is_authenticated=True, user=SessionUser.model_validate(user))
