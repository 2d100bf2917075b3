"""
Per-session listing browser: the state behind the listings page.

Holds immutable snapshots (listings, filters, page, comparison selection) and
replaces them wholesale on every change. Fetches are tagged with a generation
token so a slow response can never overwrite the result of a newer request.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

import requests

from staynest.client import ListingsClient, SavedSearchesClient, search_filters
from staynest.engine import (
    COMPARE_MINIMUM_NOTICE,
    ComparisonSet,
    Page,
    build_comparison_rows,
    filter_listings,
    query_listings,
    total_pages_for,
)
from staynest.models import ComparisonRow, FilterSpec, Listing, SavedSearch

LOG = logging.getLogger("browser")

LOAD_ERROR = "Failed to load listings"
ITEMS_PER_PAGE = 12

# recently viewed: how many are kept and how many the listings page shows
RECENTLY_VIEWED_KEPT = 20
RECENTLY_VIEWED_SHOWN = 6

# URL query parameter -> FilterSpec field
_URL_FILTERS = {
    "city": "city",
    "minRent": "min_rent",
    "maxRent": "max_rent",
    "gender": "gender",
    "type": "type",
    "q": "query",
    "sort": "sort",
}

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ComparisonView:
    listings: List[Listing]
    rows: List[ComparisonRow]
    notice: Optional[str] = None


@dataclass
class ListingBrowser:
    page_size: int = ITEMS_PER_PAGE
    listings: Tuple[Listing, ...] = ()
    filters: FilterSpec = field(default_factory=FilterSpec)
    page: int = 1
    comparison: ComparisonSet = field(default_factory=ComparisonSet)
    error: Optional[str] = None
    loading: bool = False
    recently_viewed: Tuple[Listing, ...] = ()
    _generation: int = 0

    @classmethod
    def from_params(cls, params: Mapping[str, str], page_size: int = ITEMS_PER_PAGE) -> "ListingBrowser":
        """Initial state from the listings page URL (filters and a shared compare link)."""
        values = {name: params[key] for key, name in _URL_FILTERS.items() if params.get(key)}
        values["verified"] = str(params.get("verified", "")).lower() in _TRUTHY
        return cls(
            page_size=page_size,
            filters=FilterSpec(**values),
            comparison=ComparisonSet.from_query(params.get("compare")),
        )

    # ---------- fetch lifecycle ----------

    def begin_fetch(self) -> int:
        self._generation += 1
        self.loading = True
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def receive(self, token: int, listings: List[Listing]) -> bool:
        """Apply a fetch result unless a newer request superseded it."""
        if not self.is_current(token):
            LOG.debug("discarding stale response %d (current %d)", token, self._generation)
            return False
        self.listings = tuple(listings)
        self.error = None
        self.loading = False
        self.page = 1
        return True

    def fail(self, token: int, message: str = LOAD_ERROR) -> bool:
        if not self.is_current(token):
            return False
        self.error = message
        self.loading = False
        return True

    def reload(self, client: ListingsClient) -> bool:
        token = self.begin_fetch()
        try:
            listings = client.fetch(self.filters)
        except (requests.RequestException, ValueError):
            # transport errors, HTTP errors and undecodable bodies alike
            LOG.exception("Error loading listings")
            return self.fail(token)
        return self.receive(token, listings)

    # ---------- filters & paging ----------

    def apply_filters(self, spec: FilterSpec) -> Page:
        self.filters = spec
        self.page = 1
        return self.result

    def update_filter(self, **changes) -> Page:
        return self.apply_filters(self.filters.model_copy(update=changes))

    def clear_filters(self) -> Page:
        return self.apply_filters(FilterSpec())

    def search(self, query: str) -> Page:
        return self.update_filter(query=query)

    def go_to_page(self, page: int) -> Page:
        total = total_pages_for(len(filter_listings(self.listings, self.filters)), self.page_size)
        self.page = min(max(1, page), total)
        return self.result

    @property
    def result(self) -> Page:
        return query_listings(self.listings, self.filters, self.page, self.page_size)

    # ---------- comparison ----------

    def toggle_compare(self, listing_id: str) -> Optional[str]:
        outcome = self.comparison.toggle(listing_id)
        self.comparison = outcome.selection
        return outcome.notice

    def clear_comparison(self) -> None:
        self.comparison = self.comparison.clear()

    def open_comparison(self) -> ComparisonView:
        selected = self.comparison.pick(self.listings)
        if len(selected) < 2:
            return ComparisonView(listings=selected, rows=[], notice=COMPARE_MINIMUM_NOTICE)
        return ComparisonView(listings=selected, rows=build_comparison_rows(selected))

    # ---------- recently viewed ----------

    def record_view(self, listing: Listing) -> None:
        """Most recent first, one entry per listing id."""
        rest = tuple(l for l in self.recently_viewed if l.id != listing.id)
        self.recently_viewed = ((listing,) + rest)[:RECENTLY_VIEWED_KEPT]

    def recent_listings(self, limit: int = RECENTLY_VIEWED_SHOWN) -> List[Listing]:
        return list(self.recently_viewed[:limit])

    def clear_history(self) -> None:
        self.recently_viewed = ()

    # ---------- saved searches ----------

    def save_search(self, client: SavedSearchesClient, token: str, name: str,
                    alerts_enabled: bool = False) -> SavedSearch:
        search = SavedSearch(name=name, filters=search_filters(self.filters), alerts_enabled=alerts_enabled)
        return client.create(search, token)

    def apply_saved_search(self, search: SavedSearch) -> Page:
        # free-text query is not part of a saved search
        return self.apply_filters(search.to_filter_spec())
