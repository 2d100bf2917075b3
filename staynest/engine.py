"""
Listing query engine: filter -> sort -> paginate over an in-memory listing snapshot,
plus the bounded comparison set and its side-by-side rows.

Every function here is pure: listings are never mutated, results are new lists,
and malformed filter input is normalized away instead of raised.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from staynest.models import ComparisonRow, FilterSpec, Listing

COMPARE_LIMIT = 3
COMPARE_LIMIT_NOTICE = "You can compare maximum 3 listings"
COMPARE_MINIMUM_NOTICE = "Select at least 2 listings to compare"

DEFAULT_SORT = "newest"
SORT_KEYS = ("newest", "price-low", "price-high", "rating", "popular")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


# ---------- Filtering ----------

def parse_bound(value: Any) -> Optional[float]:
    """Numeric rent bound, or None when the value cannot be evaluated."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def filter_listings(listings: Iterable[Listing], spec: FilterSpec) -> List[Listing]:
    """AND-combine every constraint present in `spec`; absent fields do not constrain."""
    result = list(listings)

    if (lo := parse_bound(spec.min_rent)) is not None:
        result = [l for l in result if l.rent >= lo]
    if (hi := parse_bound(spec.max_rent)) is not None:
        result = [l for l in result if l.rent <= hi]
    if is_present(spec.city):
        result = [l for l in result if l.city == spec.city]
    if is_present(spec.gender):
        result = [l for l in result if l.gender_allowed in (spec.gender, "both")]
    if is_present(spec.type):
        result = [l for l in result if l.type == spec.type]
    if spec.verified:
        result = [l for l in result if l.verified]

    needle = (spec.query or "").strip().lower()
    if needle:
        result = [
            l for l in result
            if any(needle in (field or "").lower() for field in (l.title, l.address, l.city))
        ]
    return result


# ---------- Sorting ----------

_SORTS: dict = {
    "price-low":  (lambda l: l.rent, False),
    "price-high": (lambda l: l.rent, True),
    "rating":     (lambda l: l.average_rating or 0, True),
    "popular":    (lambda l: l.views or 0, True),
    "newest":     (lambda l: l.created_at or _OLDEST, True),
}


def sort_listings(listings: Iterable[Listing], sort_key: Optional[str]) -> List[Listing]:
    """Stable sort; unknown keys fall back to newest-first."""
    key, descending = _SORTS.get(sort_key or DEFAULT_SORT, _SORTS[DEFAULT_SORT])
    # sorted(reverse=True) keeps equal elements in input order
    return sorted(listings, key=key, reverse=descending)


# ---------- Pagination ----------

@dataclass(frozen=True)
class Page:
    items: List[Listing]
    page: int
    page_size: int
    total: int
    total_pages: int


def total_pages_for(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / max(1, page_size)))


def paginate(items: Sequence[Listing], page: int, page_size: int) -> Page:
    size = max(1, int(page_size))
    current = max(1, int(page))
    start = (current - 1) * size
    return Page(
        items=list(items[start:start + size]),
        page=current,
        page_size=size,
        total=len(items),
        total_pages=total_pages_for(len(items), size),
    )


def query_listings(
    listings: Iterable[Listing],
    spec: FilterSpec,
    page: int = 1,
    page_size: int = 12,
) -> Page:
    """filter -> sort -> paginate in one call."""
    matched = sort_listings(filter_listings(listings, spec), spec.sort)
    return paginate(matched, page, page_size)


# ---------- Comparison set ----------

class ComparisonToggle(NamedTuple):
    selection: "ComparisonSet"
    limit_reached: bool

    @property
    def notice(self) -> Optional[str]:
        return COMPARE_LIMIT_NOTICE if self.limit_reached else None


@dataclass(frozen=True)
class ComparisonSet:
    ids: Tuple[str, ...] = ()

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self):
        return iter(self.ids)

    @property
    def full(self) -> bool:
        return len(self.ids) >= COMPARE_LIMIT

    def toggle(self, listing_id: str) -> ComparisonToggle:
        if listing_id in self.ids:
            return ComparisonToggle(ComparisonSet(tuple(i for i in self.ids if i != listing_id)), False)
        if self.full:
            return ComparisonToggle(self, True)
        return ComparisonToggle(ComparisonSet(self.ids + (listing_id,)), False)

    def clear(self) -> "ComparisonSet":
        return ComparisonSet()

    def pick(self, listings: Iterable[Listing]) -> List[Listing]:
        """Selected listings present in `listings`, in selection order."""
        by_id = {l.id: l for l in listings}
        return [by_id[i] for i in self.ids if i in by_id]

    @classmethod
    def from_query(cls, raw: Optional[str]) -> "ComparisonSet":
        """Rehydrate from a shared `compare=a,b,c` link value."""
        ids: List[str] = []
        for part in (raw or "").split(","):
            part = part.strip()
            if part and part not in ids:
                ids.append(part)
        return cls(tuple(ids[:COMPARE_LIMIT]))

    def share_url(self, origin: str) -> str:
        return f"{origin.rstrip('/')}/listings?compare={','.join(self.ids)}"


def toggle_comparison(selection: ComparisonSet, listing_id: str) -> ComparisonToggle:
    return selection.toggle(listing_id)


# ---------- Comparison rows ----------

def _or_na(value: Any) -> str:
    return "N/A" if value in (None, "") else str(value)


def _capitalized(value: Optional[str]) -> str:
    return value[:1].upper() + value[1:] if value else "N/A"


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


COMPARISON_FEATURES: List[Tuple[str, str, Callable[[Listing], str]]] = [
    ("rent",        "Rent/Month", lambda l: f"৳{l.rent}"),
    ("city",        "City",       lambda l: _or_na(l.city)),
    ("type",        "Type",       lambda l: _capitalized(l.type)),
    ("rooms",       "Rooms",      lambda l: _or_na(l.number_of_rooms or None)),
    ("capacity",    "Capacity",   lambda l: _or_na(l.capacity or None)),
    ("gender",      "Gender",     lambda l: _capitalized(l.gender_allowed)),
    ("furnishing",  "Furnishing", lambda l: _or_na(l.furnishing)),
    ("verified",    "Verified",   lambda l: _yes_no(l.verified)),
    ("rating",      "Rating",     lambda l: f"{l.average_rating:.1f}/5" if l.average_rating else "N/A"),
    ("reviewCount", "Reviews",    lambda l: str(l.review_count)),
    ("views",       "Views",      lambda l: str(l.views)),
    ("featured",    "Featured",   lambda l: _yes_no(l.is_featured)),
]


def build_comparison_rows(listings: Sequence[Listing]) -> List[ComparisonRow]:
    """One row per feature; `is_different` only flags rows, it never reorders or filters."""
    if not listings:
        return []
    rows = []
    for feature, label, render in COMPARISON_FEATURES:
        values = [render(l) for l in listings]
        rows.append(ComparisonRow(
            feature=feature,
            label=label,
            values=values,
            is_different=len(set(values)) > 1,
        ))
    return rows
