# staynest/routers/listings.py
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy.engine import Connection

from staynest import deps
from staynest.deps import get_conn
from staynest.engine import COMPARE_MINIMUM_NOTICE, ComparisonSet, build_comparison_rows, query_listings
from staynest.models import ComparisonResponse, FilterSpec, Listing, ListingsResponse
from staynest.repository import listings as repo

router = APIRouter(prefix="/api", tags=["listings"])


def _to_listings(rows: List[dict]) -> List[Listing]:
    return [Listing(**row) for row in rows]  # Pydantic validates/serializes


@router.get("/listings", response_model=ListingsResponse)
def list_listings(
    # filters (all optional; malformed rent bounds are ignored, never rejected)
    min_rent: Optional[str] = Query(None, alias="minRent"),
    max_rent: Optional[str] = Query(None, alias="maxRent"),
    city: Optional[str] = Query(None),
    gender: Optional[str] = Query(None, description="male or female; 'both' listings always match"),
    type: Optional[str] = Query(None, description="mess or hostel"),
    verified: bool = Query(False),
    q: Optional[str] = Query(None, description="Substring of title, address or city"),

    # paging & sorting
    sort: str = Query("newest", description="newest, price-low, price-high, rating, popular"),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100, alias="pageSize"),

    conn: Connection = Depends(get_conn),
):
    """
    Thin endpoint:
      - assemble filters into a FilterSpec
      - pull candidate rows (exact filters pushed down to SQL)
      - filter/sort/paginate through the query engine
    """
    spec = FilterSpec(
        min_rent=min_rent,
        max_rent=max_rent,
        city=city,
        gender=gender,
        type=type,
        verified=verified,
        query=q,
        sort=sort,
    )

    candidates = _to_listings(repo.fetch_candidates(conn, spec))
    result = query_listings(candidates, spec, page, page_size)

    return ListingsResponse(
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        listings=result.items,
    )


@router.get("/listings/compare", response_model=ComparisonResponse)
def compare_listings(
    ids: str = Query(..., description="Comma-separated listing ids; at most 3 are used"),
    conn: Connection = Depends(get_conn),
):
    selection = ComparisonSet.from_query(ids)
    found = repo.get_many(conn, selection.ids)
    selected = [Listing(**found[i]) for i in selection.ids if i in found]
    if len(selected) < 2:
        raise HTTPException(status_code=400, detail=COMPARE_MINIMUM_NOTICE)

    selection = ComparisonSet(tuple(l.id for l in selected))
    return ComparisonResponse(
        ids=list(selection.ids),
        listings=selected,
        rows=build_comparison_rows(selected),
        share_url=selection.share_url(deps.PUBLIC_ORIGIN),
    )


@router.get("/listings/{listing_id}", response_model=Listing)
def get_listing(listing_id: str, conn: Connection = Depends(get_conn)):
    row = repo.get_by_id(conn, listing_id)
    if not row:
        raise HTTPException(status_code=404, detail="Listing not found")
    return Listing(**row)
