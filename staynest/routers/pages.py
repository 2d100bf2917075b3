# staynest/routers/pages.py
"""
Page surface: every non-API path is resolved through the route table and the
access gate decides before any view payload is produced.
"""
import logging
from typing import Any, Callable, Dict, Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.engine import Connection

from staynest.browser import ListingBrowser
from staynest.deps import get_connector, get_session_provider
from staynest.engine import parse_bound
from staynest.models import FilterSpec, Listing, SessionState
from staynest.navigation import NavigationKind, navigate, resolve
from staynest.repository import listings as repo

LOG = logging.getLogger("pages")

router = APIRouter(tags=["pages"])


def listings_view_data(conn: Connection, params: Mapping[str, str]) -> Dict[str, Any]:
    """Initial listings page state: URL filters, first result page, shared comparison."""
    browser = ListingBrowser.from_params(params)
    token = browser.begin_fetch()
    browser.receive(token, [Listing(**row) for row in repo.fetch_candidates(conn, FilterSpec())])

    if (page := parse_bound(params.get("page"))) is not None:
        browser.go_to_page(int(page))
    result = browser.result

    data: Dict[str, Any] = {
        "filters": browser.filters.model_dump(by_alias=True),
        "page": result.page,
        "totalPages": result.total_pages,
        "total": result.total,
        "listings": [l.model_dump(mode="json", by_alias=True) for l in result.items],
        "compare": list(browser.comparison.ids),
    }
    if browser.comparison:
        view = browser.open_comparison()
        data["comparison"] = {
            "rows": [r.model_dump(by_alias=True) for r in view.rows],
            "notice": view.notice,
        }
    return data


@router.get("/{full_path:path}", include_in_schema=False)
def page(
    request: Request,
    session_provider: Callable[[], SessionState] = Depends(get_session_provider),
    connect: Callable[[], Connection] = Depends(get_connector),
):
    path = request.url.path
    # only guarded routes need the session; public pages, redirects and 404s skip the auth call
    match = resolve(path)
    session = session_provider() if match and match[0].guarded else SessionState()
    nav = navigate(path, session)
    LOG.debug("%s -> %s", path, nav.kind.value)

    if nav.kind is NavigationKind.REDIRECT:
        # legacy paths are permanent; gate redirects replace the current entry
        return RedirectResponse(nav.location, status_code=308 if nav.permanent else 307)

    if nav.kind is NavigationKind.LOADING:
        return JSONResponse({"view": nav.view, "message": "Loading..."}, status_code=202)

    if nav.kind is NavigationKind.NOT_FOUND:
        return JSONResponse({"view": nav.view, "message": "Page not found"}, status_code=404)

    body: Dict[str, Any] = {"view": nav.view, "params": nav.params}
    if nav.view == "Listings":
        with connect() as conn:
            body["data"] = listings_view_data(conn, request.query_params)
    return body
