import logging
from datetime import timezone
from typing import Dict, Any, Iterable, List

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.engine import Connection

from staynest.engine import is_present, parse_bound
from staynest.models import FilterSpec, Listing
from staynest.sql import base_select, listings

LOG = logging.getLogger("repo")

_STORED = [c.name for c in listings.c if c.name != "seq"]


def _apply_filters(stmt, spec: FilterSpec):
    """
    Push the exact predicates down to SQL; the engine re-applies all of them.
    Free text stays in the engine: SQLite only folds ASCII case.
    """
    conds = []

    # numeric ranges (only bounds that parse)
    if (v := parse_bound(spec.min_rent)) is not None:
        conds.append(listings.c.rent >= v)
    if (v := parse_bound(spec.max_rent)) is not None:
        conds.append(listings.c.rent <= v)

    # categorical (blank values are no constraint)
    if is_present(spec.city):
        conds.append(listings.c.city == spec.city)
    if is_present(spec.gender):
        conds.append(listings.c.gender_allowed.in_([spec.gender, "both"]))
    if is_present(spec.type):
        conds.append(listings.c.type == spec.type)
    if spec.verified:
        conds.append(listings.c.verified.is_(True))

    if conds:
        stmt = stmt.where(and_(*conds))
    return stmt


def fetch_candidates(conn: Connection, spec: FilterSpec) -> List[Dict[str, Any]]:
    """
    Rows that may match `spec`, in insertion order.
    `rows` are plain dicts with keys matching staynest.models.Listing.
    """
    rows = conn.execute(_apply_filters(base_select(), spec)).mappings().all()
    LOG.debug("candidates: %d", len(rows))
    return [dict(r) for r in rows]


def get_by_id(conn: Connection, listing_id: str) -> Dict[str, Any]:
    """
    Returns one listing by id as a dict, or {} if not found.
    """
    row = conn.execute(base_select().where(listings.c.id == listing_id)).mappings().first()
    return dict(row) if row else {}


def get_many(conn: Connection, ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    ids = list(ids)
    if not ids:
        return {}
    rows = conn.execute(base_select().where(listings.c.id.in_(ids))).mappings().all()
    return {r["id"]: dict(r) for r in rows}


def _row(item: Listing) -> Dict[str, Any]:
    row = item.model_dump(include=set(_STORED))
    if row["created_at"] is not None:
        row["created_at"] = row["created_at"].astimezone(timezone.utc)
    return row


def replace_listings(conn: Connection, items: Iterable[Listing]) -> int:
    """Delete-then-insert by id (last record wins); caller owns the transaction."""
    by_id = {item.id: _row(item) for item in items}
    if not by_id:
        return 0
    conn.execute(delete(listings).where(listings.c.id.in_(list(by_id))))
    conn.execute(insert(listings), list(by_id.values()))
    return len(by_id)


def count(conn: Connection) -> int:
    return conn.execute(select(func.count()).select_from(listings)).scalar_one()
