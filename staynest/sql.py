from sqlalchemy import MetaData, Table, Column, Integer, String, Float, Boolean, DateTime
from sqlalchemy.sql import select

metadata = MetaData()

# ---------- Tables ----------
listings = Table(
    "listings", metadata,
    # seq keeps insertion order; ties in client-side sorting fall back to it
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),  # business key from the API

    Column("title", String, nullable=False, default=""),
    Column("address", String, nullable=False, default=""),
    Column("city", String),
    Column("type", String),
    Column("gender_allowed", String),

    Column("rent", Integer, nullable=False, default=0),
    Column("deposit", Integer),
    Column("verified", Boolean, nullable=False, default=False),
    Column("is_featured", Boolean, nullable=False, default=False),

    Column("average_rating", Float, nullable=False, default=0.0),
    Column("views", Integer, nullable=False, default=0),
    Column("review_count", Integer, nullable=False, default=0),

    Column("number_of_rooms", Integer),
    Column("capacity", Integer),
    Column("furnishing", String),
    Column("created_at", DateTime(timezone=True)),
)

# ---------- Column list reused across queries ----------

LISTING_COLS = [c for c in listings.c if c.name != "seq"]

# ---------- Public selectors ----------

def base_select():
    """
    All listing columns in insertion order.
    """
    return select(*LISTING_COLS).order_by(listings.c.seq)
