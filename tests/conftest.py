import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# staynest.deps builds its engine at import time
os.environ.setdefault(
    "DATABASE_URL", f"sqlite:///{os.path.join(tempfile.gettempdir(), 'staynest-tests.db')}"
)

from staynest.deps import make_engine  # noqa: E402
from staynest.models import Listing, SessionState, SessionUser  # noqa: E402
from staynest.sql import metadata  # noqa: E402

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def build_listing(listing_id: str, **fields) -> Listing:
    values = {
        "id": listing_id,
        "title": f"Listing {listing_id}",
        "address": f"{listing_id} Road",
        "city": "Dhaka",
        "type": "mess",
        "rent": 5000,
        "gender_allowed": "both",
    }
    values.update(fields)
    return Listing(**values)


@pytest.fixture
def make_listing():
    return build_listing


@pytest.fixture
def sample_listings():
    return [
        build_listing("m1", title="Dhanmondi Female Mess", address="Dhanmondi, Dhaka", rent=6000,
                      gender_allowed="female", verified=True, average_rating=4.6, views=342,
                      created_at=BASE_TIME + timedelta(days=1)),
        build_listing("m2", title="Mirpur Budget Hostel", address="Mirpur, Dhaka", rent=4500,
                      type="hostel", gender_allowed="male", verified=True, average_rating=4.2, views=156,
                      created_at=BASE_TIME + timedelta(days=3)),
        build_listing("m3", title="Gulshan Mixed Mess", address="Gulshan, Dhaka", rent=8000,
                      gender_allowed="both", average_rating=4.8, views=89,
                      created_at=BASE_TIME + timedelta(days=2)),
        build_listing("m4", title="Zindabazar Hostel", address="Zindabazar", city="Sylhet", rent=7000,
                      type="hostel", gender_allowed="female", verified=True, views=61,
                      created_at=BASE_TIME),
    ]


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'staynest.db'}")
    metadata.create_all(eng)
    yield eng
    eng.dispose()


def session_for(role=None, loading=False) -> SessionState:
    if loading:
        return SessionState(loading=True)
    if role is None:
        return SessionState()
    return SessionState(is_authenticated=True, user=SessionUser(id="u1", role=role))


@pytest.fixture
def signed_in():
    return session_for
