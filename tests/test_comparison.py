from staynest.engine import (
    COMPARE_LIMIT_NOTICE,
    ComparisonSet,
    build_comparison_rows,
    toggle_comparison,
)
from staynest.models import Listing


def test_toggle_adds_in_order_and_removes():
    selection = ComparisonSet()
    for listing_id in ("a", "b", "c"):
        selection = toggle_comparison(selection, listing_id).selection
    assert selection.ids == ("a", "b", "c")

    outcome = selection.toggle("b")
    assert outcome.selection.ids == ("a", "c")
    assert outcome.limit_reached is False
    assert outcome.notice is None


def test_fourth_selection_is_rejected_without_eviction():
    selection = ComparisonSet(("a", "b", "c"))
    outcome = selection.toggle("d")

    assert outcome.selection is selection
    assert outcome.limit_reached is True
    assert outcome.notice == COMPARE_LIMIT_NOTICE


def test_size_bound_holds_for_any_toggle_sequence():
    selection = ComparisonSet()
    for listing_id in ["a", "b", "c", "d", "a", "d", "e", "b", "b", "f", "g"]:
        before = len(selection)
        was_present = listing_id in selection
        selection = selection.toggle(listing_id).selection
        assert len(selection) <= 3
        if was_present:
            assert len(selection) == before - 1
        assert len(set(selection.ids)) == len(selection)


def test_from_query_dedupes_trims_and_caps():
    selection = ComparisonSet.from_query(" a, b ,,a,c,d")
    assert selection.ids == ("a", "b", "c")
    assert ComparisonSet.from_query(None).ids == ()


def test_share_url_round_trips_through_from_query():
    selection = ComparisonSet(("m1", "m3"))
    url = selection.share_url("https://staynest.example/")
    assert url == "https://staynest.example/listings?compare=m1,m3"
    assert ComparisonSet.from_query(url.split("compare=", 1)[1]) == selection


def test_pick_keeps_selection_order_and_skips_unknown(make_listing):
    listings = [make_listing("a"), make_listing("b"), make_listing("c")]
    assert [l.id for l in ComparisonSet(("c", "x", "a")).pick(listings)] == ["c", "a"]


def test_rows_flag_only_differing_features(make_listing):
    listings = [
        make_listing("a", city="Dhaka", rent=5000),
        make_listing("b", city="Dhaka", rent=9000),
    ]
    rows = {row.feature: row for row in build_comparison_rows(listings)}

    assert rows["rent"].is_different is True
    assert rows["rent"].values == ["৳5000", "৳9000"]
    assert rows["city"].is_different is False
    assert rows["city"].values == ["Dhaka", "Dhaka"]


def test_rows_follow_fixed_feature_order_and_render_missing_values():
    listings = [
        Listing(id="a", type="hostel", genderAllowed="female", averageRating=4.56,
                reviews=[{}, {}], isFeatured=True, verified=True, numberOfRooms=4),
        Listing(id="b"),
    ]
    rows = build_comparison_rows(listings)

    assert [r.feature for r in rows] == [
        "rent", "city", "type", "rooms", "capacity", "gender",
        "furnishing", "verified", "rating", "reviewCount", "views", "featured",
    ]
    by_feature = {r.feature: r.values for r in rows}
    assert by_feature["type"] == ["Hostel", "N/A"]
    assert by_feature["gender"] == ["Female", "N/A"]
    assert by_feature["rating"] == ["4.6/5", "N/A"]
    assert by_feature["reviewCount"] == ["2", "0"]
    assert by_feature["rooms"] == ["4", "N/A"]
    assert by_feature["verified"] == ["Yes", "No"]
    assert by_feature["featured"] == ["Yes", "No"]
    assert by_feature["views"] == ["0", "0"]


def test_rows_do_not_reorder_listings(make_listing):
    listings = [make_listing("b", rent=9000), make_listing("a", rent=1000)]
    rent_row = build_comparison_rows(listings)[0]
    assert rent_row.values == ["৳9000", "৳1000"]


def test_no_rows_without_listings():
    assert build_comparison_rows([]) == []
