import pytest

from reviewdelta.crawler.google_maps.errors import HarvestError, StructuralValidationError
from reviewdelta.crawler.google_maps.schema import (
    dump_place_summary,
    validate_harvest,
    validate_place_summary,
)


def _review(**overrides):
    review = {
        "review_id": "r0",
        "user_name": "Alice",
        "user_avatar_url": None,
        "rating": 5,
        "date": "2 days ago",
        "comment": None,
        "images": [],
    }
    review.update(overrides)
    return review


def test_valid_harvest():
    model = validate_harvest({"reviews": [_review()], "last_cursor": "r0"})

    assert model.reviews[0].review_id == "r0"
    assert model.last_cursor == "r0"


def test_degraded_zero_rating_is_accepted():
    model = validate_harvest({"reviews": [_review(rating=0)], "last_cursor": "r0"})
    assert model.reviews[0].rating == 0


def test_accepts_wire_names():
    model = validate_harvest({
        "reviews": [{"reviewId": "r0", "rating": 3, "images": []}],
        "lastCursor": "r0",
    })
    assert model.reviews[0].review_id == "r0"


def test_missing_review_id_fails_the_batch():
    review = _review()
    del review["review_id"]

    with pytest.raises(StructuralValidationError) as exc:
        validate_harvest({"reviews": [_review(review_id="ok"), review], "last_cursor": "ok"})

    assert isinstance(exc.value, HarvestError)
    assert "maybe the scraper is broken" in str(exc.value)
    assert any(issue["loc"][:2] == ("reviews", 1) for issue in exc.value.issues)


def test_empty_review_id_fails():
    with pytest.raises(StructuralValidationError):
        validate_harvest({"reviews": [_review(review_id="")], "last_cursor": None})


@pytest.mark.parametrize("rating", [-1, 6, "five"])
def test_out_of_range_rating_fails(rating):
    with pytest.raises(StructuralValidationError):
        validate_harvest({"reviews": [_review(rating=rating)], "last_cursor": "r0"})


def test_place_summary_round_trip_names():
    model = validate_place_summary({
        "place_name": "Starbucks",
        "rating": {"5": 10, "1": 2},
        "average_rating": 4.3,
        "total_reviews": 12,
    })

    assert dump_place_summary(model) == {
        "placeName": "Starbucks",
        "rating": {"5": 10, "1": 2},
        "averageRating": 4.3,
        "totalReviews": 12,
    }


@pytest.mark.parametrize("overrides", [
    {"place_name": None},
    {"place_name": ""},
    {"rating": {"6": 1}},
    {"rating": {"5": -1}},
    {"average_rating": 7.5},
    {"total_reviews": -3},
])
def test_invalid_place_summary(overrides):
    data = {
        "place_name": "Starbucks",
        "rating": {"5": 10},
        "average_rating": 4.3,
        "total_reviews": 10,
    }
    data.update(overrides)

    with pytest.raises(StructuralValidationError) as exc:
        validate_place_summary(data)

    assert exc.value.issues
