"""Test the review service."""
import pytest

from bookstore.models.schemas import ReviewFilter
from bookstore.repository import ReviewRepository
from bookstore.services import ReviewService
from core.errors import ValidationError
from patterns.pagination import PageRequest


@pytest.fixture
def reviews(session):
    return ReviewService(ReviewRepository(session))


def review_body(**overrides):
    body = {
        "bookId": "b1",
        "author": "Reader",
        "rating": 4,
        "title": "Solid",
        "comment": "Enjoyed it.",
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_create_review_defaults(reviews):
    result = await reviews.create(review_body(verified=True))
    review = result["review"]
    assert result["message"] == "Review added successfully"
    assert review["id"].startswith("review-")
    assert review["verified"] is False
    assert review["timestamp"] is not None
    assert review["bookId"] == "b1"


@pytest.mark.asyncio
async def test_review_ids_unique(reviews):
    ids = {(await reviews.create(review_body()))["review"]["id"] for _ in range(5)}
    assert len(ids) == 5


@pytest.mark.asyncio
async def test_required_fields_in_order(reviews):
    with pytest.raises(ValidationError, match="Missing required field: bookId"):
        await reviews.create({})
    with pytest.raises(ValidationError, match="Missing required field: rating"):
        await reviews.create(review_body(rating=0))
    with pytest.raises(ValidationError, match="Missing required field: comment"):
        await reviews.create(review_body(comment=""))


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [-1, 6, 10])
async def test_rating_out_of_range(reviews, rating):
    with pytest.raises(ValidationError, match="rating"):
        await reviews.create(review_body(rating=rating))


@pytest.mark.asyncio
async def test_list_newest_first_and_filters(reviews):
    await reviews.create(review_body(title="first", rating=5))
    await reviews.create(review_body(title="second", rating=3))
    await reviews.create(review_body(bookId="b2", title="other", rating=5))

    result = await reviews.list(ReviewFilter(book_id="b1"))
    assert [r["title"] for r in result["reviews"]] == ["second", "first"]
    assert result["pagination"]["limit"] == 20

    result = await reviews.list(ReviewFilter(rating=5))
    assert [r["title"] for r in result["reviews"]] == ["other", "first"]

    result = await reviews.list(ReviewFilter(book_id="b1", rating=5))
    assert [r["title"] for r in result["reviews"]] == ["first"]


@pytest.mark.asyncio
async def test_list_paginates(reviews):
    for i in range(5):
        await reviews.create(review_body(title=f"r{i}"))
    result = await reviews.list(page=PageRequest(page=2, limit=2))
    assert [r["title"] for r in result["reviews"]] == ["r2", "r1"]
    assert result["pagination"] == {
        "page": 2,
        "limit": 2,
        "totalCount": 5,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }
