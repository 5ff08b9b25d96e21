"""Test the async client binding against the in-process app and a mock transport."""
import httpx
import pytest
import pytest_asyncio

from api.main import app
from bookstore.client import (
    BookstoreClient,
    BookstoreClientError,
    CartLine,
    cart_item_count,
    cart_subtotal,
    is_in_cart,
)


@pytest_asyncio.fixture
async def api(client):
    # `client` installs the session override on the app
    async with BookstoreClient(
        "http://test/api", transport=httpx.ASGITransport(app=app)
    ) as bookstore:
        yield bookstore


def failing_client(status_code=500):
    def handler(request):
        return httpx.Response(status_code, json={"error": "database exploded"})

    return BookstoreClient("http://test/api", transport=httpx.MockTransport(handler))


# -- Pure helpers --

def test_cart_helpers():
    items = [
        {"id": "c1", "bookId": "b1", "quantity": 2},
        {"id": "c2", "bookId": "b2", "quantity": 3},
    ]
    assert cart_item_count(items) == 5
    assert cart_item_count([]) == 0
    assert is_in_cart(items, "b2")
    assert not is_in_cart(items, "b3")

    lines = [
        CartLine(item=items[0], book={"id": "b1", "price": 10.25}),
        CartLine(item=items[1], book={"id": "b2", "price": 1.5}),
    ]
    assert cart_subtotal(lines) == 25.0


# -- Requests --

@pytest.mark.asyncio
async def test_fetch_books_sends_only_set_params():
    seen = []

    def handler(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"books": [], "pagination": {}})

    async with BookstoreClient("http://test/api", transport=httpx.MockTransport(handler)) as bookstore:
        await bookstore.fetch_books(genre="Fiction", featured=True, page=2)
        await bookstore.fetch_books()

    assert seen == [{"genre": "Fiction", "featured": "true", "page": "2"}, {}]


@pytest.mark.asyncio
async def test_server_error_uses_fixed_message():
    async with failing_client() as bookstore:
        with pytest.raises(BookstoreClientError) as excinfo:
            await bookstore.fetch_books()
    assert excinfo.value.message == "Failed to fetch books"
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_transport_error_uses_fixed_message():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with BookstoreClient("http://test/api", transport=httpx.MockTransport(handler)) as bookstore:
        with pytest.raises(BookstoreClientError, match="Failed to fetch book"):
            await bookstore.fetch_book("b1")


@pytest.mark.asyncio
async def test_books_and_reviews_round_trip(api, book_body):
    # Seed through the HTTP API itself
    response = await api._client.post("/books", json=book_body(id="b1", genre=["Fiction"]))
    assert response.status_code == 201

    page = await api.fetch_books(genre="Fiction")
    assert [b["id"] for b in page["books"]] == ["b1"]
    assert (await api.fetch_book("b1"))["id"] == "b1"

    result = await api.add_review(
        {
            "id": "ignored",
            "bookId": "b1",
            "author": "Reader",
            "rating": 5,
            "title": "Great",
            "comment": "Loved it",
            "verified": True,
        }
    )
    assert result["review"]["id"] != "ignored"
    assert result["review"]["verified"] is False

    reviews = await api.fetch_reviews(book_id="b1")
    assert len(reviews["reviews"]) == 1


@pytest.mark.asyncio
async def test_cart_mutations_fire_listeners(api):
    calls = []

    async def async_listener():
        calls.append("async")

    unsubscribe = api.on_cart_change(lambda: calls.append("sync"))
    api.on_cart_change(async_listener)

    added = await api.add_to_cart("b1", 2, user_id="u1")
    item_id = added["item"]["id"]
    await api.update_cart_item(item_id, 5)
    assert calls == ["sync", "async", "sync", "async"]

    unsubscribe()
    await api.remove_from_cart(item_id, user_id="u1")
    assert calls[-1] == "async"
    assert len(calls) == 5
    assert (await api.fetch_cart("u1"))["cartItems"] == []


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_mutation(api):
    def broken():
        raise RuntimeError("listener bug")

    api.on_cart_change(broken)
    result = await api.add_to_cart("b1", 1)
    assert result["item"]["userId"] == "guest"


@pytest.mark.asyncio
async def test_failed_mutation_does_not_fire(api):
    calls = []
    api.on_cart_change(lambda: calls.append(1))
    with pytest.raises(BookstoreClientError, match="Failed to remove item from cart"):
        await api.remove_from_cart("missing", user_id="u1")
    assert calls == []


@pytest.mark.asyncio
async def test_load_cart_lines_skips_missing_books():
    def handler(request):
        if request.url.path == "/api/cart":
            return httpx.Response(
                200,
                json={
                    "userId": "u1",
                    "cartItems": [
                        {"id": "c2", "bookId": "gone", "userId": "u1", "quantity": 1},
                        {"id": "c1", "bookId": "b1", "userId": "u1", "quantity": 2},
                    ],
                },
            )
        if request.url.path == "/api/books/b1":
            return httpx.Response(200, json={"id": "b1", "price": 12.5})
        return httpx.Response(404, json={"error": "Book not found"})

    async with BookstoreClient("http://test/api", transport=httpx.MockTransport(handler)) as bookstore:
        lines = await bookstore.load_cart_lines("u1")

    assert [line.book["id"] for line in lines] == ["b1"]
    assert cart_subtotal(lines) == 25.0
    assert cart_item_count([line.item for line in lines]) == 2
