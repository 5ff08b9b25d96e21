"""
Bookstore API client.

Async binding over httpx that turns function calls into requests against
the catalog, review and cart endpoints. Provides:
- One method per endpoint, sending only the parameters that are set
- A fixed error message per operation (server error text is not surfaced)
- A same-process cart-change signal, fired after each cart mutation
- Cart helpers: line loading with book details, item count, subtotal
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union
import asyncio
import inspect
import logging

import httpx

logger = logging.getLogger(__name__)

GUEST_USER_ID = "guest"

CartListener = Callable[[], Union[None, Awaitable[None]]]


class BookstoreClientError(Exception):
    """A request failed. Carries only the operation's fixed message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class CartLine:
    """A cart line item joined with the book it refers to."""
    item: dict[str, Any]
    book: dict[str, Any]

    @property
    def quantity(self) -> int:
        return self.item["quantity"]


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def cart_item_count(items: list[dict[str, Any]]) -> int:
    """Total units across all line items."""
    return sum(item["quantity"] for item in items)


def is_in_cart(items: list[dict[str, Any]], book_id: str) -> bool:
    return any(item["bookId"] == book_id for item in items)


def cart_subtotal(lines: list[CartLine]) -> float:
    return round(sum(line.book["price"] * line.quantity for line in lines), 2)


def _params(**values: Any) -> dict[str, str]:
    params = {}
    for key, value in values.items():
        if not value:
            continue
        params[key] = "true" if value is True else str(value)
    return params


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class BookstoreClient:
    """Async client for the bookstore API.

    Usage::

        async with BookstoreClient("http://localhost:8000/api") as api:
            page = await api.fetch_books(genre="Fiction", page=2, limit=10)
            await api.add_to_cart(page["books"][0]["id"], quantity=1)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000/api",
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, transport=transport, timeout=timeout
        )
        self._cart_listeners: list[CartListener] = []

    async def __aenter__(self) -> "BookstoreClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # -- Cart change signal --

    def on_cart_change(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._cart_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._cart_listeners:
                self._cart_listeners.remove(listener)

        return unsubscribe

    async def _cart_changed(self) -> None:
        for listener in list(self._cart_listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Cart change listener %r failed", listener)

    # -- Transport --

    async def _request(
        self,
        method: str,
        path: str,
        failure_message: str,
        *,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise BookstoreClientError(failure_message) from exc

        if not response.is_success:
            logger.warning("%s %s -> %d", method, path, response.status_code)
            raise BookstoreClientError(failure_message, response.status_code)
        return response.json()

    # -- Books --

    async def fetch_books(
        self,
        genre: Optional[str] = None,
        search: Optional[str] = None,
        featured: bool = False,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> dict[str, Any]:
        params = _params(
            genre=genre,
            search=search,
            featured=featured,
            page=page,
            limit=limit,
            sortBy=sort_by,
            sortOrder=sort_order,
        )
        return await self._request("GET", "/books", "Failed to fetch books", params=params)

    async def fetch_book(self, book_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/books/{book_id}", "Failed to fetch book")

    # -- Reviews --

    async def fetch_reviews(
        self,
        book_id: Optional[str] = None,
        rating: Optional[int] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        params = _params(bookId=book_id, rating=rating, page=page, limit=limit)
        return await self._request("GET", "/reviews", "Failed to fetch reviews", params=params)

    async def add_review(self, review: dict[str, Any]) -> dict[str, Any]:
        """Submit a review; id, timestamp and verified are set by the server."""
        body = {k: v for k, v in review.items() if k not in ("id", "timestamp", "verified")}
        return await self._request("POST", "/reviews", "Failed to add review", json=body)

    # -- Cart --

    async def fetch_cart(self, user_id: str = GUEST_USER_ID) -> dict[str, Any]:
        return await self._request(
            "GET", "/cart", "Failed to fetch cart", params={"userId": user_id}
        )

    async def add_to_cart(
        self, book_id: str, quantity: int, user_id: Optional[str] = None
    ) -> dict[str, Any]:
        body = {"bookId": book_id, "quantity": quantity, "userId": user_id or GUEST_USER_ID}
        result = await self._request("POST", "/cart", "Failed to add item to cart", json=body)
        await self._cart_changed()
        return result

    async def update_cart_item(self, item_id: str, quantity: int) -> dict[str, Any]:
        result = await self._request(
            "PUT",
            "/cart",
            "Failed to update cart item",
            json={"id": item_id, "quantity": quantity},
        )
        await self._cart_changed()
        return result

    async def remove_from_cart(
        self, item_id: str, user_id: str = GUEST_USER_ID
    ) -> dict[str, Any]:
        result = await self._request(
            "DELETE",
            "/cart",
            "Failed to remove item from cart",
            params={"itemId": item_id, "userId": user_id},
        )
        await self._cart_changed()
        return result

    async def load_cart_lines(self, user_id: str = GUEST_USER_ID) -> list[CartLine]:
        """Fetch the cart and every referenced book concurrently.

        Lines whose book cannot be fetched (e.g. deleted from the catalog)
        are left out.
        """
        cart = await self.fetch_cart(user_id)
        items = cart.get("cartItems", [])
        books = await asyncio.gather(
            *(self.fetch_book(item["bookId"]) for item in items),
            return_exceptions=True,
        )

        lines = []
        for item, book in zip(items, books):
            if isinstance(book, BookstoreClientError):
                logger.warning("Skipping cart item %s: book %s unavailable", item["id"], item["bookId"])
                continue
            if isinstance(book, BaseException):
                raise book
            lines.append(CartLine(item=item, book=book))
        return lines
