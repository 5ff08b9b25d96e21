"""Catalog, review and cart services.

Each service owns one collection. Required-field checks run in a fixed
order and stop at the first missing field, so the 400 always names exactly
one field. Everything below that is typed validation via the schemas.
Mutations commit before the response payload is returned, so a failed
commit surfaces as the route's 500.
"""

import logging
from typing import Any

from fastapi import Depends

from core.config import settings
from core.errors import NotFoundError, ValidationError
from core.models.base import utcnow
from patterns import identifiers
from patterns.pagination import PageRequest, paginate
from bookstore.models.schemas import (
    BookCreate,
    BookFilter,
    BookSort,
    BookUpdate,
    CartItemCreate,
    CartItemUpdate,
    ReviewCreate,
    ReviewFilter,
    validate_schema,
)
from bookstore.repository import (
    BookRepository,
    CartRepository,
    ReviewRepository,
    get_book_repository,
    get_cart_repository,
    get_review_repository,
)

logger = logging.getLogger(__name__)

BOOK_REQUIRED_FIELDS = ("title", "author", "price", "description")
REVIEW_REQUIRED_FIELDS = ("bookId", "author", "rating", "title", "comment")
CART_REQUIRED_FIELDS = ("bookId", "quantity", "userId")


def require_fields(body: Any, fields: tuple[str, ...]) -> dict:
    """Fail on the first field that is absent or empty (0, "", null, false)."""
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    for field in fields:
        if not body.get(field):
            raise ValidationError(f"Missing required field: {field}")
    return body


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CatalogService:
    def __init__(self, books: BookRepository):
        self.books = books

    async def list(
        self,
        filters: BookFilter | None = None,
        sort: BookSort | None = None,
        page: PageRequest | None = None,
    ) -> dict:
        filters = filters or BookFilter()
        sort = sort or BookSort()
        page = page or PageRequest(limit=settings.catalog.books_page_size)

        books, total = await self.books.search(filters, sort, page)
        return {"books": books, "pagination": paginate(page, total)}

    async def get(self, book_id: str) -> dict:
        if not book_id:
            raise ValidationError("Book ID is required")
        book = await self.books.get(book_id)
        if book is None:
            raise NotFoundError("Book not found")
        return book

    async def create(self, body: Any) -> dict:
        require_fields(body, BOOK_REQUIRED_FIELDS)
        data = validate_schema(BookCreate, body)

        book_id = data.id or identifiers.timestamp_id()
        if data.id and await self.books.exists(book_id):
            raise ValidationError(f"Book {book_id} already exists")

        now = utcnow()
        values = data.model_dump(exclude={"id", "genre"})
        values.update(id=book_id, genres=data.genre, created_at=now, updated_at=now)

        book = await self.books.create(values)
        await self.books.commit()
        logger.info("Book %s added", book_id)
        return {"message": "Book added successfully", "book": book}

    async def update(self, book_id: str, body: Any) -> dict:
        if not book_id:
            raise ValidationError("Book ID is required")
        data = validate_schema(BookUpdate, body)

        changes = data.model_dump(exclude_unset=True)
        if "genre" in changes:
            changes["genres"] = changes.pop("genre")
        changes["updated_at"] = utcnow()

        book = await self.books.update(book_id, changes)
        if book is None:
            raise NotFoundError("Book not found")
        await self.books.commit()
        logger.info("Book %s updated (%s)", book_id, ", ".join(sorted(changes)))
        return {"message": "Book updated successfully", "book": book}

    async def delete(self, book_id: str) -> dict:
        if not book_id:
            raise ValidationError("Book ID is required")
        if not await self.books.delete(book_id):
            raise NotFoundError("Book not found")
        await self.books.commit()
        logger.info("Book %s deleted", book_id)
        return {"message": "Book deleted successfully", "id": book_id}


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

class ReviewService:
    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    async def list(
        self,
        filters: ReviewFilter | None = None,
        page: PageRequest | None = None,
    ) -> dict:
        filters = filters or ReviewFilter()
        page = page or PageRequest(limit=settings.catalog.reviews_page_size)

        reviews, total = await self.reviews.search(filters, page)
        return {"reviews": reviews, "pagination": paginate(page, total)}

    async def create(self, body: Any) -> dict:
        require_fields(body, REVIEW_REQUIRED_FIELDS)
        data = validate_schema(ReviewCreate, body)

        review_id = data.id or identifiers.review_id()
        if data.id and await self.reviews.exists(review_id):
            raise ValidationError(f"Review {review_id} already exists")

        # verified is never taken from the submitter
        review = await self.reviews.create({
            "id": review_id,
            "book_id": data.book_id,
            "author": data.author,
            "rating": data.rating,
            "title": data.title,
            "comment": data.comment,
            "timestamp": utcnow(),
            "verified": False,
        })
        await self.reviews.commit()
        logger.info("Review %s added for book %s", review_id, data.book_id)
        return {"message": "Review added successfully", "review": review}


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------

class CartService:
    def __init__(self, cart: CartRepository):
        self.cart = cart

    async def list(self, user_id: str | None = None) -> dict:
        user_id = user_id or settings.catalog.guest_user_id
        items = await self.cart.for_user(user_id)
        return {"cartItems": items, "userId": user_id}

    async def add(self, body: Any) -> tuple[dict, bool]:
        """Add a line item or merge into the existing one.

        Returns (payload, created); created is False when the quantity was
        added to an existing (user, book) line.
        """
        require_fields(body, CART_REQUIRED_FIELDS)
        data = validate_schema(CartItemCreate, body)

        item_id = data.id or identifiers.cart_item_id()
        if data.id and await self.cart.exists(item_id):
            raise ValidationError(f"Cart item {item_id} already exists")

        item, created = await self.cart.add_or_increment({
            "id": item_id,
            "user_id": data.user_id,
            "book_id": data.book_id,
            "quantity": data.quantity,
            "added_at": utcnow(),
        })
        await self.cart.commit()
        if created:
            logger.info("Cart %s: added book %s x%d", data.user_id, data.book_id, data.quantity)
            return {"message": "Item added to cart successfully", "item": item}, True

        logger.info(
            "Cart %s: book %s quantity now %d", data.user_id, data.book_id, item["quantity"]
        )
        return {"message": "Cart item quantity updated", "item": item}, False

    async def update(self, body: Any) -> dict:
        if not isinstance(body, dict) or not body.get("id") or not body.get("quantity"):
            raise ValidationError("Missing required fields: id and quantity")
        data = validate_schema(CartItemUpdate, body)

        item = await self.cart.update(data.id, {"quantity": data.quantity})
        if item is None:
            raise NotFoundError("Cart item not found")
        await self.cart.commit()
        return {"message": "Cart item updated successfully", "item": item}

    async def remove(self, item_id: str | None, user_id: str | None = None) -> dict:
        if not item_id:
            raise ValidationError("Missing itemId parameter")
        user_id = user_id or settings.catalog.guest_user_id

        if not await self.cart.remove(item_id, user_id):
            raise NotFoundError("Cart item not found")
        await self.cart.commit()
        logger.info("Cart %s: removed item %s", user_id, item_id)
        return {"message": "Item removed from cart successfully", "itemId": item_id}


# ---------------------------------------------------------------------------
# FastAPI dependency factories
# ---------------------------------------------------------------------------

def get_catalog_service(
    books: BookRepository = Depends(get_book_repository),
) -> CatalogService:
    return CatalogService(books)


def get_review_service(
    reviews: ReviewRepository = Depends(get_review_repository),
) -> ReviewService:
    return ReviewService(reviews)


def get_cart_service(
    cart: CartRepository = Depends(get_cart_repository),
) -> CartService:
    return CartService(cart)
