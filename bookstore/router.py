"""Bookstore API router: catalog, reviews and cart.

Standard router pattern:
- Query parameters are parsed into explicit filter/sort/page structures
- Bodies are taken as raw JSON objects so that required-field checks can
  name the first missing field
- Services are injected via FastAPI Depends
- Each route carries its fixed failure message for unexpected errors
"""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from api.errors import translate_errors
from core.config import settings
from patterns.pagination import PageRequest
from bookstore.models.schemas import (
    BookFilter,
    BookSort,
    ReviewFilter,
    validate_schema,
)
from bookstore.services import (
    CartService,
    CatalogService,
    ReviewService,
    get_cart_service,
    get_catalog_service,
    get_review_service,
)

router = APIRouter()


# ============================================================================
# Book Endpoints
# ============================================================================

@router.get("/books")
@translate_errors("Failed to fetch books")
async def list_books(
    genre: Optional[str] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    page: int = Query(1),
    limit: int = Query(settings.catalog.books_page_size),
    sort_by: str = Query("title", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    service: CatalogService = Depends(get_catalog_service),
):
    """Search, filter, sort and paginate the catalog."""
    filters = validate_schema(
        BookFilter, {"genre": genre, "search": search, "featured": featured}
    )
    sort = validate_schema(BookSort, {"field": sort_by, "direction": sort_order})
    paging = validate_schema(PageRequest, {"page": page, "limit": limit})
    return await service.list(filters, sort, paging)


@router.post("/books", status_code=201)
@translate_errors("Failed to add book")
async def create_book(
    body: Any = Body(...),
    service: CatalogService = Depends(get_catalog_service),
):
    """Add a new book to the catalog (admin only, unenforced)."""
    return await service.create(body)


@router.get("/books/{book_id}")
@translate_errors("Failed to fetch book")
async def get_book(
    book_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    return await service.get(book_id)


@router.put("/books/{book_id}")
@translate_errors("Failed to update book")
async def update_book(
    book_id: str,
    body: Any = Body(...),
    service: CatalogService = Depends(get_catalog_service),
):
    """Partially update a book (admin only, unenforced)."""
    return await service.update(book_id, body)


@router.delete("/books/{book_id}")
@translate_errors("Failed to delete book")
async def delete_book(
    book_id: str,
    service: CatalogService = Depends(get_catalog_service),
):
    """Remove a book from the catalog (admin only, unenforced)."""
    return await service.delete(book_id)


# ============================================================================
# Review Endpoints
# ============================================================================

@router.get("/reviews")
@translate_errors("Failed to fetch reviews")
async def list_reviews(
    book_id: Optional[str] = Query(None, alias="bookId"),
    rating: Optional[int] = None,
    page: int = Query(1),
    limit: int = Query(settings.catalog.reviews_page_size),
    service: ReviewService = Depends(get_review_service),
):
    """Newest-first reviews, optionally for one book and/or one rating."""
    filters = validate_schema(ReviewFilter, {"book_id": book_id, "rating": rating})
    paging = validate_schema(PageRequest, {"page": page, "limit": limit})
    return await service.list(filters, paging)


@router.post("/reviews", status_code=201)
@translate_errors("Failed to add review")
async def create_review(
    body: Any = Body(...),
    service: ReviewService = Depends(get_review_service),
):
    """Submit a review. Reviews start unverified."""
    return await service.create(body)


# ============================================================================
# Cart Endpoints
# ============================================================================

@router.get("/cart")
@translate_errors("Failed to fetch cart items")
async def get_cart(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: CartService = Depends(get_cart_service),
):
    return await service.list(user_id)


@router.post("/cart")
@translate_errors("Failed to add item to cart")
async def add_to_cart(
    body: Any = Body(...),
    service: CartService = Depends(get_cart_service),
):
    """Add a line item; 201 when created, 200 when merged into an existing line."""
    payload, created = await service.add(body)
    return JSONResponse(status_code=201 if created else 200, content=payload)


@router.put("/cart")
@translate_errors("Failed to update cart item")
async def update_cart_item(
    body: Any = Body(...),
    service: CartService = Depends(get_cart_service),
):
    return await service.update(body)


@router.delete("/cart")
@translate_errors("Failed to remove item from cart")
async def remove_from_cart(
    item_id: Optional[str] = Query(None, alias="itemId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    service: CartService = Depends(get_cart_service),
):
    return await service.remove(item_id, user_id)
