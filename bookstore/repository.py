"""Bookstore repositories: async database access for books, reviews and carts.

Extends BaseRepository with bookstore-specific queries: genre/search/featured
filtering with whitelisted sort columns, review filtering, and the atomic
cart upsert that merges duplicate (user, book) line items.
"""

from typing import Any

from fastapi import Depends
from sqlalchemy import or_, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_session
from patterns.pagination import PageRequest
from patterns.repository import BaseRepository
from bookstore.models.db_models import Book, BookGenre, CartItem, Review
from bookstore.models.schemas import (
    BookFilter,
    BookSort,
    BookSortField,
    ReviewFilter,
    SortDirection,
)

SORT_COLUMNS = {
    BookSortField.TITLE: Book.title,
    BookSortField.AUTHOR: Book.author,
    BookSortField.PRICE: Book.price,
    BookSortField.RATING: Book.rating,
    BookSortField.REVIEW_COUNT: Book.review_count,
    BookSortField.PAGES: Book.pages,
    BookSortField.DATE_PUBLISHED: Book.date_published,
    BookSortField.CREATED_AT: Book.created_at,
    BookSortField.UPDATED_AT: Book.updated_at,
    BookSortField.ID: Book.id,
}


# ---------------------------------------------------------------------------
# Book repository
# ---------------------------------------------------------------------------

class BookRepository(BaseRepository[Book]):
    """Repository for book CRUD and search operations."""

    model = Book
    updatable = frozenset({
        "title", "author", "price", "description", "isbn", "pages",
        "language", "publisher", "date_published", "in_stock", "featured",
        "genres", "rating", "review_count", "updated_at",
    })

    @staticmethod
    def conditions(filters: BookFilter) -> list[Any]:
        """Translate a validated BookFilter into WHERE clauses."""
        clauses = []

        genre = filters.genre_value
        if genre:
            clauses.append(Book.genre_rows.any(BookGenre.genre == genre))

        search = filters.search_value
        if search:
            clauses.append(
                or_(
                    Book.title.icontains(search, autoescape=True),
                    Book.author.icontains(search, autoescape=True),
                    Book.description.icontains(search, autoescape=True),
                )
            )

        if filters.featured is True:
            clauses.append(Book.featured.is_(True))

        return clauses

    async def search(
        self,
        filters: BookFilter,
        sort: BookSort,
        page: PageRequest,
    ) -> tuple[list[dict], int]:
        """Search books with filters, a whitelisted sort and pagination.

        Ties on the sort column are broken by id so pages never overlap.
        """
        column = SORT_COLUMNS[sort.field]
        primary = column.desc() if sort.direction == SortDirection.DESC else column.asc()
        order_by = [primary] if sort.field == BookSortField.ID else [primary, Book.id.asc()]
        return await self.list(*self.conditions(filters), page=page, order_by=order_by)


# ---------------------------------------------------------------------------
# Review repository
# ---------------------------------------------------------------------------

class ReviewRepository(BaseRepository[Review]):
    """Repository for book reviews."""

    model = Review

    async def search(
        self, filters: ReviewFilter, page: PageRequest
    ) -> tuple[list[dict], int]:
        """Newest reviews first, optionally restricted to a book and/or rating."""
        clauses = []
        if filters.book_id:
            clauses.append(Review.book_id == filters.book_id)
        if filters.rating is not None:
            clauses.append(Review.rating == filters.rating)

        return await self.list(
            *clauses,
            page=page,
            order_by=[Review.timestamp.desc(), Review.id.desc()],
        )


# ---------------------------------------------------------------------------
# Cart repository
# ---------------------------------------------------------------------------

class CartRepository(BaseRepository[CartItem]):
    """Repository for cart line items."""

    model = CartItem
    updatable = frozenset({"quantity"})

    async def for_user(self, user_id: str) -> list[dict]:
        """All line items for a user, most recently added first."""
        return await self.all(
            CartItem.user_id == user_id,
            order_by=[CartItem.added_at.desc(), CartItem.id.desc()],
        )

    async def find_line(self, user_id: str, book_id: str) -> CartItem | None:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id, CartItem.book_id == book_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _upsert_statement(self, dialect: str, values: dict[str, Any]):
        if dialect in ("postgresql", "sqlite"):
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(CartItem).values(**values)
            return stmt.on_conflict_do_update(
                index_elements=["user_id", "book_id"],
                set_={"quantity": CartItem.quantity + stmt.excluded.quantity},
            )
        if dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(CartItem).values(**values)
            return stmt.on_duplicate_key_update(
                quantity=CartItem.quantity + stmt.inserted.quantity
            )
        raise NotImplementedError(f"No atomic cart upsert for dialect {dialect!r}")

    async def add_or_increment(self, values: dict[str, Any]) -> tuple[dict, bool]:
        """Insert a line item, or add its quantity to the existing (user, book) row.

        One INSERT .. ON CONFLICT statement, so concurrent adds of the same
        book never produce two rows or lose an increment. The stored row is
        read back afterwards. Returns (item, created).
        """
        dialect = self.session.get_bind().dialect.name
        await self.session.execute(self._upsert_statement(dialect, values))

        item = await self.find_line(values["user_id"], values["book_id"])
        return item.to_dict(), item.id == values["id"]

    async def remove(self, item_id: str, user_id: str) -> bool:
        return await self.delete(item_id, CartItem.user_id == user_id)


# ---------------------------------------------------------------------------
# FastAPI dependency factories
# ---------------------------------------------------------------------------

def get_book_repository(
    session: AsyncSession = Depends(get_session),
) -> BookRepository:
    """FastAPI dependency for BookRepository."""
    return BookRepository(session)


def get_review_repository(
    session: AsyncSession = Depends(get_session),
) -> ReviewRepository:
    """FastAPI dependency for ReviewRepository."""
    return ReviewRepository(session)


def get_cart_repository(
    session: AsyncSession = Depends(get_session),
) -> CartRepository:
    """FastAPI dependency for CartRepository."""
    return CartRepository(session)
