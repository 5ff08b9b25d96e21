"""SQLAlchemy models for the bookstore.

Books, reviews and cart line items live in independent tables: reviews and
cart items reference books by id only, with no foreign key, so deleting a
book never cascades into carts or reviews. The to_dict() method provides
the camelCase serialisation used by repositories and routers.
"""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import Base, RecordMixin, TimestampMixin, isoformat, utcnow


class Book(RecordMixin, TimestampMixin, Base):
    """A book in the catalog."""

    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(17), nullable=True)
    pages: Mapped[int | None] = mapped_column(Integer, nullable=True)
    language: Mapped[str | None] = mapped_column(String(50), nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_published: Mapped[date | None] = mapped_column(Date, nullable=True)
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    genre_rows: Mapped[list["BookGenre"]] = relationship(
        back_populates="book",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BookGenre.position",
    )

    @property
    def genres(self) -> list[str]:
        return [row.genre for row in self.genre_rows]

    @genres.setter
    def genres(self, values: list[str]) -> None:
        # Keep rows that survive so the (book_id, genre) key is never re-inserted
        existing = {row.genre: row for row in self.genre_rows}
        rows = []
        for position, value in enumerate(dict.fromkeys(values)):
            row = existing.get(value) or BookGenre(genre=value)
            row.position = position
            rows.append(row)
        self.genre_rows = rows

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "price": self.price,
            "description": self.description,
            "isbn": self.isbn,
            "pages": self.pages,
            "language": self.language,
            "publisher": self.publisher,
            "datePublished": self.date_published.isoformat() if self.date_published else None,
            "inStock": self.in_stock,
            "featured": self.featured,
            "genre": self.genres,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class BookGenre(Base):
    """One member of a book's genre set."""

    __tablename__ = "book_genres"

    book_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("books.id", ondelete="CASCADE"), primary_key=True
    )
    genre: Mapped[str] = mapped_column(String(100), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    book: Mapped["Book"] = relationship(back_populates="genre_rows")


class Review(RecordMixin, Base):
    """A customer review of a book. Append-only."""

    __tablename__ = "reviews"

    book_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(200), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bookId": self.book_id,
            "author": self.author,
            "rating": self.rating,
            "title": self.title,
            "comment": self.comment,
            "timestamp": isoformat(self.timestamp),
            "verified": self.verified,
        }


class CartItem(RecordMixin, Base):
    """A cart line item: one (user, book) pair with a quantity."""

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "book_id", name="uq_cart_items_user_book"),
    )

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "bookId": self.book_id,
            "quantity": self.quantity,
            "addedAt": isoformat(self.added_at),
        }
