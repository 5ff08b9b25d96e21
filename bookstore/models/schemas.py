"""Pydantic schemas for request validation and list filters.

Wire names are camelCase (``datePublished``, ``bookId``); attributes are
snake_case. Each list endpoint has an explicit filter structure whose
fields are validated before they are translated into SQL.
"""

from datetime import date
from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from core.errors import ValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)

ALL_GENRES = "All"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def validate_schema(schema: type[SchemaT], data: Any) -> SchemaT:
    """Validate ``data`` against ``schema``, raising the API ValidationError."""
    try:
        return schema.model_validate(data)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        where = ".".join(str(part) for part in error["loc"]) or "body"
        raise ValidationError(f"Invalid value for {where}: {error['msg']}") from exc


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class BookSortField(str, Enum):
    TITLE = "title"
    AUTHOR = "author"
    PRICE = "price"
    RATING = "rating"
    REVIEW_COUNT = "reviewCount"
    PAGES = "pages"
    DATE_PUBLISHED = "datePublished"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    ID = "id"


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

class BookFilter(BaseModel):
    genre: Optional[str] = None
    search: Optional[str] = None
    featured: Optional[bool] = None

    @property
    def genre_value(self) -> str | None:
        """The genre to filter on, or None for "no filter" (absent or "All")."""
        if not self.genre or self.genre == ALL_GENRES:
            return None
        return self.genre

    @property
    def search_value(self) -> str | None:
        return self.search or None


class BookSort(BaseModel):
    field: BookSortField = BookSortField.TITLE
    direction: SortDirection = SortDirection.ASC


class ReviewFilter(BaseModel):
    book_id: Optional[str] = None
    rating: Optional[int] = None


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

def _as_genre_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


class BookCreate(CamelModel):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)
    isbn: Optional[str] = Field(None, max_length=17)
    pages: Optional[int] = Field(None, ge=1)
    language: Optional[str] = None
    publisher: Optional[str] = None
    date_published: Optional[date] = None
    in_stock: bool = True
    featured: bool = False
    genre: list[str] = Field(default_factory=list)
    rating: float = Field(0.0, ge=0, le=5)
    review_count: int = Field(0, ge=0)

    normalize_genre = field_validator("genre", mode="before")(_as_genre_list)


class BookUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[float] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1)
    isbn: Optional[str] = Field(None, max_length=17)
    pages: Optional[int] = Field(None, ge=1)
    language: Optional[str] = None
    publisher: Optional[str] = None
    date_published: Optional[date] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None
    genre: Optional[list[str]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    review_count: Optional[int] = Field(None, ge=0)

    normalize_genre = field_validator("genre", mode="before")(_as_genre_list)

    @field_validator(
        "title", "author", "price", "description", "in_stock",
        "featured", "genre", "rating", "review_count",
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("may not be null")
        return value


class ReviewCreate(CamelModel):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    book_id: str = Field(..., min_length=1, max_length=64)
    author: str = Field(..., min_length=1, max_length=200)
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=500)
    comment: str = Field(..., min_length=1)


class CartItemCreate(CamelModel):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    book_id: str = Field(..., min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1)


class CartItemUpdate(CamelModel):
    id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
