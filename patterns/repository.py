"""Async repository pattern for database access.

Provides a generic base repository with CRUD operations, ordering and
offset pagination. Bookstore repositories subclass this to add their
domain-specific queries.
"""

from __future__ import annotations

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.base import Base
from patterns.pagination import PageRequest

# ---------------------------------------------------------------------------
# Type variable for model classes
# ---------------------------------------------------------------------------

ModelT = TypeVar("ModelT", bound=Base)


# ---------------------------------------------------------------------------
# Base repository
# ---------------------------------------------------------------------------

class BaseRepository(Generic[ModelT]):
    """Generic async repository with CRUD + ordering + pagination.

    Subclass and set `model` to your SQLAlchemy model::

        class ReviewRepository(BaseRepository[Review]):
            model = Review

            async def for_book(self, book_id: str, page: PageRequest):
                return await self.list(
                    Review.book_id == book_id,
                    page=page,
                    order_by=[Review.timestamp.desc()],
                )
    """

    model: type[ModelT]
    # Columns a partial update may touch
    updatable: frozenset[str] = frozenset()

    def __init__(self, session: AsyncSession):
        self.session = session

    # -- List with pagination --

    async def list(
        self,
        *conditions: Any,
        page: PageRequest,
        order_by: Sequence[Any] = (),
    ) -> tuple[list[dict], int]:
        """List items matching ``conditions``, one page at a time.

        Returns (items, total_count).
        """
        stmt = select(self.model)
        count_stmt = select(func.count()).select_from(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
            count_stmt = count_stmt.where(*conditions)

        stmt = stmt.order_by(*order_by).offset(page.offset).limit(page.limit)

        result = await self.session.execute(stmt)
        items = [row.to_dict() for row in result.scalars().all()]

        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        return items, total

    async def all(self, *conditions: Any, order_by: Sequence[Any] = ()) -> list[dict]:
        """Unpaginated variant of list()."""
        stmt = select(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        result = await self.session.execute(stmt.order_by(*order_by))
        return [row.to_dict() for row in result.scalars().all()]

    # -- Get by ID --

    async def fetch(self, item_id: str, *conditions: Any) -> ModelT | None:
        """Load the mapped instance, refreshing any stale identity-map copy."""
        stmt = (
            select(self.model)
            .where(self.model.id == item_id, *conditions)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get(self, item_id: str) -> dict | None:
        """Get a single item by ID."""
        item = await self.fetch(item_id)
        return item.to_dict() if item else None

    async def exists(self, item_id: str) -> bool:
        stmt = select(func.count()).select_from(self.model).where(self.model.id == item_id)
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    # -- Create --

    async def create(self, data: dict[str, Any]) -> dict:
        """Create a new item."""
        item = self.model(**data)
        self.session.add(item)
        await self.session.flush()
        return item.to_dict()

    # -- Update --

    async def update(self, item_id: str, data: dict[str, Any]) -> dict | None:
        """Update an existing item. Returns None if not found."""
        item = await self.fetch(item_id)
        if not item:
            return None

        for key, value in data.items():
            if key in self.updatable:
                setattr(item, key, value)

        await self.session.flush()
        return item.to_dict()

    # -- Delete --

    async def delete(self, item_id: str, *conditions: Any) -> bool:
        """Delete an item. Returns True if deleted, False if not found."""
        item = await self.fetch(item_id, *conditions)
        if not item:
            return False

        await self.session.delete(item)
        await self.session.flush()
        return True

    # -- Unit of work --

    async def commit(self) -> None:
        """Commit pending changes inside the request, before the response is built."""
        await self.session.commit()
