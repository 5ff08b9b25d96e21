"""Test the cart service, including the atomic merge of duplicate line items."""
import pytest
from sqlalchemy import func, select

from bookstore.models.db_models import CartItem
from bookstore.repository import CartRepository
from bookstore.services import CartService
from core.errors import NotFoundError, ValidationError


@pytest.fixture
def cart(session):
    return CartService(CartRepository(session))


async def _row_count(session, **where):
    stmt = select(func.count()).select_from(CartItem).filter_by(**where)
    return (await session.execute(stmt)).scalar()


@pytest.mark.asyncio
async def test_add_new_line(cart):
    payload, created = await cart.add({"bookId": "b1", "userId": "u1", "quantity": 2})
    assert created is True
    assert payload["message"] == "Item added to cart successfully"
    item = payload["item"]
    assert item["id"].startswith("cart-")
    assert item["quantity"] == 2
    assert item["addedAt"] is not None


@pytest.mark.asyncio
async def test_add_same_book_merges(cart, session):
    first, _ = await cart.add({"bookId": "b1", "userId": "u1", "quantity": 2})
    second, created = await cart.add({"bookId": "b1", "userId": "u1", "quantity": 3})

    assert created is False
    assert second["message"] == "Cart item quantity updated"
    assert second["item"]["id"] == first["item"]["id"]
    assert second["item"]["quantity"] == 5
    assert await _row_count(session, user_id="u1", book_id="b1") == 1


@pytest.mark.asyncio
async def test_merge_is_per_user(cart, session):
    await cart.add({"bookId": "b1", "userId": "u1", "quantity": 1})
    await cart.add({"bookId": "b1", "userId": "u2", "quantity": 1})
    assert await _row_count(session, book_id="b1") == 2


@pytest.mark.asyncio
async def test_add_required_fields(cart):
    with pytest.raises(ValidationError, match="Missing required field: bookId"):
        await cart.add({"userId": "u1", "quantity": 1})
    with pytest.raises(ValidationError, match="Missing required field: quantity"):
        await cart.add({"bookId": "b1", "userId": "u1", "quantity": 0})
    with pytest.raises(ValidationError, match="Missing required field: userId"):
        await cart.add({"bookId": "b1", "quantity": 1})


@pytest.mark.asyncio
async def test_add_rejects_negative_quantity(cart):
    with pytest.raises(ValidationError, match="quantity"):
        await cart.add({"bookId": "b1", "userId": "u1", "quantity": -2})


@pytest.mark.asyncio
async def test_list_newest_first(cart):
    await cart.add({"bookId": "b1", "userId": "u1", "quantity": 1})
    await cart.add({"bookId": "b2", "userId": "u1", "quantity": 1})
    await cart.add({"bookId": "b3", "userId": "u2", "quantity": 1})

    result = await cart.list("u1")
    assert result["userId"] == "u1"
    assert [i["bookId"] for i in result["cartItems"]] == ["b2", "b1"]


@pytest.mark.asyncio
async def test_list_defaults_to_guest(cart):
    await cart.add({"bookId": "b1", "userId": "guest", "quantity": 1})
    result = await cart.list()
    assert result["userId"] == "guest"
    assert len(result["cartItems"]) == 1


@pytest.mark.asyncio
async def test_update_quantity(cart):
    payload, _ = await cart.add({"bookId": "b1", "userId": "u1", "quantity": 1})
    item_id = payload["item"]["id"]

    result = await cart.update({"id": item_id, "quantity": 7})
    assert result["message"] == "Cart item updated successfully"
    assert result["item"]["quantity"] == 7
    assert result["item"]["bookId"] == "b1"


@pytest.mark.asyncio
async def test_update_validation_and_not_found(cart):
    with pytest.raises(ValidationError, match="Missing required fields: id and quantity"):
        await cart.update({"id": "x"})
    with pytest.raises(ValidationError, match="Missing required fields: id and quantity"):
        await cart.update({"id": "x", "quantity": 0})
    with pytest.raises(ValidationError, match="quantity"):
        await cart.update({"id": "x", "quantity": -1})
    with pytest.raises(NotFoundError):
        await cart.update({"id": "missing", "quantity": 1})


@pytest.mark.asyncio
async def test_remove_requires_matching_user(cart, session):
    payload, _ = await cart.add({"bookId": "b1", "userId": "u1", "quantity": 1})
    item_id = payload["item"]["id"]

    with pytest.raises(NotFoundError):
        await cart.remove(item_id, "someone-else")
    assert await _row_count(session, id=item_id) == 1

    result = await cart.remove(item_id, "u1")
    assert result == {"message": "Item removed from cart successfully", "itemId": item_id}
    assert await _row_count(session, id=item_id) == 0


@pytest.mark.asyncio
async def test_remove_missing_item_id(cart):
    with pytest.raises(ValidationError, match="Missing itemId parameter"):
        await cart.remove(None, "u1")
