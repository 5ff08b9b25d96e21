"""Bookstore: catalog, reviews and shopping cart.

- SQLAlchemy models with application-stamped timestamps
- Async repositories with filtering, sorting and pagination
- Services with ordered required-field validation
- FastAPI router mounted under /api
- httpx client binding for the same endpoints
"""
