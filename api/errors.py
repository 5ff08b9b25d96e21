"""HTTP translation of the error taxonomy.

- BookstoreError subclasses render as ``{"error": message}`` with their status
- Request validation failures (bad query types, non-object bodies) become 400
- Anything else escaping a route becomes UnexpectedError with the route's
  fixed failure message; the cause is logged, never returned
"""

import functools
import logging
from typing import Awaitable, Callable, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.errors import BookstoreError, UnexpectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def translate_errors(failure_message: str):
    """Route decorator: turn unexpected exceptions into a 500 with a fixed message.

    Usage::

        @router.get("/books")
        @translate_errors("Failed to fetch books")
        async def list_books(...):
            ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except BookstoreError:
                raise
            except Exception as exc:
                logger.exception("%s: %s", failure_message, exc)
                raise UnexpectedError(failure_message) from exc

        return wrapper

    return decorator


async def bookstore_error_handler(request: Request, exc: BookstoreError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return error_response(exc.status_code, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if not errors:
        return error_response(400, "Invalid request")
    first = errors[0]
    # loc is ("query", "page") / ("body",): drop the source prefix
    loc = tuple(first.get("loc") or ("request",))
    where = ".".join(str(part) for part in loc[1:]) or str(loc[0])
    return error_response(400, f"Invalid value for {where}: {first['msg']}")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
