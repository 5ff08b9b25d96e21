"""FastAPI application, middleware and HTTP error translation."""
