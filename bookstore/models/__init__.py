"""Request/response schemas and database models for the bookstore."""
