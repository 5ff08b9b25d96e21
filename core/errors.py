"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``api.errors`` maps each class to its status code and
renders ``{"error": message}``.
"""


class BookstoreError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookstoreError):
    """A required field is missing or a value is out of range."""

    status_code = 400


class NotFoundError(BookstoreError):
    """No document matched an identifier-based operation."""

    status_code = 404


class UnexpectedError(BookstoreError):
    """Any other failure, including loss of store connectivity."""

    status_code = 500


class DatabaseConfigurationError(UnexpectedError):
    """The store cannot be reached or no connection string was configured."""
