"""Dataclass-based application settings.

All tunables live on a frozen dataclass built from environment variables.
There are no baked-in credentials: ``DATABASE_URL`` must be supplied by the
deployment (or by ``core.database.configure_database`` in tests/scripts).
"""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the async engine."""

    url: str | None = None
    pool_size: int = 20
    max_overflow: int = 10
    echo: bool = False
    create_tables: bool = False


@dataclass(frozen=True)
class CatalogConfig:
    """Paging defaults and the guest identity used by the cart."""

    guest_user_id: str = "guest"
    books_page_size: int = 50
    reviews_page_size: int = 20


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    """Complete configuration for the bookstore API.

    Usage::

        settings = Settings.from_env()
        if settings.database.create_tables:
            await init_db()
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)

    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables.

        Example: DATABASE_URL=postgresql+asyncpg://... DB_POOL_SIZE=5
        """
        database = DatabaseConfig(
            url=os.getenv("DATABASE_URL") or None,
            pool_size=int(os.getenv("DB_POOL_SIZE", "20")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            echo=_env_bool("DB_ECHO"),
            create_tables=_env_bool("BOOKSTORE_CREATE_TABLES"),
        )
        catalog = CatalogConfig(
            guest_user_id=os.getenv("BOOKSTORE_GUEST_USER", "guest"),
            books_page_size=int(os.getenv("BOOKSTORE_BOOKS_PAGE_SIZE", "50")),
            reviews_page_size=int(os.getenv("BOOKSTORE_REVIEWS_PAGE_SIZE", "20")),
        )
        origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        return cls(
            database=database,
            catalog=catalog,
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


settings = Settings.from_env()
