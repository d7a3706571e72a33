"""Core utility functions."""

_ASYNC_TO_SYNC_DRIVERS = {
    "+asyncpg": "+psycopg",
    "+aiosqlite": "",
}


def convert_async_db_url_to_sync(database_url: str) -> str:
    """
    Convert an async database URL to a sync database URL for Alembic.

    Converts postgresql+asyncpg:// to postgresql+psycopg:// (psycopg3) and
    sqlite+aiosqlite:// to plain sqlite://. Only the scheme is rewritten so
    SQLite's empty-host URLs (sqlite:///path) survive untouched.

    Args:
        database_url: The async database URL

    Returns:
        The sync database URL (unchanged if no async driver is present)
    """
    scheme, separator, rest = database_url.partition("://")
    for async_driver, sync_driver in _ASYNC_TO_SYNC_DRIVERS.items():
        if async_driver in scheme:
            return f"{scheme.replace(async_driver, sync_driver)}{separator}{rest}"
    return database_url
