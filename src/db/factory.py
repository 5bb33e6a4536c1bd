from src.config import get_settings
from src.db.interfaces.postgresql import PostgreSQLDatabase


def make_database() -> PostgreSQLDatabase:
    """
    Create the PostgreSQL database wrapper from settings.

    Returns:
        PostgreSQLDatabase: Engine + session factory
    """
    settings = get_settings()
    return PostgreSQLDatabase(
        database_url=settings.postgres_database_url,
        echo=settings.postgres_echo_sql,
        pool_size=settings.postgres_pool_size,
        max_overflow=settings.postgres_max_overflow,
    )
