"""
Shared fixtures for integration tests.

Requires PostgreSQL (DATABASE_URL). Tests are skipped when the database
is unreachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresCredentialStore,
    PostgresTokenStore,
    run_migrations,
)
from src.config.settings import get_settings

pytestmark = pytest.mark.integration


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool and apply migrations once per session."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=2):
            pass
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not available")

    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=25, open=True)
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM verification_tokens")
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield


@pytest.fixture
def pg_accounts(pool: ConnectionPool) -> PostgresCredentialStore:
    return PostgresCredentialStore(pool)


@pytest.fixture
def pg_tokens(pool: ConnectionPool) -> PostgresTokenStore:
    return PostgresTokenStore(pool)
