"""Repository adapters - Database and in-process implementations."""

from .memory import InMemoryCredentialStore, InMemoryTokenStore
from .postgres import PostgresCredentialStore, PostgresTokenStore, run_migrations

__all__ = [
    "InMemoryCredentialStore",
    "InMemoryTokenStore",
    "PostgresCredentialStore",
    "PostgresTokenStore",
    "run_migrations",
]
