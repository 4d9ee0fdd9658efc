"""
PostgreSQL repository adapters - Implement CredentialStore and TokenStore.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
------------------
1. **Registration**: ``INSERT ... ON CONFLICT DO NOTHING`` against the
   UNIQUE constraints on username and email. Two concurrent inserts of the
   same identity cannot both succeed; no check-then-insert window exists.

2. **Redemption**: one transaction that locks the token row with
   ``SELECT ... FOR UPDATE``, re-checks used/expiry, verifies the account
   and marks the token used (``WHERE used = FALSE``). A concurrent
   redeemer blocks on the row lock and then observes ``used = TRUE``.

3. **Expiry** is compared against the application clock passed in by the
   domain, so the service and its tests share one notion of "now".
"""

import logging
from datetime import datetime
from pathlib import Path

from psycopg_pool import ConnectionPool

from src.domain.models import Account, VerificationToken
from src.domain.ports import DuplicateField, RedeemResult, TokenKind

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "username, email, password_hash, roles, enabled, verified, created_at"
_TOKEN_COLUMNS = "id, email, code, kind, expires_at, used, created_at"


def _account_from_row(row: tuple) -> Account:
    return Account(
        username=row[0],
        email=row[1],
        password_hash=row[2],
        roles=frozenset(row[3]),
        enabled=row[4],
        verified=row[5],
        created_at=row[6],
    )


def _token_from_row(row: tuple) -> VerificationToken:
    return VerificationToken(
        id=row[0],
        email=row[1],
        code=row[2],
        kind=TokenKind(row[3]),
        expires_at=row[4],
        used=row[5],
        created_at=row[6],
    )


class PostgresCredentialStore:
    """
    Implements CredentialStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_username(self, username: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE username = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (username,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def find_by_email(self, email: str) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None

    def exists_by_username(self, username: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM accounts WHERE username = %s", (username,))
            return cursor.fetchone() is not None

    def exists_by_email(self, email: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM accounts WHERE email = %s", (email,))
            return cursor.fetchone() is not None

    def save(self, account: Account) -> None:
        """Upsert keyed by username. created_at is never overwritten."""
        sql = f"""
            INSERT INTO accounts ({_ACCOUNT_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (username) DO UPDATE
            SET email = EXCLUDED.email,
                password_hash = EXCLUDED.password_hash,
                roles = EXCLUDED.roles,
                enabled = EXCLUDED.enabled,
                verified = accounts.verified OR EXCLUDED.verified
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, self._params(account))
            conn.commit()

    def insert_if_absent(self, account: Account) -> DuplicateField | None:
        """
        Atomically insert an account unless username or email is taken.

        ON CONFLICT without a target covers both UNIQUE constraints.
        When nothing was inserted, the colliding field is looked up in
        the same transaction, username first.
        """
        sql = f"""
            INSERT INTO accounts ({_ACCOUNT_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT DO NOTHING
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, self._params(account))
            if cursor.rowcount == 1:
                conn.commit()
                return None

            cursor.execute("SELECT 1 FROM accounts WHERE username = %s", (account.username,))
            username_taken = cursor.fetchone() is not None
            conn.commit()
        return DuplicateField.USERNAME if username_taken else DuplicateField.EMAIL

    def _params(self, account: Account) -> tuple:
        return (
            account.username,
            account.email,
            account.password_hash,
            sorted(account.roles),
            account.enabled,
            account.verified,
            account.created_at,
        )


class PostgresTokenStore:
    """
    Implements TokenStore protocol via psycopg3.

    Accounts and tokens live in the same database, so redemption is one
    local transaction spanning both tables.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find_by_id(self, token_id: str) -> VerificationToken | None:
        sql = f"SELECT {_TOKEN_COLUMNS} FROM verification_tokens WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token_id,))
            row = cursor.fetchone()
        return _token_from_row(row) if row is not None else None

    def find_by_email_and_code_unused(self, email: str, code: str) -> VerificationToken | None:
        # Most recent first when a resend produced a duplicate code
        sql = f"""
            SELECT {_TOKEN_COLUMNS} FROM verification_tokens
            WHERE email = %s AND code = %s AND used = FALSE
            ORDER BY created_at DESC
            LIMIT 1
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (email, code))
            row = cursor.fetchone()
        return _token_from_row(row) if row is not None else None

    def save(self, token: VerificationToken) -> None:
        sql = f"""
            INSERT INTO verification_tokens ({_TOKEN_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (id) DO UPDATE
            SET used = verification_tokens.used OR EXCLUDED.used
        """
        params = (
            token.id,
            token.email,
            token.code,
            token.kind.value,
            token.expires_at,
            token.used,
            token.created_at,
        )
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, params)
            conn.commit()

    def delete_expired_before(self, instant: datetime) -> int:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute("DELETE FROM verification_tokens WHERE expires_at < %s", (instant,))
            conn.commit()
            return cursor.rowcount

    def redeem(self, token_id: str, now: datetime) -> RedeemResult:
        """
        Consume a token and verify its account in one transaction.

        The row lock serializes concurrent redeemers of the same token;
        the conditional UPDATE on ``used = FALSE`` is the final guard.
        """
        select_sql = """
            SELECT email, used, expires_at
            FROM verification_tokens
            WHERE id = %s
            FOR UPDATE
        """

        verify_sql = "UPDATE accounts SET verified = TRUE WHERE email = %s"

        consume_sql = """
            UPDATE verification_tokens
            SET used = TRUE
            WHERE id = %s AND used = FALSE
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (token_id,))
            row = cursor.fetchone()

            if row is None:
                conn.commit()
                return RedeemResult.NOT_FOUND

            email, used, expires_at = row
            if used:
                conn.commit()
                return RedeemResult.ALREADY_USED
            if now > expires_at:
                conn.commit()
                return RedeemResult.EXPIRED

            cursor.execute(verify_sql, (email,))
            if cursor.rowcount == 0:
                conn.rollback()
                return RedeemResult.ACCOUNT_NOT_FOUND

            cursor.execute(consume_sql, (token_id,))
            if cursor.rowcount == 0:
                conn.rollback()
                return RedeemResult.ALREADY_USED

            conn.commit()
            return RedeemResult.SUCCESS


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
