"""
In-memory repository adapters - Implement CredentialStore and TokenStore.

Both stores share one re-entrant lock, so a redemption that flips
``token.used`` and ``account.verified`` is a single critical section, the
in-process equivalent of one database transaction. Records are copied on
the way in and out so callers never mutate stored state directly.
"""

import threading
from dataclasses import replace
from datetime import datetime

from src.domain.models import Account, VerificationToken
from src.domain.ports import DuplicateField, RedeemResult


class InMemoryCredentialStore:
    """
    Implements CredentialStore protocol with dictionaries.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, lock=None) -> None:
        self.lock = lock or threading.RLock()
        self._by_username: dict[str, Account] = {}
        self._email_index: dict[str, str] = {}

    def find_by_username(self, username: str) -> Account | None:
        with self.lock:
            account = self._by_username.get(username)
            return replace(account) if account is not None else None

    def find_by_email(self, email: str) -> Account | None:
        with self.lock:
            username = self._email_index.get(email)
            if username is None:
                return None
            return replace(self._by_username[username])

    def exists_by_username(self, username: str) -> bool:
        with self.lock:
            return username in self._by_username

    def exists_by_email(self, email: str) -> bool:
        with self.lock:
            return email in self._email_index

    def save(self, account: Account) -> None:
        with self.lock:
            previous = self._by_username.get(account.username)
            if previous is not None and previous.email != account.email:
                del self._email_index[previous.email]
            self._by_username[account.username] = replace(account)
            self._email_index[account.email] = account.username

    def insert_if_absent(self, account: Account) -> DuplicateField | None:
        with self.lock:
            if account.username in self._by_username:
                return DuplicateField.USERNAME
            if account.email in self._email_index:
                return DuplicateField.EMAIL
            self.save(account)
            return None

    def count(self) -> int:
        with self.lock:
            return len(self._by_username)


class InMemoryTokenStore:
    """
    Implements TokenStore protocol with a dictionary keyed by token id.

    Needs the credential store to verify accounts during redemption;
    the two share the credential store's lock.
    """

    def __init__(self, accounts: InMemoryCredentialStore) -> None:
        self._accounts = accounts
        self._lock = accounts.lock
        self._tokens: dict[str, VerificationToken] = {}

    def find_by_id(self, token_id: str) -> VerificationToken | None:
        with self._lock:
            token = self._tokens.get(token_id)
            return replace(token) if token is not None else None

    def find_by_email_and_code_unused(self, email: str, code: str) -> VerificationToken | None:
        with self._lock:
            matches = [
                t
                for t in self._tokens.values()
                if t.email == email and t.code == code and not t.used
            ]
            if not matches:
                return None
            # Newest first; among equal timestamps the latest issued wins
            return replace(max(reversed(matches), key=lambda t: t.created_at))

    def find_by_email(self, email: str) -> list[VerificationToken]:
        with self._lock:
            return [replace(t) for t in self._tokens.values() if t.email == email]

    def save(self, token: VerificationToken) -> None:
        with self._lock:
            self._tokens[token.id] = replace(token)

    def delete_expired_before(self, instant: datetime) -> int:
        with self._lock:
            expired = [tid for tid, t in self._tokens.items() if t.expires_at < instant]
            for token_id in expired:
                del self._tokens[token_id]
            return len(expired)

    def redeem(self, token_id: str, now: datetime) -> RedeemResult:
        with self._lock:
            token = self._tokens.get(token_id)
            if token is None:
                return RedeemResult.NOT_FOUND
            if token.used:
                return RedeemResult.ALREADY_USED
            if token.is_expired(now):
                return RedeemResult.EXPIRED

            account = self._accounts.find_by_email(token.email)
            if account is None:
                return RedeemResult.ACCOUNT_NOT_FOUND

            account.verified = True
            self._accounts.save(account)
            token.used = True
            return RedeemResult.SUCCESS
