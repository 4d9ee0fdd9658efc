"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import Account, VerificationToken


class TokenKind(str, Enum):
    """
    Kind of verification artifact.

    LINK tokens are redeemed by their opaque id (clicked link).
    CODE tokens are redeemed by (email, 6-digit code).
    """

    LINK = "LINK"
    CODE = "CODE"


class DuplicateField(str, Enum):
    """Which unique key collided on registration."""

    USERNAME = "username"
    EMAIL = "email"


class RedeemResult(Enum):
    """
    Result of an atomic redemption attempt.

    Used by TokenStore.redeem() to indicate success or specific failure.
    Checks are applied in declaration order after SUCCESS.
    """

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    ACCOUNT_NOT_FOUND = "account_not_found"


class Clock(Protocol):
    """Port interface for the current instant."""

    def now(self) -> datetime:
        """Return the current timezone-aware UTC instant."""
        ...


class CredentialStore(Protocol):
    """Port interface for account persistence."""

    def find_by_username(self, username: str) -> "Account | None": ...

    def find_by_email(self, email: str) -> "Account | None": ...

    def exists_by_username(self, username: str) -> bool: ...

    def exists_by_email(self, email: str) -> bool: ...

    def save(self, account: "Account") -> None:
        """Insert or update an account keyed by username."""
        ...

    def insert_if_absent(self, account: "Account") -> DuplicateField | None:
        """
        Atomically insert an account unless username or email is taken.

        Returns:
            None if inserted, otherwise the field that collided
            (username is reported when both collide)
        """
        ...


class TokenStore(Protocol):
    """Port interface for verification token persistence."""

    def find_by_id(self, token_id: str) -> "VerificationToken | None": ...

    def find_by_email_and_code_unused(
        self, email: str, code: str
    ) -> "VerificationToken | None": ...

    def save(self, token: "VerificationToken") -> None: ...

    def delete_expired_before(self, instant: datetime) -> int:
        """Delete tokens whose expiry is before ``instant``; return the count."""
        ...

    def redeem(self, token_id: str, now: datetime) -> RedeemResult:
        """
        Consume a token and verify its account in one atomic step.

        Checks, in order: token exists, token unused, ``now`` not past
        expiry, account for token email exists. Only on SUCCESS are both
        ``token.used`` and ``account.verified`` set. Two concurrent calls
        for the same token yield exactly one SUCCESS.
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for the password hashing primitive."""

    dummy_hash: str

    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, digest: str) -> bool: ...


class Notifier(Protocol):
    """Port interface for out-of-band delivery of verification artifacts."""

    def send_link(self, email: str, token_id: str) -> None:
        """
        Deliver a verification link.

        Args:
            email: Recipient email address
            token_id: Opaque LINK token id embedded in the URL
        """
        ...

    def send_code(self, email: str, code: str) -> None:
        """
        Deliver a numeric verification code.

        Args:
            email: Recipient email address
            code: 6-digit verification code
        """
        ...
