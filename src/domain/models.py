"""
Domain models - Accounts, verification tokens and session tokens.

Plain dataclasses; persistence adapters map them to and from rows.
"""

from dataclasses import dataclass, field
from datetime import datetime

from .ports import TokenKind

DEFAULT_ROLES: frozenset[str] = frozenset({"USER"})


@dataclass
class Account:
    """
    A registered user account.

    ``verified`` flips to True exactly once, through token redemption.
    ``enabled`` is an independent kill switch.
    """

    username: str
    email: str
    password_hash: str
    created_at: datetime
    roles: frozenset[str] = DEFAULT_ROLES
    enabled: bool = True
    verified: bool = False


@dataclass
class VerificationToken:
    """
    Single-use proof-of-email artifact.

    ``expires_at`` is fixed at creation and never extended.
    ``code`` is only set for CODE tokens.
    """

    id: str
    email: str
    kind: TokenKind
    expires_at: datetime
    created_at: datetime
    code: str | None = None
    used: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Expired strictly after ``expires_at``."""
        return now > self.expires_at


@dataclass(frozen=True)
class Identity:
    """Authenticated principal: who and with which roles."""

    username: str
    roles: frozenset[str] = field(default=DEFAULT_ROLES)


@dataclass(frozen=True)
class SessionToken:
    """Signed bearer token plus the claims it carries."""

    token: str
    subject: str
    roles: frozenset[str]
    issued_at: datetime
    expires_at: datetime
