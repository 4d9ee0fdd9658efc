"""
Domain layer - Pure business logic with zero framework imports.

This package contains the credential and verification-token lifecycle:
registration, email verification (link and code), login and session
issuance. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .clock import SystemClock
from .credentials import CredentialManager
from .exceptions import (
    AccountNotFound,
    AuthError,
    DuplicateIdentity,
    InvalidCode,
    InvalidCredentials,
    InvalidSessionToken,
    NotificationFailed,
    NotVerified,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)
from .models import Account, Identity, SessionToken, VerificationToken
from .ports import (
    Clock,
    CredentialStore,
    DuplicateField,
    Notifier,
    PasswordHasher,
    RedeemResult,
    TokenKind,
    TokenStore,
)
from .sessions import SessionIssuer, SessionPolicy
from .verification import VerificationEngine, VerificationPolicy, purge_expired_tokens

__all__ = [
    "Account",
    "AccountNotFound",
    "AuthError",
    "Clock",
    "CredentialManager",
    "CredentialStore",
    "DuplicateField",
    "DuplicateIdentity",
    "Identity",
    "InvalidCode",
    "InvalidCredentials",
    "InvalidSessionToken",
    "NotVerified",
    "NotificationFailed",
    "Notifier",
    "PasswordHasher",
    "RedeemResult",
    "SessionIssuer",
    "SessionPolicy",
    "SessionToken",
    "SystemClock",
    "TokenAlreadyUsed",
    "TokenExpired",
    "TokenKind",
    "TokenNotFound",
    "TokenStore",
    "VerificationEngine",
    "VerificationPolicy",
    "VerificationToken",
    "purge_expired_tokens",
]
