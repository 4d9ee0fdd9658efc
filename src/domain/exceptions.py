"""
Domain exceptions - Semantic error types for the credential lifecycle.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
The transport layer maps each of them to a status code.
"""


class AuthError(Exception):
    """Base class for credential and verification domain errors."""

    pass


class DuplicateIdentity(AuthError):
    """Username or email is already registered."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} is already registered")
        self.field = field


class InvalidCredentials(AuthError):
    """Unknown identifier, disabled account, or password mismatch."""

    pass


class NotVerified(AuthError):
    """Credential matched but the email address is not verified yet."""

    pass


class TokenNotFound(AuthError):
    """No verification token with the given id."""

    pass


class TokenAlreadyUsed(AuthError):
    """Verification token was already redeemed."""

    pass


class TokenExpired(AuthError):
    """Verification token or code is past its expiry instant."""

    pass


class InvalidCode(AuthError):
    """No unused code matches the email (wrong or already used)."""

    pass


class AccountNotFound(AuthError):
    """No account exists for the token's email or session subject."""

    pass


class NotificationFailed(AuthError):
    """
    Verification artifact was persisted but could not be delivered.

    The token stays valid; the caller may resend.
    """

    def __init__(self, email: str, token_id: str) -> None:
        super().__init__(f"Could not deliver verification to {email}")
        self.email = email
        self.token_id = token_id


class InvalidSessionToken(AuthError):
    """Bearer token has a bad signature, missing claims, or is expired."""

    pass
