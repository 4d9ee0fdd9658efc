"""
Credential manager - Registration and authentication.

Account lifecycle as seen from this service:

    registered (verified=False, enabled=True)
        -> verified (via VerificationEngine redemption, exactly once)

Authentication order
====================

1. Resolve the account by username, falling back to email.
2. Always run the password hash check, against a dummy digest when no
   account matched, so the response time does not reveal existence.
3. Unknown account, disabled account, or password mismatch all raise the
   same InvalidCredentials.
4. Only then is the verified flag inspected: a correct password on an
   unverified account raises NotVerified. A wrong password on an
   unverified account stays InvalidCredentials.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import AccountNotFound, DuplicateIdentity, InvalidCredentials, NotVerified
from .models import DEFAULT_ROLES, Account, Identity, SessionToken
from .ports import Clock, CredentialStore, DuplicateField, PasswordHasher
from .sessions import SessionIssuer
from .verification import VerificationEngine

logger = logging.getLogger(__name__)

REGISTERED_MESSAGE = (
    "User registered successfully. Please check your email to verify your account."
)


@dataclass
class CredentialManager:
    """
    Domain service for account registration and login.

    Orchestrates uniqueness checks, password hashing, account persistence
    and the initial verification link.
    """

    accounts: CredentialStore
    hasher: PasswordHasher
    verification: VerificationEngine
    sessions: SessionIssuer
    clock: Clock
    default_roles: frozenset[str] = field(default=DEFAULT_ROLES)

    def register(self, username: str, email: str, password: str) -> str:
        """
        Register a new, unverified account and send a verification link.

        Args:
            username: Unique, case-sensitive username
            email: Unique, case-sensitive email address
            password: Plaintext password (hashed before storage)

        Returns:
            Human-readable confirmation

        Raises:
            DuplicateIdentity: Username (checked first) or email is taken
            NotificationFailed: Account and token exist but delivery failed
        """
        if self.accounts.exists_by_username(username):
            raise DuplicateIdentity(DuplicateField.USERNAME.value)
        if self.accounts.exists_by_email(email):
            raise DuplicateIdentity(DuplicateField.EMAIL.value)

        account = Account(
            username=username,
            email=email,
            password_hash=self.hasher.hash(password),
            roles=frozenset(self.default_roles),
            created_at=self.clock.now(),
        )

        # Pre-checks above are advisory; the conditional insert settles races
        collided = self.accounts.insert_if_absent(account)
        if collided is not None:
            raise DuplicateIdentity(collided.value)

        logger.info("Registered account %s", username)
        self.verification.issue_link_token(email)
        return REGISTERED_MESSAGE

    def authenticate(self, identifier: str, password: str) -> Identity:
        """
        Validate credentials without mutating any state.

        Args:
            identifier: Username or email
            password: Plaintext password

        Returns:
            Identity with username and roles

        Raises:
            InvalidCredentials: Unknown, disabled, or wrong password
            NotVerified: Correct password but email not verified
        """
        account = self.accounts.find_by_username(identifier)
        if account is None:
            account = self.accounts.find_by_email(identifier)

        digest = account.password_hash if account is not None else self.hasher.dummy_hash
        password_valid = self.hasher.verify(password, digest)

        if account is None or not account.enabled or not password_valid:
            logger.warning("Rejected login attempt")
            raise InvalidCredentials()

        if not account.verified:
            raise NotVerified(account.username)

        return Identity(username=account.username, roles=frozenset(account.roles))

    def login(self, identifier: str, password: str) -> SessionToken:
        """Authenticate and mint a session token."""
        identity = self.authenticate(identifier, password)
        token = self.sessions.issue(identity)
        logger.info("Issued session for %s", identity.username)
        return token

    def profile(self, username: str) -> Account:
        """
        Look up the account behind an authenticated session subject.

        Raises:
            AccountNotFound: Subject no longer maps to an account
        """
        account = self.accounts.find_by_username(username)
        if account is None:
            raise AccountNotFound(username)
        return account
