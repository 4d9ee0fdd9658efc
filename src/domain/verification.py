"""
Verification engine - Email verification token lifecycle.

Token State Machine
===================

States:
- CREATED: Issued and persisted, ``used=False``
- REDEEMED: Terminal, ``used=True``; the account is verified in the same step

Transitions:
    CREATED -> REDEEMED   (successful redemption before expiry)

Expiry is a guard evaluated at redemption time, not a scheduled transition.
An expired token stays CREATED until the sweep deletes it.

Atomicity of "mark token used + mark account verified" is delegated to the
token store (``TokenStore.redeem``), which performs both as one conditional
write.

Resend semantics: every issuance creates a new token. Earlier unconsumed
tokens for the same email remain redeemable until they expire.
"""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import timedelta

from .exceptions import (
    AccountNotFound,
    InvalidCode,
    NotificationFailed,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)
from .models import VerificationToken
from .ports import Clock, Notifier, RedeemResult, TokenKind, TokenStore

logger = logging.getLogger(__name__)

VERIFIED_MESSAGE = "Email verified successfully. You can now login."

CODE_DIGITS = 6


@dataclass(frozen=True)
class VerificationPolicy:
    """Expiry durations for verification artifacts."""

    link_ttl: timedelta = timedelta(hours=24)
    code_ttl: timedelta = timedelta(minutes=10)


@dataclass
class VerificationEngine:
    """
    Domain service for issuing and redeeming verification artifacts.

    The token is always persisted before dispatch, so a failed delivery
    never leaves an issued-but-unknown artifact behind.
    """

    tokens: TokenStore
    notifier: Notifier
    clock: Clock
    policy: VerificationPolicy = field(default_factory=VerificationPolicy)

    def issue_link_token(self, email: str) -> VerificationToken:
        """
        Issue a LINK token and dispatch it to the notifier.

        Raises:
            NotificationFailed: Token persisted but delivery failed
        """
        now = self.clock.now()
        token = VerificationToken(
            id=self._generate_token_id(),
            email=email,
            kind=TokenKind.LINK,
            expires_at=now + self.policy.link_ttl,
            created_at=now,
        )
        self.tokens.save(token)
        logger.info("Issued verification link for %s (expires %s)", email, token.expires_at)

        try:
            self.notifier.send_link(email, token.id)
        except Exception as e:
            logger.warning("Verification link dispatch failed for %s: %s", email, e)
            raise NotificationFailed(email, token.id) from e
        return token

    def issue_code_token(self, email: str) -> VerificationToken:
        """
        Issue a CODE token and dispatch the code to the notifier.

        Raises:
            NotificationFailed: Token persisted but delivery failed
        """
        now = self.clock.now()
        token = VerificationToken(
            id=self._generate_token_id(),
            email=email,
            kind=TokenKind.CODE,
            code=self._generate_code(),
            expires_at=now + self.policy.code_ttl,
            created_at=now,
        )
        self.tokens.save(token)
        logger.info("Issued verification code for %s (expires %s)", email, token.expires_at)

        try:
            self.notifier.send_code(email, token.code)
        except Exception as e:
            logger.warning("Verification code dispatch failed for %s: %s", email, e)
            raise NotificationFailed(email, token.id) from e
        return token

    def redeem_by_token(self, token_id: str) -> str:
        """
        Redeem a LINK (or any) token by its id.

        Raises:
            TokenNotFound: No such token
            TokenAlreadyUsed: Token was redeemed before
            TokenExpired: Past expiry
            AccountNotFound: No account for the token's email
        """
        result = self.tokens.redeem(token_id, self.clock.now())

        if result == RedeemResult.NOT_FOUND:
            raise TokenNotFound(token_id)
        if result == RedeemResult.ALREADY_USED:
            raise TokenAlreadyUsed(token_id)
        if result == RedeemResult.EXPIRED:
            raise TokenExpired(token_id)
        if result == RedeemResult.ACCOUNT_NOT_FOUND:
            raise AccountNotFound(token_id)

        logger.info("Email verified via link token")
        return VERIFIED_MESSAGE

    def redeem_by_code(self, email: str, code: str) -> str:
        """
        Redeem a CODE token by (email, code).

        Wrong and already-used codes both raise InvalidCode, so a guess
        never confirms that a code once existed.

        Raises:
            InvalidCode: No unused token matches
            TokenExpired: Matching token is past expiry
            AccountNotFound: No account for the email
        """
        now = self.clock.now()
        token = self.tokens.find_by_email_and_code_unused(email, code)
        if token is None:
            raise InvalidCode(email)
        if token.is_expired(now):
            raise TokenExpired(email)

        result = self.tokens.redeem(token.id, now)

        if result in (RedeemResult.NOT_FOUND, RedeemResult.ALREADY_USED):
            # Lost a race against a concurrent redemption or the sweep
            raise InvalidCode(email)
        if result == RedeemResult.EXPIRED:
            raise TokenExpired(email)
        if result == RedeemResult.ACCOUNT_NOT_FOUND:
            raise AccountNotFound(email)

        logger.info("Email verified via code for %s", email)
        return VERIFIED_MESSAGE

    def purge_expired(self) -> int:
        """Delete tokens past expiry. Returns the number removed."""
        return purge_expired_tokens(self.tokens, self.clock)

    def _generate_token_id(self) -> str:
        """256 bits from the secrets module, URL-safe."""
        return secrets.token_urlsafe(32)

    def _generate_code(self) -> str:
        """
        Generate a uniformly distributed 6-digit code.

        randbelow draws over exactly 10**6 values, so every code from
        000000 to 999999 is equally likely. Returns string to preserve
        leading zeros.
        """
        return f"{secrets.randbelow(10**CODE_DIGITS):0{CODE_DIGITS}d}"


def purge_expired_tokens(tokens: TokenStore, clock: Clock) -> int:
    """
    Delete tokens whose expiry is before ``clock.now()``.

    Needs no notifier, so background cleanup can run without a mail
    transport. Returns the number of tokens removed.
    """
    removed = tokens.delete_expired_before(clock.now())
    if removed:
        logger.info("Purged %d expired verification token(s)", removed)
    return removed
