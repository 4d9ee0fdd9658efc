"""
Session issuer - Signed, self-contained bearer tokens.

Tokens are JWTs carrying exactly these claims:
- sub: username
- roles: sorted list of role labels
- iat / exp: issuance and expiry (exp = iat + lifetime)
- iss: static issuer label

Verification needs only the secret; there is no store and no revocation.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from .exceptions import InvalidSessionToken
from .models import Identity, SessionToken
from .ports import Clock

_REQUIRED_CLAIMS = ["sub", "roles", "iat", "exp"]


@dataclass(frozen=True)
class SessionPolicy:
    """Signing material and lifetime for session tokens."""

    secret: str
    lifetime: timedelta = timedelta(hours=1)
    algorithm: str = "HS256"
    issuer: str = "credential-service"


@dataclass
class SessionIssuer:
    """Mints and decodes session tokens. Pure aside from the clock."""

    policy: SessionPolicy
    clock: Clock

    def issue(self, identity: Identity) -> SessionToken:
        """
        Mint a signed token for an authenticated identity.

        Timestamps are truncated to whole seconds so that the returned
        instants equal the encoded claims.
        """
        issued_at = self.clock.now().replace(microsecond=0)
        expires_at = issued_at + self.policy.lifetime
        payload = {
            "sub": identity.username,
            "roles": sorted(identity.roles),
            "iss": self.policy.issuer,
            "iat": issued_at,
            "exp": expires_at,
        }
        encoded = jwt.encode(payload, self.policy.secret, algorithm=self.policy.algorithm)
        return SessionToken(
            token=encoded,
            subject=identity.username,
            roles=frozenset(identity.roles),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def decode(self, token: str) -> Identity:
        """
        Verify a token and return the identity it carries.

        Expiry is compared against the injected clock rather than the
        wall clock.

        Raises:
            InvalidSessionToken: Bad signature, missing claims, or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.policy.secret,
                algorithms=[self.policy.algorithm],
                issuer=self.policy.issuer,
                options={"require": _REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
            )
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
            roles = frozenset(str(role) for role in payload["roles"])
            subject = str(payload["sub"])
        except (jwt.InvalidTokenError, KeyError, TypeError, ValueError) as exc:
            raise InvalidSessionToken("Invalid session token") from exc

        if self.clock.now() >= expires_at:
            raise InvalidSessionToken("Session token expired")
        return Identity(username=subject, roles=roles)
