"""
Unit tests for SessionIssuer.

Tests verify the claim contract, signature verification and expiry
evaluated against the injected clock.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from src.domain.exceptions import InvalidSessionToken
from src.domain.models import Identity
from src.domain.sessions import SessionIssuer, SessionPolicy

ALICE = Identity(username="alice", roles=frozenset({"USER", "ADMIN"}))


def raw_claims(token: str, policy: SessionPolicy) -> dict:
    """Decode without expiry checks to inspect claims."""
    return jwt.decode(
        token, policy.secret, algorithms=[policy.algorithm], options={"verify_exp": False}
    )


class TestIssue:
    """Tests for issue."""

    def test_claims_contract(self, sessions: SessionIssuer, session_policy, clock) -> None:
        """Token carries sub, roles, iat, exp, iss and nothing else."""
        session = sessions.issue(ALICE)

        claims = raw_claims(session.token, session_policy)
        assert set(claims) == {"sub", "roles", "iat", "exp", "iss"}
        assert claims["sub"] == "alice"
        assert claims["roles"] == ["ADMIN", "USER"]
        assert claims["iat"] == int(clock.now().timestamp())
        assert claims["exp"] == claims["iat"] + 3600

    def test_session_token_fields(self, sessions: SessionIssuer, clock) -> None:
        """Returned SessionToken mirrors the encoded claims."""
        session = sessions.issue(ALICE)

        assert session.subject == "alice"
        assert session.roles == ALICE.roles
        assert session.issued_at == clock.now()
        assert session.expires_at == clock.now() + timedelta(hours=1)

    def test_configured_lifetime(self, session_policy, clock) -> None:
        """Lifetime comes from the policy."""
        issuer = SessionIssuer(
            policy=replace(session_policy, lifetime=timedelta(minutes=5)), clock=clock
        )

        session = issuer.issue(ALICE)
        assert session.expires_at - session.issued_at == timedelta(minutes=5)

    def test_subsecond_instant_truncated(self, sessions: SessionIssuer, clock) -> None:
        """issued_at is whole seconds so it equals the iat claim."""
        clock.current = datetime(2026, 1, 1, 12, 0, 0, 750_000, tzinfo=UTC)

        session = sessions.issue(ALICE)
        assert session.issued_at == datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def test_issue_is_deterministic(self, sessions: SessionIssuer) -> None:
        """Same identity, clock and secret give the same token."""
        assert sessions.issue(ALICE).token == sessions.issue(ALICE).token

    def test_signed_with_hs256(self, sessions: SessionIssuer) -> None:
        """Header declares the HS256 algorithm."""
        header = jwt.get_unverified_header(sessions.issue(ALICE).token)
        assert header["alg"] == "HS256"


class TestDecode:
    """Tests for decode."""

    def test_roundtrip_identity(self, sessions: SessionIssuer) -> None:
        """Decoding a fresh token returns the issued identity."""
        assert sessions.decode(sessions.issue(ALICE).token) == ALICE

    def test_expired_token_rejected(self, sessions: SessionIssuer, clock) -> None:
        """Token is rejected once the clock reaches exp."""
        token = sessions.issue(ALICE).token
        clock.advance(hours=1)

        with pytest.raises(InvalidSessionToken):
            sessions.decode(token)

    def test_valid_just_before_expiry(self, sessions: SessionIssuer, clock) -> None:
        """Token is accepted one second before exp."""
        token = sessions.issue(ALICE).token
        clock.advance(minutes=59, seconds=59)

        assert sessions.decode(token).username == "alice"

    def test_wrong_secret_rejected(self, sessions: SessionIssuer, session_policy, clock) -> None:
        """Token signed with another secret fails verification."""
        other = SessionIssuer(
            policy=replace(session_policy, secret="another-secret-key-of-sufficient-size!!"),
            clock=clock,
        )

        with pytest.raises(InvalidSessionToken):
            sessions.decode(other.issue(ALICE).token)

    def test_tampered_token_rejected(self, sessions: SessionIssuer) -> None:
        """Modified payload breaks the signature."""
        header, payload, signature = sessions.issue(ALICE).token.split(".")
        tampered = ".".join([header, payload[:-2] + "AA", signature])

        with pytest.raises(InvalidSessionToken):
            sessions.decode(tampered)

    def test_garbage_rejected(self, sessions: SessionIssuer) -> None:
        """Non-JWT input is rejected."""
        with pytest.raises(InvalidSessionToken):
            sessions.decode("not-a-token")

    def test_missing_roles_claim_rejected(self, sessions: SessionIssuer, session_policy, clock) -> None:
        """Tokens without the roles claim are rejected."""
        token = jwt.encode(
            {
                "sub": "alice",
                "iss": session_policy.issuer,
                "iat": clock.now(),
                "exp": clock.now() + timedelta(hours=1),
            },
            session_policy.secret,
            algorithm="HS256",
        )

        with pytest.raises(InvalidSessionToken):
            sessions.decode(token)

    def test_wrong_issuer_rejected(self, sessions: SessionIssuer, session_policy, clock) -> None:
        """Tokens from another issuer are rejected."""
        other = SessionIssuer(policy=replace(session_policy, issuer="someone-else"), clock=clock)

        with pytest.raises(InvalidSessionToken):
            sessions.decode(other.issue(ALICE).token)
