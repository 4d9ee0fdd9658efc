"""
bcrypt password hasher adapter - Implements PasswordHasher protocol.

Security Design - Timing Oracle Prevention:
------------------------------------------
bcrypt.checkpw() is constant-time and costly (~100ms at cost factor 10),
which dominates response time. The domain verifies against ``dummy_hash``
when no account matched, so bcrypt always runs and account existence
cannot be inferred from latency.
"""

import bcrypt

# bcrypt only accepts cost factors in this range
_MIN_ROUNDS = 4
_MAX_ROUNDS = 31


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, rounds: int = 10) -> None:
        """
        Initialize hasher with a work factor.

        Args:
            rounds: bcrypt cost factor (>= 10 in production)
        """
        if not _MIN_ROUNDS <= rounds <= _MAX_ROUNDS:
            raise ValueError(f"bcrypt rounds must be in [{_MIN_ROUNDS}, {_MAX_ROUNDS}]")
        self._rounds = rounds
        self.dummy_hash = self.hash("dummy_password_for_timing_safety")

    def hash(self, plaintext: str) -> str:
        return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, plaintext: str, digest: str) -> bool:
        """Constant-time comparison; malformed digests simply fail."""
        try:
            return bcrypt.checkpw(plaintext.encode(), digest.encode())
        except (ValueError, TypeError):
            return False
