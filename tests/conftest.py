"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- In-memory credential and token stores
- Wired domain services with a mocked notifier
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

import pytest

from src.adapters.hashing import BcryptPasswordHasher
from src.adapters.repository.memory import InMemoryCredentialStore, InMemoryTokenStore
from src.domain.credentials import CredentialManager
from src.domain.sessions import SessionIssuer, SessionPolicy
from src.domain.verification import VerificationEngine, VerificationPolicy

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"

START = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="session")
def hasher() -> BcryptPasswordHasher:
    """Minimum bcrypt cost keeps the suite fast."""
    return BcryptPasswordHasher(rounds=4)


@pytest.fixture
def accounts() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture
def tokens(accounts: InMemoryCredentialStore) -> InMemoryTokenStore:
    return InMemoryTokenStore(accounts)


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def engine(tokens: InMemoryTokenStore, notifier: Mock, clock: FrozenClock) -> VerificationEngine:
    return VerificationEngine(
        tokens=tokens, notifier=notifier, clock=clock, policy=VerificationPolicy()
    )


@pytest.fixture
def session_policy() -> SessionPolicy:
    return SessionPolicy(secret=TEST_SECRET)


@pytest.fixture
def sessions(session_policy: SessionPolicy, clock: FrozenClock) -> SessionIssuer:
    return SessionIssuer(policy=session_policy, clock=clock)


@pytest.fixture
def manager(
    accounts: InMemoryCredentialStore,
    hasher: BcryptPasswordHasher,
    engine: VerificationEngine,
    sessions: SessionIssuer,
    clock: FrozenClock,
) -> CredentialManager:
    return CredentialManager(
        accounts=accounts,
        hasher=hasher,
        verification=engine,
        sessions=sessions,
        clock=clock,
    )
