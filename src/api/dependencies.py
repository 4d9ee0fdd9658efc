"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.hashing import BcryptPasswordHasher
from src.adapters.repository.postgres import PostgresCredentialStore, PostgresTokenStore
from src.adapters.smtp.console import ConsoleNotifier
from src.adapters.smtp.mailer import SmtpNotifier
from src.config.settings import get_settings
from src.domain.clock import SystemClock
from src.domain.credentials import CredentialManager
from src.domain.exceptions import InvalidSessionToken
from src.domain.models import Identity
from src.domain.ports import Notifier
from src.domain.sessions import SessionIssuer
from src.domain.verification import VerificationEngine

# Module-level singleton - SystemClock is stateless
_clock = SystemClock()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_clock() -> SystemClock:
    return _clock


@lru_cache
def get_password_hasher() -> BcryptPasswordHasher:
    """Get bcrypt hasher (singleton; computing the dummy hash is costly)."""
    return BcryptPasswordHasher(rounds=get_settings().bcrypt_cost)


@lru_cache
def get_notifier() -> Notifier:
    """Get the configured notifier backend (singleton)."""
    settings = get_settings()
    if settings.notifier_backend == "smtp":
        return SmtpNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.smtp_from,
            verification_base_url=settings.verification_base_url,
            link_expiry_hours=settings.link_expiry_hours,
            code_expiry_minutes=settings.code_expiry_minutes,
            username=settings.smtp_username,
            password=settings.smtp_password.get_secret_value() if settings.smtp_password else None,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleNotifier(settings.verification_base_url)


def get_verification_engine(request: Request) -> VerificationEngine:
    """Create verification engine backed by the Postgres token store."""
    return VerificationEngine(
        tokens=PostgresTokenStore(get_pool(request)),
        notifier=get_notifier(),
        clock=get_clock(),
        policy=get_settings().verification_policy(),
    )


def get_session_issuer() -> SessionIssuer:
    return SessionIssuer(policy=get_settings().session_policy(), clock=get_clock())


def get_credential_manager(request: Request) -> CredentialManager:
    """
    Create credential manager with injected dependencies.

    Wires together the stores, hasher, verification engine and session issuer.
    """
    settings = get_settings()
    return CredentialManager(
        accounts=PostgresCredentialStore(get_pool(request)),
        hasher=get_password_hasher(),
        verification=get_verification_engine(request),
        sessions=get_session_issuer(),
        clock=get_clock(),
        default_roles=frozenset(settings.default_roles),
    )


# Bearer security scheme for OpenAPI documentation
http_bearer = HTTPBearer()


def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> Identity:
    """
    Decode the session token from the Authorization header.

    FastAPI's HTTPBearer rejects a missing or non-Bearer header before
    this runs.
    """
    try:
        return issuer.decode(credentials.credentials)
    except InvalidSessionToken:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
