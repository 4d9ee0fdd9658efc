"""
API v1 routes.

Defines REST endpoints for registration, email verification, login
and the authenticated user profile.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from src.api.dependencies import (
    get_credential_manager,
    get_current_identity,
    get_verification_engine,
)
from src.api.models import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    RawEmail,
    RegisterRequest,
    VerifyCodeRequest,
)
from src.domain.credentials import CredentialManager
from src.domain.exceptions import (
    AccountNotFound,
    AuthError,
    DuplicateIdentity,
    InvalidCode,
    InvalidCredentials,
    NotificationFailed,
    NotVerified,
    TokenAlreadyUsed,
    TokenExpired,
    TokenNotFound,
)
from src.domain.models import Identity
from src.domain.verification import VerificationEngine

router = APIRouter(tags=["v1"])

# Status code and client-facing detail per domain error. Details are
# generic; exception messages never reach the client.
_ERROR_RESPONSES: dict[type[AuthError], tuple[int, str]] = {
    DuplicateIdentity: (status.HTTP_409_CONFLICT, "Registration failed"),
    InvalidCredentials: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    NotVerified: (status.HTTP_403_FORBIDDEN, "Please verify your email before logging in"),
    TokenNotFound: (status.HTTP_400_BAD_REQUEST, "Invalid verification token"),
    InvalidCode: (status.HTTP_400_BAD_REQUEST, "Invalid verification code"),
    TokenAlreadyUsed: (status.HTTP_409_CONFLICT, "Verification token already used"),
    TokenExpired: (status.HTTP_410_GONE, "Verification token has expired"),
    AccountNotFound: (status.HTTP_404_NOT_FOUND, "Account not found"),
    NotificationFailed: (
        status.HTTP_502_BAD_GATEWAY,
        "Verification could not be delivered. Please request a new one.",
    ),
}


def _http_error(exc: AuthError) -> HTTPException:
    status_code, detail = _ERROR_RESPONSES.get(
        type(exc), (status.HTTP_400_BAD_REQUEST, "Request failed")
    )
    return HTTPException(status_code=status_code, detail=detail)


def _error_docs(*errors: type[AuthError]) -> dict:
    return {
        _ERROR_RESPONSES[e][0]: {"model": ErrorResponse, "description": _ERROR_RESPONSES[e][1]}
        for e in errors
    }


@router.post(
    "/auth/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses=_error_docs(DuplicateIdentity, NotificationFailed),
    summary="Register a new user",
    description="Create an unverified account. A verification link is sent to the email.",
)
async def register(
    request_data: RegisterRequest,
    manager: CredentialManager = Depends(get_credential_manager),
) -> MessageResponse:
    """
    Register a new user and send a verification link.

    - **username**: Unique username
    - **email**: Unique email address
    - **password**: Password (minimum 8 characters)
    """
    try:
        message = manager.register(
            request_data.username, request_data.email, request_data.password
        )
    except AuthError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message=message)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses=_error_docs(InvalidCredentials, NotVerified),
    summary="Log in with username or email",
)
async def login(
    request_data: LoginRequest,
    manager: CredentialManager = Depends(get_credential_manager),
) -> LoginResponse:
    """Exchange valid credentials of a verified account for a bearer token."""
    try:
        session = manager.login(request_data.identifier, request_data.password)
    except AuthError as exc:
        raise _http_error(exc) from None
    return LoginResponse(
        token=session.token,
        expires_at=session.expires_at,
        username=session.subject,
        roles=sorted(session.roles),
    )


@router.get(
    "/auth/verify",
    response_model=MessageResponse,
    responses=_error_docs(TokenNotFound, TokenAlreadyUsed, TokenExpired, AccountNotFound),
    summary="Verify email with link token",
)
async def verify_email(
    token: str = Query(..., min_length=1),
    engine: VerificationEngine = Depends(get_verification_engine),
) -> MessageResponse:
    try:
        message = engine.redeem_by_token(token)
    except AuthError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message=message)


@router.post(
    "/auth/verify-code",
    response_model=MessageResponse,
    responses=_error_docs(InvalidCode, TokenExpired, AccountNotFound),
    summary="Verify email with 6-digit code",
)
async def verify_code(
    request_data: VerifyCodeRequest,
    engine: VerificationEngine = Depends(get_verification_engine),
) -> MessageResponse:
    try:
        message = engine.redeem_by_code(request_data.email, request_data.code)
    except AuthError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message=message)


@router.post(
    "/auth/resend-verification-link",
    response_model=MessageResponse,
    responses=_error_docs(NotificationFailed),
    summary="Send a new verification link",
    description="Issues a new link token. Previously issued tokens remain valid until they expire.",
)
async def resend_verification_link(
    email: RawEmail = Query(...),
    engine: VerificationEngine = Depends(get_verification_engine),
) -> MessageResponse:
    try:
        engine.issue_link_token(email)
    except AuthError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message="Verification link sent to your email")


@router.post(
    "/auth/resend-verification-code",
    response_model=MessageResponse,
    responses=_error_docs(NotificationFailed),
    summary="Send a new verification code",
    description="Issues a new 6-digit code. Previously issued codes remain valid until they expire.",
)
async def resend_verification_code(
    email: RawEmail = Query(...),
    engine: VerificationEngine = Depends(get_verification_engine),
) -> MessageResponse:
    try:
        engine.issue_code_token(email)
    except AuthError as exc:
        raise _http_error(exc) from None
    return MessageResponse(message="Verification code sent to your email")


@router.get(
    "/user/profile",
    response_model=ProfileResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid token"},
        **_error_docs(AccountNotFound),
    },
    summary="Profile of the authenticated user",
)
async def profile(
    identity: Identity = Depends(get_current_identity),
    manager: CredentialManager = Depends(get_credential_manager),
) -> ProfileResponse:
    try:
        account = manager.profile(identity.username)
    except AuthError as exc:
        raise _http_error(exc) from None
    return ProfileResponse(
        username=account.username,
        email=account.email,
        roles=sorted(account.roles),
        enabled=account.enabled,
        verified=account.verified,
        created_at=account.created_at,
    )
