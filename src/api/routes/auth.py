"""Authentication routes (register, login, logout, profile, Google sign-in)."""

import logging
import os
import secrets
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from api.dependencies import (
    get_credential_verifier,
    get_federated_resolver,
    get_identity_provider,
    get_password_hasher,
    get_session_principal_store,
    get_user_directory,
)
from api.models import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from api.security import (
    SESSION_COOKIE_SECURE,
    clear_session_cookie,
    get_current_principal_required,
    session_cookie,
    set_session_cookie,
)
from domain.model.auth_result import AuthErrorCode
from domain.model.errors import (
    DirectoryError,
    DuplicateError,
    IdentityProviderError,
    NotFoundError,
    SessionStoreError,
    ValidationError,
)
from domain.model.principal import Principal
from port.identity_provider import IdentityProvider
from port.password_hasher import PasswordHasher
from port.user_directory import UserDirectory
from services import auth_service
from services.credential_verifier import CredentialVerifier
from services.federated_identity_resolver import FederatedIdentityResolver
from services.session_principal_store import SessionPrincipalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
OAUTH_STATE_COOKIE = "storefront_oauth_state"
OAUTH_STATE_MAX_AGE = 600

_AUTH_ERROR_STATUS = {
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.ACCOUNT_DISABLED: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.DIRECTORY_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _auth_error(code: AuthErrorCode) -> HTTPException:
    return HTTPException(status_code=_AUTH_ERROR_STATUS[code], detail=code.message)


def _unavailable() -> HTTPException:
    return _auth_error(AuthErrorCode.DIRECTORY_ERROR)


def _start_session(
    response: Response,
    store: SessionPrincipalStore,
    principal: Principal,
    previous_token: Optional[str],
) -> None:
    """Bind a fresh session, discarding any session the client already had."""
    store.unbind(previous_token)
    token = store.bind(principal)
    set_session_cookie(response, token, store.ttl_seconds)


def _client_extra(request: Request) -> dict:
    return {
        "ipAddress": request.client.host if request.client else None,
        "userAgent": request.headers.get("user-agent"),
    }


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    previous_token: Optional[str] = Depends(session_cookie),
    directory: UserDirectory = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
    store: SessionPrincipalStore = Depends(get_session_principal_store),
):
    """Register a local account and sign it in.

    Raises:
        HTTPException: 409 if email already exists, 400 if the password is too weak,
            503 if storage is unavailable
    """
    try:
        user = auth_service.register(
            directory,
            hasher,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
        )
        _start_session(response, store, Principal.from_user(user), previous_token)
    except DuplicateError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (DirectoryError, SessionStoreError):
        raise _unavailable()

    logger.info("Session started", extra={"userId": user.id, "method": "local", **_client_extra(request)})
    return AuthResponse(user=UserResponse.from_domain(user))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    previous_token: Optional[str] = Depends(session_cookie),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    directory: UserDirectory = Depends(get_user_directory),
    store: SessionPrincipalStore = Depends(get_session_principal_store),
):
    """Email/password login.

    Raises:
        HTTPException: 401 invalid email or password, 403 deactivated account,
            503 storage unavailable
    """
    result = verifier.verify(body.email, body.password)
    if not result.ok:
        raise _auth_error(result.error)

    try:
        auth_service.record_login(directory, result.principal)
        _start_session(response, store, result.principal, previous_token)
        user = directory.get_by_id(result.principal.id)
    except (DirectoryError, SessionStoreError):
        raise _unavailable()
    if user is None:
        raise _auth_error(AuthErrorCode.INVALID_CREDENTIALS)

    logger.info("Session started", extra={"userId": user.id, "method": "local", **_client_extra(request)})
    return AuthResponse(user=UserResponse.from_domain(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    token: Optional[str] = Depends(session_cookie),
    store: SessionPrincipalStore = Depends(get_session_principal_store),
):
    """End the current session. Safe to call without one."""
    try:
        store.unbind(token)
    except SessionStoreError:
        raise _unavailable()
    clear_session_cookie(response)
    logger.info("User logged out", extra=_client_extra(request))
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=UserResponse)
def get_me(
    principal: Principal = Depends(get_current_principal_required),
    directory: UserDirectory = Depends(get_user_directory),
):
    """Current user's record, read fresh from the directory."""
    try:
        user = directory.get_by_id(principal.id)
    except DirectoryError:
        raise _unavailable()
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return UserResponse.from_domain(user)


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal_required),
    directory: UserDirectory = Depends(get_user_directory),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    try:
        auth_service.change_password(
            directory,
            hasher,
            user_id=principal.id,
            current_password=body.current_password,
            new_password=body.new_password,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    except DirectoryError:
        raise _unavailable()
    return MessageResponse(message="Password changed successfully")


@router.put("/profile", response_model=UserResponse)
def update_profile(
    body: ProfileUpdateRequest,
    principal: Principal = Depends(get_current_principal_required),
    directory: UserDirectory = Depends(get_user_directory),
):
    try:
        user = auth_service.update_profile(directory, principal.id, **body.model_dump(exclude_none=True))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    except DirectoryError:
        raise _unavailable()
    return UserResponse.from_domain(user)


# ── Google sign-in ───────────────────────────────────────────


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    url = f"{FRONTEND_URL}{path}"
    if params:
        url = f"{url}?{urlencode(params)}"
    response = RedirectResponse(url, status_code=status.HTTP_302_FOUND)
    response.delete_cookie(OAUTH_STATE_COOKIE)
    return response


@router.get("/google")
def google_login(provider: IdentityProvider = Depends(get_identity_provider)):
    """Redirect the browser to Google's consent screen."""
    if not provider.configured:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Google sign-in is not configured")

    state = secrets.token_urlsafe(24)
    response = RedirectResponse(provider.authorization_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    previous_token: Optional[str] = Depends(session_cookie),
    provider: IdentityProvider = Depends(get_identity_provider),
    resolver: FederatedIdentityResolver = Depends(get_federated_resolver),
    store: SessionPrincipalStore = Depends(get_session_principal_store),
):
    """Complete Google sign-in and redirect back to the storefront."""
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if error or not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("Google callback rejected", extra={"providerError": error, **_client_extra(request)})
        return _frontend_redirect("/login", error="oauth_failed")

    try:
        profile = provider.fetch_profile(code)
    except IdentityProviderError:
        return _frontend_redirect("/login", error="oauth_failed")

    result = resolver.resolve(profile)
    if not result.ok:
        return _frontend_redirect("/login", error=result.error.value)

    response = _frontend_redirect("/auth/callback")
    try:
        _start_session(response, store, result.principal, previous_token)
    except SessionStoreError:
        return _frontend_redirect("/login", error=AuthErrorCode.DIRECTORY_ERROR.value)

    logger.info("Session started", extra={"userId": result.principal.id, "method": "google", **_client_extra(request)})
    return response
