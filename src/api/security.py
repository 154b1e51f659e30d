"""Session-cookie authentication dependencies."""

import os
import logging
from typing import Optional
from fastapi import Depends, HTTPException, Response, status
from fastapi.security import APIKeyCookie

from api.dependencies import get_session_principal_store
from domain.model.auth_result import AuthErrorCode
from domain.model.errors import DirectoryError, SessionStoreError
from domain.model.principal import Principal
from services.session_principal_store import SessionPrincipalStore

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "storefront_session")
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

session_cookie = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


def set_session_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def get_current_principal(
    token: Optional[str] = Depends(session_cookie),
    store: SessionPrincipalStore = Depends(get_session_principal_store),
) -> Optional[Principal]:
    """Rehydrate the caller from the session cookie (optional). Returns None if anonymous."""
    try:
        return store.resolve(token)
    except (DirectoryError, SessionStoreError) as e:
        logger.error("Session rehydration failed", extra={"errorType": type(e).__name__})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=AuthErrorCode.DIRECTORY_ERROR.message,
        )


def get_current_principal_required(
    principal: Optional[Principal] = Depends(get_current_principal),
) -> Principal:
    """Authenticated and active caller. Raises 401 if anonymous, 403 if deactivated."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    if not principal.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=AuthErrorCode.ACCOUNT_DISABLED.message,
        )
    return principal


def require_admin(
    principal: Principal = Depends(get_current_principal_required),
) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal
