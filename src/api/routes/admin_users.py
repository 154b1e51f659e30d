"""Admin user listing and account-status management.

Changes apply to the affected user's very next request, because sessions are
rehydrated from the directory every time.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_user_directory
from api.models import UserListResponse, UserResponse, UserStatusUpdate
from api.security import require_admin
from domain.model.errors import DirectoryError
from domain.model.principal import Principal
from port.user_directory import UserDirectory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["admin"])


@router.get("", response_model=UserListResponse)
def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[Literal["buyer", "admin"]] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    admin: Principal = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
):
    """List users newest first, optionally filtered by role, status or a name/email search."""
    try:
        users, total = directory.find_many(
            skip=skip, limit=limit, role=role, is_active=is_active, search=search,
        )
    except DirectoryError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")

    return UserListResponse(
        users=[UserResponse.from_domain(u) for u in users],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    admin: Principal = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
):
    try:
        user = directory.get_by_id(user_id)
    except DirectoryError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_domain(user)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user_status(
    user_id: str,
    body: UserStatusUpdate,
    admin: Principal = Depends(require_admin),
    directory: UserDirectory = Depends(get_user_directory),
):
    """Deactivate/reactivate an account or change its role."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No changes supplied")
    if user_id == admin.id and (changes.get('is_active') is False or changes.get('role') == 'buyer'):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot demote or deactivate themselves")

    try:
        user = directory.update(user_id, **changes)
    except DirectoryError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    logger.info("User status updated", extra={"userId": user_id, "adminId": admin.id, **changes})
    return UserResponse.from_domain(user)
