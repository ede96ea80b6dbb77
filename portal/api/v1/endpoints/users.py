"""
User Management Endpoints Module

Admin-only user administration: listing accounts, approving or changing roles,
linking customers to billing provider clients and resetting passwords. The
/me endpoint is available to every authenticated user.
"""
import logging
from datetime import datetime, timezone
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from portal.api import deps
from portal.core.security import generate_temporary_password, get_password_hash
from portal.db.session import get_db
from portal.models.user import User
from portal.schemas.user import TemporaryPassword, UserBillingLink, UserRead, UserRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="The user with this id does not exist in the system")
    return user


@router.get("", response_model=List[UserRead])
def read_users(
    db: Session = Depends(get_db),
    skip: int = 0,
    limit: int = 100,
    current_user: User = Depends(deps.get_current_admin),
) -> Any:
    """Paginated list of all users."""
    return db.exec(select(User).offset(skip).limit(limit)).all()


@router.get("/me", response_model=UserRead)
def read_user_me(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    return current_user


@router.patch("/{user_id}/role", response_model=UserRead)
def update_user_role(
    user_id: int,
    role_in: UserRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
) -> Any:
    """Approve a pending account or change a user's role."""
    user = _get_user_or_404(db, user_id)
    user.role = role_in.role
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s role set to %s by %s", user.id, user.role.value, current_user.id)
    return user


@router.patch("/{user_id}/billing-client", response_model=UserRead)
def link_billing_client(
    user_id: int,
    link_in: UserBillingLink,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
) -> Any:
    """Link a customer to (or unlink from) a billing provider client id."""
    user = _get_user_or_404(db, user_id)
    user.billing_client_id = link_in.billing_client_id
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/{user_id}/reset-password", response_model=TemporaryPassword)
def reset_password(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_admin),
) -> Any:
    """Issue a temporary password the user must replace on next login."""
    user = _get_user_or_404(db, user_id)
    temp_password = generate_temporary_password()
    user.password = get_password_hash(temp_password)
    user.is_temporary_password = True
    user.last_password_change = datetime.now(timezone.utc).isoformat()
    db.add(user)
    db.commit()
    return {"message": "Password reset successful", "temp_password": temp_password}
