"""
API Dependencies Module

FastAPI dependency functions for authentication, authorization and the
per-request collaborators (billing client, project view cache).

Authentication accepts both bearer tokens (for API clients) and the HTTP-only
access_token cookie (for browser clients).
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from pydantic import ValidationError
from sqlmodel import Session, select

from portal.billing.client import BillingClient
from portal.billing.tokens import resolve_token_provider
from portal.core.config import settings
from portal.db.session import engine, get_db
from portal.models.user import User, UserRole
from portal.schemas.auth import TokenData
from portal.services.cache import DatabaseStore, MemoryStore, ProjectViewCache

# auto_error=False allows us to check cookies as a fallback
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False  # Don't raise error immediately if Authorization header is missing
)

# Process-wide store when CACHE_BACKEND=memory
_memory_store = MemoryStore()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2)
) -> User:
    """
    Dependency that retrieves and validates the current authenticated user.

    The bearer token in the Authorization header is checked first, then the
    access_token cookie.

    Raises:
        HTTPException 401: If no valid authentication token is provided
        HTTPException 403: If the token is invalid or expired
        HTTPException 404: If the user referenced in the token doesn't exist
    """
    if not token:
        token = request.cookies.get("access_token")
        # Cookie format is "Bearer <token>"
        if token and token.startswith("Bearer "):
            token = token.replace("Bearer ", "")

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        token_data = TokenData(username=payload.get("sub"))
    except (JWTError, ValidationError):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )

    user = db.exec(select(User).where(User.username == token_data.username)).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """
    Dependency that requires an approved account.

    Pending accounts (created from an inquiry) can log in to change their
    password but cannot see any projects until an admin approves them.
    """
    if current_user.role == UserRole.PENDING:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is awaiting approval",
        )
    return current_user


def get_current_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Dependency that requires the current user to be an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def get_billing_client(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Optional[BillingClient]:
    """Billing client for the caller's credentials, or None if there are none."""
    provider = resolve_token_provider(db, current_user)
    if provider is None:
        return None
    return BillingClient(provider)


def require_billing_client(
    billing: Optional[BillingClient] = Depends(get_billing_client),
) -> BillingClient:
    if billing is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Billing provider not connected",
        )
    return billing


def get_view_cache() -> ProjectViewCache:
    if settings.CACHE_BACKEND == "memory":
        return ProjectViewCache(_memory_store)
    return ProjectViewCache(DatabaseStore(engine))
