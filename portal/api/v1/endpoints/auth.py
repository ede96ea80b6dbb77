"""
Authentication Endpoints Module

Registration, login, logout and password change. Login issues a JWT both in
the response body (for API clients) and as an HTTP-only cookie (for browsers).
"""
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status, Response
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from portal.api import deps
from portal.core.config import settings
from portal.core.security import verify_password, get_password_hash, create_access_token
from portal.db.session import get_db
from portal.models.user import User, UserRole
from portal.schemas.auth import PasswordChange, Token, UserRegister
from portal.schemas.user import UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserRead)
def register_user(user_in: UserRegister, db: Session = Depends(get_db)):
    """
    Register a new account.

    New accounts are PENDING until an admin approves them as customers.

    Raises:
        HTTPException 400: If a user with this email already exists
    """
    user = db.exec(select(User).where(User.username == user_in.email)).first()
    if user:
        raise HTTPException(
            status_code=400,
            detail="User with this email already exists."
        )

    db_user = User(
        username=user_in.email,
        email=user_in.email,
        password=get_password_hash(user_in.password),
        company_name=user_in.company_name,
        role=UserRole.PENDING,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("Registered pending user %s", db_user.id)
    return db_user


@router.post("/login", response_model=Token)
def login(response: Response, db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Authenticate a user and issue an access token.

    Raises:
        HTTPException 401: If credentials are invalid
    """
    user = db.exec(select(User).where(User.username == form_data.username)).first()

    if not user or not verify_password(form_data.password, user.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        subject=user.username, expires_delta=access_token_expires
    )

    # httponly=True prevents JavaScript access to the cookie
    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax"
    )

    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/logout")
def logout():
    """Clear the authentication cookie and redirect to the login page."""
    response = RedirectResponse(url="/login")
    response.delete_cookie("access_token")
    return response


@router.post("/change-password")
def change_password(
    password_in: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Replace the current user's password.

    Pending users may call this too, to replace the temporary password they
    received from their inquiry.
    """
    current_user.password = get_password_hash(password_in.new_password)
    current_user.is_temporary_password = False
    current_user.last_password_change = datetime.now(timezone.utc).isoformat()
    db.add(current_user)
    db.commit()
    return {"message": "Password updated successfully"}
