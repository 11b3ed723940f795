from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

import cloudblitz_svc.utils.security as security
from cloudblitz_svc.models import User, get_db
from cloudblitz_svc.schemas.common import ApiResponse
from cloudblitz_svc.schemas.auth import (
    AccessToken,
    AuthTokens,
    AuthUser,
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
)
from cloudblitz_svc.schemas.user import UserResponse
from cloudblitz_svc.services.errors import DuplicateEmail, InvalidCredentials, ServiceError

logger = logging.getLogger(__name__)

auth_router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _credential_exception(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_token(token: str, db: Session) -> Optional[User]:
    """Resolve an access token to an active user, or None."""
    try:
        payload = security.decode_access_token(token)
    except Exception as e:
        logger.error(e, exc_info=True)
        payload = None

    if payload is None:
        return None

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        return None

    try:
        user = db.get(User, user_id)
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    if user is None or not user.is_active:
        return None
    return user


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    user = _user_from_token(token, db)
    if user is None:
        raise _credential_exception()
    return user


def get_optional_user(
    token: Optional[str] = Depends(optional_oauth2_scheme), db: Session = Depends(get_db)
) -> Optional[User]:
    """Like get_current_user but anonymous callers (or stale tokens) yield None."""
    if not token:
        return None
    user = _user_from_token(token, db)
    if user is None:
        logger.info("Ignoring invalid bearer token on public endpoint")
    return user


def _issue_tokens(user: User) -> AuthTokens:
    claims = {"sub": str(user.id)}
    try:
        access_token = security.create_access_token(claims)
        refresh_token = security.create_refresh_token(claims)
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return AuthTokens(
        user=AuthUser.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=security.access_token_lifetime_seconds(),
    )


@auth_router.post("/register", response_model=ApiResponse[AuthTokens], status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    try:
        existing = db.execute(select(User).where(User.email == request.email)).scalar_one_or_none()
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    if existing is not None:
        raise DuplicateEmail()

    try:
        user = User(
            name=request.name,
            email=str(request.email),
            hashed_password=security.get_password_hash(request.password),
            role=request.role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        logger.error(e, exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Error during registration")

    logger.info("Registered user %s with role %s", user.id, user.role)
    return {"message": "User registered successfully", "data": _issue_tokens(user)}


@auth_router.post("/login", response_model=ApiResponse[AuthTokens])
def login(request: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = db.execute(select(User).where(User.email == request.email)).scalar_one_or_none()
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    if user is None:
        raise InvalidCredentials()

    if not user.is_active:
        raise InvalidCredentials("Account is deactivated. Please contact support.")

    try:
        verified = security.verify_password(request.password, user.hashed_password)
    except Exception as e:
        logger.error(e, exc_info=True)
        # treat verification errors as credential issues
        raise InvalidCredentials()

    if not verified:
        raise InvalidCredentials()

    return {"message": "Login successful", "data": _issue_tokens(user)}


@auth_router.post("/refresh", response_model=ApiResponse[AccessToken])
def refresh_token(request: RefreshRequest, db: Session = Depends(get_db)):
    payload = security.decode_refresh_token(request.refresh_token)
    if payload is None:
        raise InvalidCredentials("Invalid refresh token")

    try:
        user = db.get(User, int(payload.get("sub")))
    except (TypeError, ValueError):
        user = None

    if user is None or not user.is_active:
        raise InvalidCredentials("User not found or inactive")

    token = AccessToken(
        access_token=security.create_access_token({"sub": str(user.id)}),
        expires_in=security.access_token_lifetime_seconds(),
    )
    return {"message": "Access token refreshed successfully", "data": token}


@auth_router.get("/me", response_model=ApiResponse[UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return {"message": "User profile retrieved", "data": current_user}


@auth_router.post("/change-password", response_model=ApiResponse)
def change_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not security.verify_password(request.current_password, current_user.hashed_password):
        raise ServiceError("Current password is incorrect")

    try:
        current_user.hashed_password = security.get_password_hash(request.new_password)
        db.commit()
    except Exception as e:
        logger.error(e, exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Error changing password")

    return {"message": "Password changed successfully"}


@auth_router.post("/logout", response_model=ApiResponse)
def logout(current_user: User = Depends(get_current_user)):
    # tokens are stateless; the client discards them
    return {"message": "Logged out successfully"}
