from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from cloudblitz_svc import config
from cloudblitz_svc.models import User, get_db
import cloudblitz_svc.utils.security as security
from cloudblitz_svc.schemas.common import ApiResponse, PaginatedResponse, page_meta
from cloudblitz_svc.schemas.user import UserCreate, UserResponse, UserUpdate
from cloudblitz_svc.routers.auth import get_current_user
from cloudblitz_svc.services.errors import DuplicateEmail, RecordNotFound, ServiceError, parse_id
from cloudblitz_svc.services.permissions import (
    UserAction,
    authorize_user_access,
    enforce,
    ensure_not_last_admin,
    filter_user_update,
)

logger = logging.getLogger(__name__)

users_router = APIRouter()


def _get_user_or_404(db: Session, raw_id: str) -> User:
    user_id = parse_id(raw_id, "user")
    try:
        user = db.get(User, user_id)
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    if user is None:
        raise RecordNotFound("User not found")
    return user


def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    stmt = select(User).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.execute(stmt).scalar_one_or_none() is not None


@users_router.post("/", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce(authorize_user_access(current_user, UserAction.CREATE))

    if _email_taken(db, str(payload.email)):
        raise DuplicateEmail()

    try:
        hashed = security.get_password_hash(payload.password)
        user = User(email=str(payload.email), hashed_password=hashed, name=payload.name, role=payload.role)
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        logger.error(e, exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Admin %s created user %s", current_user.id, user.id)
    return {"message": "User created successfully", "data": user}


@users_router.get("/", response_model=PaginatedResponse[UserResponse])
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce(authorize_user_access(current_user, UserAction.LIST))

    try:
        total = db.execute(select(func.count(User.id))).scalar_one()
        stmt = (
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = db.execute(stmt).scalars().all()
    except Exception as e:
        logger.error(e, exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return {"data": users, "meta": page_meta(page, limit, int(total))}


@users_router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    user = _get_user_or_404(db, user_id)
    enforce(authorize_user_access(current_user, UserAction.READ, user))
    return {"data": user}


@users_router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Admins update anyone; other users only themselves.

    A non-admin's role change is dropped, not rejected: the response is still
    200 with the unchanged role.
    """
    user = _get_user_or_404(db, user_id)
    enforce(authorize_user_access(current_user, UserAction.UPDATE, user))

    update_data = filter_user_update(current_user, user, payload.model_dump(exclude_unset=True))

    try:
        email = update_data.get("email")
        if email is not None and email != user.email:
            if _email_taken(db, str(email), exclude_id=user.id):
                raise DuplicateEmail()
            user.email = str(email)

        for field in ("name", "role", "is_active", "has_seen_tutorial"):
            if update_data.get(field) is not None:
                setattr(user, field, update_data[field])

        db.commit()
        db.refresh(user)
        return {"message": "User updated successfully", "data": user}
    except ServiceError:
        raise
    except Exception as e:
        logger.error(e, exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal server error")


@users_router.delete("/{user_id}", response_model=ApiResponse)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    enforce(authorize_user_access(current_user, UserAction.DELETE))

    user = _get_user_or_404(db, user_id)
    ensure_not_last_admin(db, user)

    try:
        # enquiries keep existing; their assigned/created references are nulled
        db.delete(user)
        db.commit()
    except Exception as e:
        logger.error(e, exc_info=True)
        db.rollback()
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Admin %s deleted user %s", current_user.id, user_id)
    return {"message": "User deleted successfully"}
