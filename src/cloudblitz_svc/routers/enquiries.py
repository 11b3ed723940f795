from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cloudblitz_svc import config
from cloudblitz_svc.models import User, get_db
from cloudblitz_svc.models.enums import EnquiryPriority, EnquiryStatus
from cloudblitz_svc.schemas.common import ApiResponse, PaginatedResponse, page_meta
from cloudblitz_svc.schemas.enquiry import AssignRequest, EnquiryCreate, EnquiryResponse, EnquiryUpdate
from cloudblitz_svc.services import enquiry_service
from cloudblitz_svc.services.errors import ServiceError, parse_id
from cloudblitz_svc.routers.auth import get_current_user, get_optional_user

logger = logging.getLogger(__name__)

enquiries_router = APIRouter()


def _internal_error(e: Exception) -> HTTPException:
    logger.error(e, exc_info=True)
    return HTTPException(status_code=500, detail="Internal server error")


@enquiries_router.post("/", response_model=ApiResponse[EnquiryResponse], status_code=status.HTTP_201_CREATED)
def create_enquiry(
    payload: EnquiryCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """Create an enquiry. Public; ``autoAssign`` runs the round-robin resolver."""
    try:
        enquiry = enquiry_service.create_enquiry(db, payload, current_user)
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"message": "Enquiry created successfully", "data": enquiry}


@enquiries_router.get("/", response_model=PaginatedResponse[EnquiryResponse])
def list_enquiries(
    status: Optional[EnquiryStatus] = None,
    priority: Optional[EnquiryPriority] = None,
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    search: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List live enquiries. Non-admins only see ones they created or are assigned."""
    assignee_id = parse_id(assigned_to, "user") if assigned_to else None
    try:
        items, total = enquiry_service.list_enquiries(
            db,
            current_user,
            status=status,
            priority=priority,
            assigned_to=assignee_id,
            search=search,
            start_date=start_date,
            end_date=end_date,
            page=page,
            limit=limit,
        )
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"data": items, "meta": page_meta(page, limit, total)}


@enquiries_router.get("/{enquiry_id}", response_model=ApiResponse[EnquiryResponse])
def get_enquiry(
    enquiry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        enquiry = enquiry_service.get_enquiry(db, current_user, enquiry_id)
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"data": enquiry}


@enquiries_router.put("/{enquiry_id}", response_model=ApiResponse[EnquiryResponse])
def update_enquiry(
    enquiry_id: str,
    payload: EnquiryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        enquiry = enquiry_service.update_enquiry(db, current_user, enquiry_id, payload)
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"message": "Enquiry updated successfully", "data": enquiry}


@enquiries_router.put("/{enquiry_id}/assign", response_model=ApiResponse[EnquiryResponse])
def assign_enquiry(
    enquiry_id: str,
    payload: AssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        enquiry = enquiry_service.assign_enquiry(db, current_user, enquiry_id, payload.user_id)
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"message": "Enquiry assigned successfully", "data": enquiry}


@enquiries_router.delete("/{enquiry_id}", response_model=ApiResponse)
def delete_enquiry(
    enquiry_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        enquiry_service.delete_enquiry(db, current_user, enquiry_id)
    except ServiceError:
        raise
    except Exception as e:
        raise _internal_error(e)
    return {"message": "Enquiry deleted successfully"}
