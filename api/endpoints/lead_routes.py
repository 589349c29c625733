"""
api/endpoints/lead_routes.py — CRUD routes for leads.

POST   /leads                 — Create a lead
GET    /leads                 — List visible leads (filters + pagination)
GET    /leads/stats           — Counts by status over visible leads
POST   /leads/import          — Bulk insert already-parsed lead rows
GET    /leads/{id}            — Get a single lead
PUT    /leads/{id}            — Partial update
DELETE /leads/{id}            — Delete a lead
POST   /leads/{id}/transfer   — Hand a lead over to another user
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import ConnectedStatus, User
from app.db.session import get_db
from app.services import lead_service
from api.deps import require_user
from api.schemas import (
    LeadCreate,
    LeadImportRequest,
    LeadImportResult,
    LeadOut,
    LeadPage,
    LeadStats,
    LeadTransferRequest,
    LeadUpdate,
    OKResponse,
    Pagination,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=LeadOut, status_code=201, summary="Create lead")
def create_lead(payload: LeadCreate, user: User = Depends(require_user), db: Session = Depends(get_db)):
    lead = lead_service.create_lead(db, user, payload.model_dump(exclude_none=True))
    db.commit()
    db.refresh(lead)
    return lead


@router.get("/", response_model=LeadPage, summary="List leads")
def list_leads(
    search: Optional[str] = Query(default=None, description="Substring of name, phone or email"),
    state: Optional[str] = Query(default=None),
    product_type: Optional[str] = Query(default=None),
    connected_status: Optional[ConnectedStatus] = Query(default=None),
    created_by_id: Optional[int] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Return the leads visible to the caller, newest first.
    Stats cover every visible lead, not just the current page.
    """
    leads, total = repository.list_leads(
        db,
        user,
        search=search,
        state=state,
        product_type=product_type,
        connected_status=connected_status,
        created_by_id=created_by_id,
        page=page,
        limit=limit,
    )
    return LeadPage(
        leads=[LeadOut.model_validate(lead) for lead in leads],
        pagination=Pagination.build(page, limit, total),
        stats=LeadStats(**repository.lead_stats(db, user)),
    )


@router.get("/stats", response_model=LeadStats, summary="Lead counts by status")
def lead_stats(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return LeadStats(**repository.lead_stats(db, user))


@router.post("/import", response_model=LeadImportResult, status_code=201, summary="Bulk import leads")
def import_leads(payload: LeadImportRequest, user: User = Depends(require_user), db: Session = Depends(get_db)):
    """Insert a batch of lead rows (already parsed from CSV by the client), owned by the caller."""
    rows = [row.model_dump(exclude_none=True) for row in payload.leads]
    count = lead_service.import_leads(db, user, rows)
    db.commit()
    return LeadImportResult(imported_count=count, message=f"Successfully imported {count} leads")


@router.get("/{lead_id}", response_model=LeadOut, summary="Get lead by ID")
def get_lead(lead_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return lead_service.get_lead(db, user, lead_id)


@router.put("/{lead_id}", response_model=LeadOut, summary="Update lead")
def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    lead = lead_service.update_lead(db, user, lead_id, payload.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    db.refresh(lead)
    logger.info("Lead %d updated via API by user %d.", lead_id, user.id)
    return lead


@router.delete("/{lead_id}", response_model=OKResponse, summary="Delete lead")
def delete_lead(lead_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    lead_service.delete_lead(db, user, lead_id)
    db.commit()
    return OKResponse(message="Lead deleted successfully")


@router.post("/{lead_id}/transfer", response_model=LeadOut, summary="Transfer lead")
def transfer_lead(
    lead_id: int,
    payload: LeadTransferRequest,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    lead = lead_service.transfer_lead(db, user, lead_id, payload.transferred_to, payload.reason or "")
    db.commit()
    db.refresh(lead)
    return lead
