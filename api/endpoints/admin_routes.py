"""
api/endpoints/admin_routes.py — Superadmin-only routes.

GET  /admin/users                — List users (filter by role / active)
PUT  /admin/users/{id}/status    — Activate or deactivate a user
GET  /admin/reviews              — All reviews (filter by status / category)
GET  /admin/reviews/{id}         — Any review with its scores
GET  /admin/stats                — System-wide counts and averages
GET  /admin/criteria             — Active scoring criteria
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import ReviewCategory, ReviewStatus, User, UserRole
from app.db.session import get_db
from app.services import admin_service, review_service
from api.deps import require_roles
from api.endpoints.review_routes import build_review_detail
from api.schemas import (
    AdminReviewPage,
    AdminReviewSummary,
    CriterionOut,
    Pagination,
    ReviewDetail,
    SystemStats,
    UserOut,
    UserPage,
    UserStatusUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()

require_superadmin = require_roles(UserRole.SUPERADMIN)


@router.get("/users", response_model=UserPage, summary="List users")
def list_users(
    role: Optional[UserRole] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    users, total = repository.list_users(db, role=role, is_active=is_active, page=page, limit=limit)
    return UserPage(
        users=[UserOut.model_validate(u) for u in users],
        pagination=Pagination.build(page, limit, total),
    )


@router.put("/users/{user_id}/status", response_model=UserOut, summary="Activate / deactivate user")
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    user = admin_service.set_user_status(db, admin, user_id, payload.is_active)
    db.commit()
    db.refresh(user)
    logger.info("User %d status set to active=%s by admin %d.", user_id, payload.is_active, admin.id)
    return user


@router.get("/reviews", response_model=AdminReviewPage, summary="List all reviews")
def list_all_reviews(
    status: Optional[ReviewStatus] = Query(default=None),
    category: Optional[ReviewCategory] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    reviews, total = repository.list_reviews(db, status=status, category=category, page=page, limit=limit)
    return AdminReviewPage(
        reviews=[AdminReviewSummary.model_validate(r) for r in reviews],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/reviews/{review_id}", response_model=ReviewDetail, summary="Get any review")
def get_any_review(
    review_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    return build_review_detail(db, review_service.get_review_any(db, review_id))


@router.get("/stats", response_model=SystemStats, summary="System statistics")
def system_stats(admin: User = Depends(require_superadmin), db: Session = Depends(get_db)):
    return SystemStats(**admin_service.system_stats(db))


@router.get("/criteria", response_model=list[CriterionOut], summary="Active scoring criteria")
def list_criteria(
    category: Optional[ReviewCategory] = Query(default=None),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    return repository.list_criteria(db, category=category)
