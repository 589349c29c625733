"""
api/endpoints/review_routes.py — Content review submission and history.

POST   /reviews/submit   — Submit content; analysis runs in the background
GET    /reviews          — The caller's reviews (paginated)
GET    /reviews/{id}     — One review with per-criterion scores once completed
PUT    /reviews/{id}     — Edit a pending or failed review
DELETE /reviews/{id}     — Delete a review and its scores
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.db import repository
from app.db.models import Review, User
from app.db.session import get_db
from app.services import review_service
from api.deps import require_user
from api.schemas import (
    OKResponse,
    Pagination,
    ReviewDetail,
    ReviewOwner,
    ReviewPage,
    ReviewScoreOut,
    ReviewSubmit,
    ReviewSummary,
    ReviewUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def build_review_detail(db: Session, review: Review) -> ReviewDetail:
    """Shape a review plus its stored scores for the API."""
    return ReviewDetail(
        **ReviewSummary.model_validate(review).model_dump(),
        content=review.content,
        processing_time=review.processing_time,
        feedback=review.feedback,
        user=ReviewOwner.model_validate(review.user) if review.user else None,
        scores=[ReviewScoreOut(**s) for s in review_service.review_scores(db, review)],
    )


@router.post("/submit", response_model=ReviewSummary, status_code=201, summary="Submit content for review")
def submit_review(
    payload: ReviewSubmit,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Store the review as pending and schedule the analysis.
    Poll GET /reviews/{id} for the result.
    """
    review = review_service.submit_review(
        db,
        user,
        title=payload.title,
        content=payload.content,
        category=payload.category,
        priority=payload.priority,
    )
    db.commit()
    background_tasks.add_task(review_service.process_review, review.id)
    return review


@router.get("/", response_model=ReviewPage, summary="List my reviews")
def list_reviews(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    reviews, total = repository.list_reviews(db, user_id=user.id, page=page, limit=limit)
    return ReviewPage(
        reviews=[ReviewSummary.model_validate(r) for r in reviews],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/{review_id}", response_model=ReviewDetail, summary="Get review by ID")
def get_review(review_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    review = review_service.get_owned_review(db, user, review_id)
    return build_review_detail(db, review)


@router.put("/{review_id}", response_model=ReviewSummary, summary="Update review")
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Only pending or failed reviews can be edited."""
    review = review_service.update_review(
        db, user, review_id, payload.model_dump(exclude_unset=True, exclude_none=True)
    )
    db.commit()
    db.refresh(review)
    return review


@router.delete("/{review_id}", response_model=OKResponse, summary="Delete review")
def delete_review(review_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    review_service.delete_review(db, user, review_id)
    db.commit()
    return OKResponse(message="Review deleted successfully")
