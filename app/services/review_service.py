"""
app/services/review_service.py — Review lifecycle orchestration.

This is the "glue" layer that coordinates:
  - Persisting a submitted review (status PENDING)
  - Running content analysis in the background
  - Saving per-criterion scores and the overall result
  - Owner-side edits and deletes

Status transitions:
    pending → processing → completed
                         → failed
Completed and failed are terminal; a retry is a new submission.
"""

import logging
import time
from typing import Any, Optional

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.db import repository
from app.db.models import Review, ReviewCategory, ReviewPriority, ReviewStatus, User
from app.db.session import get_session
from app.exceptions import InvalidStateError, NotFoundError, ValidationFailedError
from app.review.analyzer import analyze_content
from app.review.types import AnalysisResult

logger = logging.getLogger(__name__)

COMPLETED_FEEDBACK = "Review completed successfully"
FAILED_FEEDBACK = "Review processing failed"

EDITABLE_STATUSES = (ReviewStatus.PENDING, ReviewStatus.FAILED)


def submit_review(
    db: Session,
    user: User,
    title: str,
    content: str,
    category: ReviewCategory,
    priority: ReviewPriority = ReviewPriority.MEDIUM,
) -> Review:
    """
    Store a new review as PENDING.

    The caller schedules `process_review(review.id)` once the review is
    committed (the HTTP layer does it as a background task).
    """
    review = repository.create_review(db, user, title, content, category, priority)
    logger.info("Review %d submitted by user %d", review.id, user.id)
    return review


def _claim_review(review_id: int) -> Optional[tuple[str, ReviewCategory]]:
    """Move a PENDING review to PROCESSING and return what the analyzer needs."""
    with get_session() as db:
        review = repository.get_review(db, review_id)
        if review is None:
            logger.warning("Review %d vanished before processing.", review_id)
            return None
        if review.status != ReviewStatus.PENDING:
            logger.warning("Review %d is %s; skipping.", review_id, review.status.value)
            return None
        repository.set_review_status(db, review_id, ReviewStatus.PROCESSING)
        return review.content, review.category


def _store_analysis(review_id: int, analysis: AnalysisResult, started: float) -> int:
    with get_session() as db:
        repository.save_review_scores(db, review_id, analysis.scores)
        processing_time = int((time.perf_counter() - started) * 1000)
        repository.complete_review(
            db,
            review_id,
            overall_score=analysis.overall_score,
            processing_time=processing_time,
            feedback=COMPLETED_FEEDBACK,
        )
    return processing_time


def _mark_failed(review_id: int) -> None:
    with get_session() as db:
        repository.set_review_status(db, review_id, ReviewStatus.FAILED, feedback=FAILED_FEEDBACK)


async def process_review(review_id: int) -> Optional[ReviewStatus]:
    """
    Analyse a pending review and persist the outcome.

    Runs in its own sessions so it can be scheduled after the request that
    created the review has committed. Every database step runs in the thread
    pool; only the scoring itself stays on the event loop. Any failure during
    analysis or while saving scores moves the review to FAILED; nothing is
    raised.

    Returns:
        The final status, or None if the review was missing or no longer pending.
    """
    claimed = await run_in_threadpool(_claim_review, review_id)
    if claimed is None:
        return None
    content, category = claimed

    try:
        started = time.perf_counter()
        analysis = await analyze_content(content, category, repository.SqlCriteriaLookup(get_session))
        processing_time = await run_in_threadpool(_store_analysis, review_id, analysis, started)
        logger.info(
            "Review %d completed (score=%.2f, %d criteria, %d ms)",
            review_id, analysis.overall_score, len(analysis.scores), processing_time,
        )
        return ReviewStatus.COMPLETED

    except Exception as e:
        logger.error("Review %d processing failed: %s", review_id, e)
        await run_in_threadpool(_mark_failed, review_id)
        return ReviewStatus.FAILED


def get_owned_review(db: Session, user: User, review_id: int) -> Review:
    review = repository.get_review(db, review_id, user_id=user.id)
    if not review:
        raise NotFoundError("Review", review_id)
    return review


def get_review_any(db: Session, review_id: int) -> Review:
    review = repository.get_review(db, review_id)
    if not review:
        raise NotFoundError("Review", review_id)
    return review


def review_scores(db: Session, review: Review) -> list[dict[str, Any]]:
    """Per-criterion detail; only completed reviews have any."""
    if review.status != ReviewStatus.COMPLETED:
        return []
    return [
        {
            "criterion_name": criterion.name,
            "score": score.score,
            "weight": criterion.weight,
            "feedback": score.feedback,
        }
        for score, criterion in repository.get_review_scores(db, review.id)
    ]


def update_review(db: Session, user: User, review_id: int, changes: dict[str, Any]) -> Review:
    """
    Edit an owned review. Only PENDING or FAILED reviews can change.

    Raises:
        NotFoundError:         not the caller's review.
        InvalidStateError:     the review is processing or completed.
        ValidationFailedError: no fields given.
    """
    review = get_owned_review(db, user, review_id)
    if review.status not in EDITABLE_STATUSES:
        raise InvalidStateError("Cannot update review that is being processed or completed")
    if not changes:
        raise ValidationFailedError("No fields to update")

    repository.update_review_fields(db, review, changes)
    logger.info("Review %d updated by user %d: %s", review_id, user.id, sorted(changes))
    return review


def delete_review(db: Session, user: User, review_id: int) -> None:
    review = get_owned_review(db, user, review_id)
    repository.delete_review(db, review)
