"""
app/db/repository.py — All database read/write operations.

Business logic should never write raw SQL or ORM queries directly —
everything goes through this module. This keeps DB logic centralized
and easy to test/mock.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Query, Session
from starlette.concurrency import run_in_threadpool

from app.db.models import (
    ConnectedStatus,
    DepartmentType,
    FinalStatus,
    Lead,
    Review,
    ReviewCategory,
    ReviewCriterion,
    ReviewPriority,
    ReviewScore,
    ReviewStatus,
    User,
    UserRole,
)
from app.review.types import Criterion, ScoreResult

logger = logging.getLogger(__name__)


def _paginate(query: Query, page: int, limit: int) -> tuple[list, int]:
    """Return (items on `page`, total rows matching `query`)."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total


# ── User ──────────────────────────────────────────────────────────────────────

def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(
    db: Session,
    username: str,
    email: str,
    password_hash: str,
    role: UserRole,
    department_type=None,
    company_name: Optional[str] = None,
    head_user_id: Optional[int] = None,
    target: Optional[int] = None,
) -> User:
    """Create and persist a new user. Uniqueness is checked by the caller."""
    user = User(
        username=username,
        email=email.strip().lower(),
        password_hash=password_hash,
        role=role,
        department_type=department_type,
        company_name=company_name,
        head_user_id=head_user_id,
        target=target,
        is_active=True,
    )
    db.add(user)
    db.flush()
    logger.info("User created: %s (%s)", user.email, role.value)
    return user


def touch_last_login(db: Session, user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    db.flush()


def set_user_active(db: Session, user: User, is_active: bool) -> User:
    user.is_active = is_active
    db.flush()
    logger.info("User %d active → %s", user.id, is_active)
    return user


def list_users(
    db: Session,
    role: Optional[UserRole] = None,
    is_active: Optional[bool] = None,
    department_type: Optional[DepartmentType] = None,
    company_name: Optional[str] = None,
    search: Optional[str] = None,
    exclude_superadmins: bool = False,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int]:
    """List users, newest first. `search` matches username or email, case-insensitively."""
    query = db.query(User)
    if exclude_superadmins:
        query = query.filter(User.role != UserRole.SUPERADMIN)
    if role is not None:
        query = query.filter(User.role == role)
    if is_active is not None:
        query = query.filter(User.is_active == is_active)
    if department_type is not None:
        query = query.filter(User.department_type == department_type)
    if company_name:
        query = query.filter(func.lower(User.company_name) == company_name.strip().lower())
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(func.lower(User.username).like(pattern), func.lower(User.email).like(pattern)))
    return _paginate(query.order_by(User.created_at.desc(), User.id.desc()), page, limit)


def count_users(db: Session) -> int:
    return db.query(User).count()


def set_password_hash(db: Session, user: User, password_hash: str) -> User:
    user.password_hash = password_hash
    db.flush()
    return user


USER_FIELDS = (
    "username", "email", "role", "department_type", "company_name",
    "head_user_id", "target", "is_active",
)


def update_user(db: Session, user: User, changes: dict[str, Any]) -> User:
    """Apply `changes` to the user; keys outside USER_FIELDS are ignored."""
    for field, value in changes.items():
        if field not in USER_FIELDS:
            continue
        if field == "email":
            value = value.strip().lower()
        setattr(user, field, value)
    db.flush()
    return user


def delete_user(db: Session, user: User) -> None:
    """Delete a user with the leads they created; hand-over references are cleared."""
    db.query(Lead).filter(Lead.created_by_id == user.id).delete(synchronize_session=False)
    db.query(Lead).filter(Lead.transferred_from_id == user.id).update(
        {"transferred_from_id": None}, synchronize_session=False
    )
    db.query(Lead).filter(Lead.transferred_to_id == user.id).update(
        {"transferred_to_id": None}, synchronize_session=False
    )
    db.delete(user)
    db.flush()
    logger.info("Deleted user %d (%s)", user.id, user.email)


def get_department_heads(
    db: Session,
    company_name: Optional[str] = None,
    department_type: Optional[DepartmentType] = None,
) -> list[User]:
    query = db.query(User).filter(User.role == UserRole.DEPARTMENT_HEAD)
    if company_name:
        query = query.filter(func.lower(User.company_name) == company_name.strip().lower())
    if department_type is not None:
        query = query.filter(User.department_type == department_type)
    return query.order_by(User.id).all()


def get_users_under_head(db: Session, head_id: int) -> list[User]:
    return (
        db.query(User)
        .filter(User.head_user_id == head_id, User.role == UserRole.DEPARTMENT_USER)
        .order_by(User.id)
        .all()
    )


def user_stats(db: Session) -> dict[str, Any]:
    """Counts of department heads and users overall and per company, department and role."""
    heads = func.count(case((User.role == UserRole.DEPARTMENT_HEAD, 1)))
    members = func.count(case((User.role == UserRole.DEPARTMENT_USER, 1)))
    active = func.count(case((User.is_active.is_(True), 1)))
    managed = db.query(User).filter(User.role != UserRole.SUPERADMIN)

    total = managed.count()
    active_total = managed.filter(User.is_active.is_(True)).count()

    def grouped(column):
        return (
            db.query(column, func.count(User.id), heads, members, active)
            .filter(User.role != UserRole.SUPERADMIN)
            .group_by(column)
            .order_by(column)
            .all()
        )

    return {
        "total_users": total,
        "active_users": active_total,
        "inactive_users": total - active_total,
        "by_company": [
            {"company_name": name, "total_users": n, "heads": h, "users": u, "active_users": a}
            for name, n, h, u, a in grouped(User.company_name)
        ],
        "by_department": [
            {"department_type": dept, "total_users": n, "heads": h, "users": u, "active_users": a}
            for dept, n, h, u, a in grouped(User.department_type)
        ],
        "by_role": [
            {"role": role, "total_users": n, "active_users": a}
            for role, n, _, _, a in grouped(User.role)
        ],
    }


# ── Lead ─────────────────────────────────────────────────────────────────────

LEAD_FIELDS = (
    "name", "phone", "email", "business", "address", "gst_no", "product_type",
    "state", "lead_source", "customer_type", "date", "connected_status",
    "final_status", "whatsapp",
)


def _visible_leads(db: Session, user: User) -> Query:
    """
    Leads the given user may see.

      superadmin       → all leads
      department head  → leads created by the head or by their department users
      department user  → leads they created or that were transferred to them
    """
    query = db.query(Lead)
    if user.role == UserRole.SUPERADMIN:
        return query
    if user.role == UserRole.DEPARTMENT_HEAD:
        member_ids = select(User.id).where(User.head_user_id == user.id)
        return query.filter(
            or_(Lead.created_by_id == user.id, Lead.created_by_id.in_(member_ids))
        )
    return query.filter(
        or_(Lead.created_by_id == user.id, Lead.transferred_to_id == user.id)
    )


def _lead_from_data(data: dict[str, Any], owner: User) -> Lead:
    values = {k: v for k, v in data.items() if k in LEAD_FIELDS and v is not None}
    values.setdefault("connected_status", ConnectedStatus.PENDING)
    values.setdefault("final_status", FinalStatus.OPEN)
    return Lead(created_by_id=owner.id, **values)


def create_lead(db: Session, owner: User, data: dict[str, Any]) -> Lead:
    """Create a lead owned by `owner` from already-validated field values."""
    lead = _lead_from_data(data, owner)
    db.add(lead)
    db.flush()
    logger.info("Lead created: %s by user %d", lead.name, owner.id)
    return lead


def bulk_create_leads(db: Session, owner: User, rows: list[dict[str, Any]]) -> list[Lead]:
    """Insert many leads in a single flush, all owned by `owner`."""
    leads = [_lead_from_data(row, owner) for row in rows]
    db.add_all(leads)
    db.flush()
    logger.info("Imported %d leads for user %d", len(leads), owner.id)
    return leads


def get_visible_lead(db: Session, user: User, lead_id: int) -> Optional[Lead]:
    return _visible_leads(db, user).filter(Lead.id == lead_id).first()


def list_leads(
    db: Session,
    user: User,
    search: Optional[str] = None,
    state: Optional[str] = None,
    product_type: Optional[str] = None,
    connected_status: Optional[ConnectedStatus] = None,
    created_by_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Lead], int]:
    """Filtered, paginated leads visible to `user`, newest first."""
    query = _visible_leads(db, user)
    if search:
        term = f"%{search}%"
        query = query.filter(
            or_(Lead.name.ilike(term), Lead.phone.ilike(term), Lead.email.ilike(term))
        )
    if state:
        query = query.filter(Lead.state == state)
    if product_type:
        query = query.filter(Lead.product_type == product_type)
    if connected_status:
        query = query.filter(Lead.connected_status == connected_status)
    if created_by_id:
        query = query.filter(Lead.created_by_id == created_by_id)
    return _paginate(query.order_by(Lead.created_at.desc(), Lead.id.desc()), page, limit)


def update_lead(db: Session, lead: Lead, changes: dict[str, Any]) -> Lead:
    """Apply a partial update. Unknown keys are ignored."""
    for key, value in changes.items():
        if key in LEAD_FIELDS:
            setattr(lead, key, value)
    lead.updated_at = datetime.now(timezone.utc)
    db.flush()
    logger.debug("Lead %d updated: %s", lead.id, sorted(changes))
    return lead


def delete_lead(db: Session, lead: Lead) -> None:
    db.delete(lead)
    db.flush()
    logger.info("Lead %d deleted", lead.id)


def transfer_lead(db: Session, lead: Lead, from_user: User, to_user: User, reason: str = "") -> Lead:
    """Record a hand-over of `lead` from one user to another."""
    lead.transferred_from_id = from_user.id
    lead.transferred_to_id = to_user.id
    lead.transferred_at = datetime.now(timezone.utc)
    lead.transfer_reason = reason
    lead.updated_at = datetime.now(timezone.utc)
    db.flush()
    logger.info("Lead %d transferred %d → %d", lead.id, from_user.id, to_user.id)
    return lead


def lead_stats(db: Session, user: User) -> dict[str, int]:
    """Counts by connection / final status over the leads visible to `user`."""
    rows = (
        _visible_leads(db, user)
        .with_entities(Lead.connected_status, Lead.final_status, func.count(Lead.id))
        .group_by(Lead.connected_status, Lead.final_status)
        .all()
    )
    stats = {"total": 0, "connected": 0, "not_connected": 0, "pending": 0, "closed": 0}
    for connected_status, final_status, count in rows:
        stats["total"] += count
        stats[connected_status.value] += count
        if final_status == FinalStatus.CLOSED:
            stats["closed"] += count
    return stats


# ── Review criteria ───────────────────────────────────────────────────────────

def _to_criterion(row: ReviewCriterion) -> Criterion:
    return Criterion(
        id=row.id,
        name=row.name,
        weight=row.weight,
        category=row.category.value,
        is_active=row.is_active,
    )


def get_active_criteria(db: Session, category: ReviewCategory | str) -> list[Criterion]:
    """
    Active criteria for a category, heaviest first.
    Equal weights keep insertion order (id ascending).
    """
    rows = (
        db.query(ReviewCriterion)
        .filter(
            ReviewCriterion.category == ReviewCategory(category),
            ReviewCriterion.is_active == True,  # noqa: E712
        )
        .order_by(ReviewCriterion.weight.desc(), ReviewCriterion.id.asc())
        .all()
    )
    return [_to_criterion(r) for r in rows]


def list_criteria(db: Session, category: Optional[ReviewCategory] = None) -> list[ReviewCriterion]:
    query = db.query(ReviewCriterion).filter(ReviewCriterion.is_active == True)  # noqa: E712
    if category is not None:
        query = query.filter(ReviewCriterion.category == category)
    return query.order_by(ReviewCriterion.category, ReviewCriterion.weight.desc(), ReviewCriterion.id).all()


def criterion_exists(db: Session, name: str, category: ReviewCategory) -> bool:
    return (
        db.query(ReviewCriterion)
        .filter(ReviewCriterion.name == name, ReviewCriterion.category == category)
        .first()
        is not None
    )


def create_criterion(db: Session, name: str, weight: float, category: ReviewCategory) -> ReviewCriterion:
    criterion = ReviewCriterion(name=name, weight=weight, category=category, is_active=True)
    db.add(criterion)
    db.flush()
    return criterion


class SqlCriteriaLookup:
    """
    CriteriaLookup backed by the review_criteria table.

    `session_scope` is a context-manager factory such as `get_session`; each
    call opens its own session inside the thread pool.
    """

    def __init__(self, session_scope: Callable[[], ContextManager[Session]]):
        self.session_scope = session_scope

    def _fetch(self, category: str) -> list[Criterion]:
        with self.session_scope() as db:
            return get_active_criteria(db, category)

    async def get_criteria(self, category: str) -> list[Criterion]:
        return await run_in_threadpool(self._fetch, category)


# ── Review ───────────────────────────────────────────────────────────────────

def create_review(
    db: Session,
    user: User,
    title: str,
    content: str,
    category: ReviewCategory,
    priority: ReviewPriority = ReviewPriority.MEDIUM,
) -> Review:
    """Insert a new review in the PENDING state."""
    review = Review(
        user_id=user.id,
        title=title,
        content=content,
        category=category,
        priority=priority,
        status=ReviewStatus.PENDING,
    )
    db.add(review)
    db.flush()
    logger.info("Review %d created by user %d", review.id, user.id)
    return review


def get_review(db: Session, review_id: int, user_id: Optional[int] = None) -> Optional[Review]:
    """Fetch a review; when `user_id` is given, only if that user owns it."""
    query = db.query(Review).filter(Review.id == review_id)
    if user_id is not None:
        query = query.filter(Review.user_id == user_id)
    return query.first()


def list_reviews(
    db: Session,
    user_id: Optional[int] = None,
    status: Optional[ReviewStatus] = None,
    category: Optional[ReviewCategory] = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Review], int]:
    """Paginated reviews, newest first."""
    query = db.query(Review)
    if user_id is not None:
        query = query.filter(Review.user_id == user_id)
    if status is not None:
        query = query.filter(Review.status == status)
    if category is not None:
        query = query.filter(Review.category == category)
    return _paginate(query.order_by(Review.created_at.desc(), Review.id.desc()), page, limit)


def update_review_fields(db: Session, review: Review, changes: dict[str, Any]) -> Review:
    for key in ("title", "content", "category", "priority"):
        if key in changes:
            setattr(review, key, changes[key])
    review.updated_at = datetime.now(timezone.utc)
    db.flush()
    return review


def delete_review(db: Session, review: Review) -> None:
    db.delete(review)
    db.flush()
    logger.info("Review %d deleted", review.id)


def set_review_status(db: Session, review_id: int, status: ReviewStatus, feedback: Optional[str] = None) -> None:
    update_data: dict = {"status": status, "updated_at": datetime.now(timezone.utc)}
    if feedback is not None:
        update_data["feedback"] = feedback
    db.query(Review).filter(Review.id == review_id).update(update_data)
    logger.debug("Review %d status → %s", review_id, status.value)


def save_review_scores(db: Session, review_id: int, scores: list[ScoreResult]) -> None:
    db.add_all(
        ReviewScore(
            review_id=review_id,
            criterion_id=s.criterion_id,
            score=s.score,
            feedback=s.feedback,
        )
        for s in scores
    )
    db.flush()


def complete_review(
    db: Session,
    review_id: int,
    overall_score: float,
    processing_time: int,
    feedback: str,
) -> None:
    db.query(Review).filter(Review.id == review_id).update(
        {
            "status": ReviewStatus.COMPLETED,
            "overall_score": overall_score,
            "processing_time": processing_time,
            "feedback": feedback,
            "updated_at": datetime.now(timezone.utc),
        }
    )


def get_review_scores(db: Session, review_id: int) -> list[tuple[ReviewScore, ReviewCriterion]]:
    """Stored scores of a review with their criterion, heaviest criterion first."""
    return (
        db.query(ReviewScore, ReviewCriterion)
        .join(ReviewCriterion, ReviewScore.criterion_id == ReviewCriterion.id)
        .filter(ReviewScore.review_id == review_id)
        .order_by(ReviewCriterion.weight.desc(), ReviewCriterion.id.asc())
        .all()
    )


def review_stats(db: Session) -> dict[str, Any]:
    """Aggregate counts and averages across all reviews."""
    by_status = {
        status.value: count
        for status, count in db.query(Review.status, func.count(Review.id)).group_by(Review.status).all()
    }
    by_category = [
        {
            "category": category.value,
            "count": count,
            "avg_score": round(avg_score, 2) if avg_score is not None else None,
        }
        for category, count, avg_score in (
            db.query(Review.category, func.count(Review.id), func.avg(Review.overall_score))
            .group_by(Review.category)
            .order_by(Review.category)
            .all()
        )
    ]
    avg_time = (
        db.query(func.avg(Review.processing_time))
        .filter(Review.processing_time.isnot(None))
        .scalar()
    )
    return {
        "total_reviews": sum(by_status.values()),
        "completed_reviews": by_status.get(ReviewStatus.COMPLETED.value, 0),
        "pending_reviews": by_status.get(ReviewStatus.PENDING.value, 0),
        "by_status": by_status,
        "by_category": by_category,
        "avg_processing_time_ms": round(float(avg_time), 1) if avg_time is not None else None,
    }
