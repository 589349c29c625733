"""
api/schemas.py — Pydantic request/response models for all API endpoints.

These are the API contract — separate from DB ORM models so we can
control exactly what data is exposed over HTTP.
"""

import math
from datetime import date as DateType, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.config import settings
from app.db.models import (
    ConnectedStatus,
    CustomerType,
    DepartmentType,
    FinalStatus,
    ReviewCategory,
    ReviewPriority,
    ReviewStatus,
    UserRole,
)

INDIAN_PHONE_PATTERN = r"^(\+91[\-\s]?)?[6-9]\d{9}$"
GST_PATTERN = r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z]{1}[1-9A-Z]{1}Z[0-9A-Z]{1}$"


# ── Shared ────────────────────────────────────────────────────────────────────

class OKResponse(BaseModel):
    """Generic success acknowledgement."""
    status: str = "ok"
    message: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


# ── Auth / users ─────────────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9]+$")
    email: EmailStr
    password: str = Field(..., min_length=6)
    department_type: DepartmentType
    company_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = Field(..., description="department_head or department_user")
    head_user: Optional[EmailStr] = Field(
        default=None,
        description="Email of the department head; required for department users",
    )
    target: Optional[int] = Field(default=None, ge=0)


class ImpersonateRequest(BaseModel):
    email: EmailStr


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole
    department_type: Optional[DepartmentType] = None
    company_name: Optional[str] = None
    head_user_id: Optional[int] = None
    target: Optional[int] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class UserStatusUpdate(BaseModel):
    is_active: bool


class UserPage(BaseModel):
    users: list[UserOut]
    pagination: Pagination


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserCreate(RegisterRequest):
    """Superadmin-side creation; same fields and rules as self-registration."""


class UserUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9]+$")
    email: Optional[EmailStr] = None
    department_type: Optional[DepartmentType] = None
    company_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
    head_user: Optional[EmailStr] = None
    target: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class CompanyUserStats(BaseModel):
    company_name: Optional[str] = None
    total_users: int
    heads: int
    users: int
    active_users: int


class DepartmentUserStats(BaseModel):
    department_type: Optional[DepartmentType] = None
    total_users: int
    heads: int
    users: int
    active_users: int


class RoleUserStats(BaseModel):
    role: UserRole
    total_users: int
    active_users: int


class UserStats(BaseModel):
    total_users: int
    active_users: int
    inactive_users: int
    by_company: list[CompanyUserStats]
    by_department: list[DepartmentUserStats]
    by_role: list[RoleUserStats]


# ── Lead ─────────────────────────────────────────────────────────────────────

class LeadFields(BaseModel):
    """Optional lead fields shared by create and update."""
    email: Optional[EmailStr] = None
    business: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=1000)
    gst_no: Optional[str] = Field(default=None, pattern=GST_PATTERN)
    product_type: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    lead_source: Optional[str] = Field(default=None, max_length=100)
    customer_type: Optional[CustomerType] = None
    date: Optional[DateType] = None
    connected_status: Optional[ConnectedStatus] = None
    final_status: Optional[FinalStatus] = None
    whatsapp: Optional[str] = Field(default=None, pattern=INDIAN_PHONE_PATTERN)


class LeadCreate(LeadFields):
    name: str = Field(..., min_length=2, max_length=255)
    phone: str = Field(..., pattern=INDIAN_PHONE_PATTERN)


class LeadUpdate(LeadFields):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    phone: Optional[str] = Field(default=None, pattern=INDIAN_PHONE_PATTERN)


class LeadImportRequest(BaseModel):
    leads: list[LeadCreate] = Field(..., min_length=1, max_length=500)


class LeadImportResult(BaseModel):
    imported_count: int
    message: str


class LeadTransferRequest(BaseModel):
    transferred_to: int = Field(..., description="ID of the user receiving the lead")
    reason: Optional[str] = Field(default="", max_length=1000)


class LeadOut(BaseModel):
    id: int
    name: str
    phone: str
    email: Optional[str] = None
    business: Optional[str] = None
    address: Optional[str] = None
    gst_no: Optional[str] = None
    product_type: Optional[str] = None
    state: Optional[str] = None
    lead_source: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    date: Optional[DateType] = None
    connected_status: ConnectedStatus
    final_status: FinalStatus
    whatsapp: Optional[str] = None
    created_by_id: int
    transferred_from_id: Optional[int] = None
    transferred_to_id: Optional[int] = None
    transferred_at: Optional[datetime] = None
    transfer_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeadStats(BaseModel):
    total: int
    connected: int
    not_connected: int
    pending: int
    closed: int


class LeadPage(BaseModel):
    leads: list[LeadOut]
    pagination: Pagination
    stats: LeadStats


# ── Review ───────────────────────────────────────────────────────────────────

_CONTENT_MIN = settings.review_content_min_length
_CONTENT_MAX = settings.review_content_max_length


class ReviewSubmit(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=_CONTENT_MIN, max_length=_CONTENT_MAX)
    category: ReviewCategory
    priority: ReviewPriority = ReviewPriority.MEDIUM


class ReviewUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=_CONTENT_MIN, max_length=_CONTENT_MAX)
    category: Optional[ReviewCategory] = None
    priority: Optional[ReviewPriority] = None


class ReviewSummary(BaseModel):
    id: int
    title: str
    category: ReviewCategory
    priority: ReviewPriority
    status: ReviewStatus
    overall_score: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ReviewScoreOut(BaseModel):
    criterion_name: str
    score: float
    weight: float
    feedback: Optional[str] = None


class ReviewOwner(BaseModel):
    username: str
    email: str

    model_config = {"from_attributes": True}


class ReviewDetail(ReviewSummary):
    content: str
    processing_time: Optional[int] = None
    feedback: Optional[str] = None
    user: Optional[ReviewOwner] = None
    scores: list[ReviewScoreOut] = Field(default_factory=list)


class AdminReviewSummary(ReviewSummary):
    user: Optional[ReviewOwner] = None


class ReviewPage(BaseModel):
    reviews: list[ReviewSummary]
    pagination: Pagination


class AdminReviewPage(BaseModel):
    reviews: list[AdminReviewSummary]
    pagination: Pagination


# ── Admin ────────────────────────────────────────────────────────────────────

class CategoryStats(BaseModel):
    category: ReviewCategory
    count: int
    avg_score: Optional[float] = None


class SystemStats(BaseModel):
    total_users: int
    total_reviews: int
    completed_reviews: int
    pending_reviews: int
    by_status: dict[str, int]
    by_category: list[CategoryStats]
    avg_processing_time_ms: Optional[float] = None


class CriterionOut(BaseModel):
    id: int
    name: str
    weight: float
    category: ReviewCategory
    is_active: bool

    model_config = {"from_attributes": True}
