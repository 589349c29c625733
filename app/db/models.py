"""
app/db/models.py — SQLAlchemy ORM models for the lead desk and review system.

Tables:
  - User            → superadmin, department head or department user
  - Lead            → a sales lead owned by a user, optionally transferred
  - ReviewCriterion → a named, weighted scoring rubric item per category
  - Review          → a piece of content submitted for automatic review
  - ReviewScore     → one criterion's score and feedback for a Review
"""

import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ─────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ────────────────────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    SUPERADMIN = "superadmin"
    DEPARTMENT_HEAD = "department_head"
    DEPARTMENT_USER = "department_user"


class DepartmentType(str, enum.Enum):
    TELESALES = "telesales"
    MARKETING_SALES = "marketing_sales"
    OFFICE_SALES = "office_sales"


class CustomerType(str, enum.Enum):
    INDIVIDUAL = "individual"
    BUSINESS = "business"
    CORPORATE = "corporate"


class ConnectedStatus(str, enum.Enum):
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"
    PENDING = "pending"


class FinalStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    NEXT_MEETING = "next_meeting"


class ReviewCategory(str, enum.Enum):
    ACADEMIC = "academic"
    BUSINESS = "business"
    CREATIVE = "creative"
    TECHNICAL = "technical"
    OTHER = "other"


class ReviewPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ── Models ───────────────────────────────────────────────────────────────────

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(30), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False)
    department_type = Column(Enum(DepartmentType), nullable=True)
    company_name = Column(String(255), nullable=True)
    head_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    target = Column(Integer, nullable=True)                # monthly target, heads only
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    head = relationship("User", remote_side=[id], back_populates="members")
    members = relationship("User", back_populates="head")
    reviews = relationship("Review", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255), nullable=True)
    business = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    gst_no = Column(String(15), nullable=True)
    product_type = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    lead_source = Column(String(100), nullable=True)
    customer_type = Column(Enum(CustomerType), nullable=True)
    date = Column(Date, nullable=True)
    connected_status = Column(Enum(ConnectedStatus), default=ConnectedStatus.PENDING, nullable=False)
    final_status = Column(Enum(FinalStatus), default=FinalStatus.OPEN, nullable=False)
    whatsapp = Column(String(20), nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    transferred_from_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    transferred_to_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    transferred_at = Column(DateTime(timezone=True), nullable=True)
    transfer_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    created_by = relationship("User", foreign_keys=[created_by_id])
    transferred_from = relationship("User", foreign_keys=[transferred_from_id])
    transferred_to = relationship("User", foreign_keys=[transferred_to_id])

    def __repr__(self) -> str:
        return f"<Lead id={self.id} name={self.name!r} status={self.connected_status}>"


class ReviewCriterion(Base):
    __tablename__ = "review_criteria"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    weight = Column(Float, nullable=False)
    category = Column(Enum(ReviewCategory), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<ReviewCriterion id={self.id} name={self.name!r} weight={self.weight}>"


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(Enum(ReviewCategory), nullable=False)
    priority = Column(Enum(ReviewPriority), default=ReviewPriority.MEDIUM, nullable=False)
    status = Column(Enum(ReviewStatus), default=ReviewStatus.PENDING, nullable=False)
    overall_score = Column(Float, nullable=True)          # 0.0 – 1.0
    processing_time = Column(Integer, nullable=True)      # milliseconds
    feedback = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="reviews")
    scores = relationship("ReviewScore", back_populates="review", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Review id={self.id} status={self.status} score={self.overall_score}>"


class ReviewScore(Base):
    __tablename__ = "review_scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False)
    criterion_id = Column(Integer, ForeignKey("review_criteria.id", ondelete="CASCADE"), nullable=False)
    score = Column(Float, nullable=False)
    feedback = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    review = relationship("Review", back_populates="scores")
    criterion = relationship("ReviewCriterion")

    def __repr__(self) -> str:
        return f"<ReviewScore review_id={self.review_id} criterion_id={self.criterion_id} score={self.score}>"
