"""
api/endpoints/user_routes.py — Superadmin management of department heads and users.

POST   /admin/department-users/                              — Create a head or user
GET    /admin/department-users/                              — List (role, department, company, active, search)
GET    /admin/department-users/stats                         — Counts per company, department and role
GET    /admin/department-users/heads/{company}/{department}  — Heads of one company department
GET    /admin/department-users/under-head/{head_id}          — Users reporting to a head
GET    /admin/department-users/{id}                          — One head or user
PUT    /admin/department-users/{id}                          — Partial update
DELETE /admin/department-users/{id}                          — Delete (heads only once they have no users)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.models import DepartmentType, User, UserRole
from app.db.session import get_db
from app.services import user_service
from api.deps import require_roles
from api.schemas import OKResponse, Pagination, UserCreate, UserOut, UserPage, UserStats, UserUpdate

logger = logging.getLogger(__name__)
router = APIRouter()

require_superadmin = require_roles(UserRole.SUPERADMIN)


@router.post("/", response_model=UserOut, status_code=201, summary="Create department head or user")
def create_user(
    payload: UserCreate,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    user = user_service.create_user(
        db,
        admin,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        department_type=payload.department_type,
        company_name=payload.company_name,
        head_user_email=payload.head_user,
        target=payload.target,
    )
    db.commit()
    return user


@router.get("/", response_model=UserPage, summary="List department heads and users")
def list_users(
    role: Optional[UserRole] = Query(default=None),
    department_type: Optional[DepartmentType] = Query(default=None),
    company_name: Optional[str] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Matches username or email"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    users, total = user_service.list_users(
        db,
        role=role,
        department_type=department_type,
        company_name=company_name,
        is_active=is_active,
        search=search,
        page=page,
        limit=limit,
    )
    return UserPage(
        users=[UserOut.model_validate(u) for u in users],
        pagination=Pagination.build(page, limit, total),
    )


@router.get("/stats", response_model=UserStats, summary="Department user statistics")
def user_stats(admin: User = Depends(require_superadmin), db: Session = Depends(get_db)):
    return user_service.user_stats(db)


@router.get(
    "/heads/{company_name}/{department_type}",
    response_model=list[UserOut],
    summary="Heads of a company department",
)
def department_heads(
    company_name: str,
    department_type: DepartmentType,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    return user_service.department_heads(db, company_name, department_type)


@router.get("/under-head/{head_id}", response_model=list[UserOut], summary="Users under a head")
def users_under_head(
    head_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    return user_service.users_under_head(db, head_id)


@router.get("/{user_id}", response_model=UserOut, summary="Get department head or user")
def get_user(
    user_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    return user_service.get_managed_user(db, user_id)


@router.put("/{user_id}", response_model=UserOut, summary="Update department head or user")
def update_user(
    user_id: int,
    payload: UserUpdate,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    user = user_service.update_user(db, admin, user_id, payload.model_dump(exclude_none=True))
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", response_model=OKResponse, summary="Delete department head or user")
def delete_user(
    user_id: int,
    admin: User = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    user_service.delete_user(db, admin, user_id)
    db.commit()
    return OKResponse(message=f"User {user_id} deleted")
