from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_notifier, require_admin
from inventory_desk.models import ReportStatus, Role
from inventory_desk.schemas import (
    AdminPasswordReset,
    DashboardOverview,
    InventoryStats,
    LoginStats,
    Message,
    Page,
    ReportRead,
    ReportStatusUpdate,
    UserCreate,
    UserRead,
    UserUpdate,
)
from inventory_desk.services import audit
from inventory_desk.services.inventory import InventoryRepository
from inventory_desk.services.notifier import Notifier
from inventory_desk.services.reports import ReportRepository
from inventory_desk.services.users import UserRepository

router = APIRouter(prefix="/api/admin", tags=["admin"])


def users_repo(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> UserRepository:
    return UserRepository(session, principal, notifier)


@router.get("/users", response_model=list[UserRead])
def list_users(
    q: Optional[str] = None,
    role: Optional[Role] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    repo: UserRepository = Depends(users_repo),
):
    return repo.all(q=q, role=role, is_active=is_active)


@router.get("/users/page", response_model=Page[UserRead])
def page_users(
    q: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: UserRepository = Depends(users_repo),
):
    return repo.list(q=q, page=page, page_size=page_size)


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, repo: UserRepository = Depends(users_repo)):
    return repo.create(data.model_dump())


@router.put("/users/{user_id}", response_model=UserRead)
def update_user(user_id: int, data: UserUpdate, repo: UserRepository = Depends(users_repo)):
    return repo.update(user_id, data.model_dump(exclude_unset=True))


@router.post("/users/{user_id}/reset-password", response_model=Message)
def reset_user_password(
    user_id: int,
    data: AdminPasswordReset,
    repo: UserRepository = Depends(users_repo),
):
    repo.reset_password(user_id, data.new_password)
    return {"message": "Password reset successfully"}


@router.delete("/users/{user_id}", response_model=Message)
def disable_user(user_id: int, repo: UserRepository = Depends(users_repo)):
    repo.delete(user_id)
    return {"message": "User disabled successfully"}


@router.get("/inventory/stats", response_model=InventoryStats)
def inventory_stats(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return InventoryRepository(session, principal).stats()


def reports_repo(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ReportRepository:
    return ReportRepository(session, principal, notifier)


@router.get("/reports", response_model=Page[ReportRead])
def all_reports(
    q: Optional[str] = None,
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: ReportRepository = Depends(reports_repo),
):
    return repo.list(owner_id=user_id, q=q, page=page, page_size=page_size, status=report_status)


@router.put("/reports/{report_id}/status", response_model=ReportRead)
def set_report_status(
    report_id: int,
    data: ReportStatusUpdate,
    repo: ReportRepository = Depends(reports_repo),
):
    return repo.update(report_id, {"status": data.status})


@router.delete("/reports/{report_id}", response_model=Message)
def delete_any_report(report_id: int, repo: ReportRepository = Depends(reports_repo)):
    repo.delete(report_id)
    return {"message": "Report deleted successfully"}


@router.get("/dashboard", response_model=DashboardOverview)
def dashboard_overview(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return audit.overview(session)


@router.get("/login-stats", response_model=LoginStats)
def login_stats(
    principal: Principal = Depends(require_admin),
    session: Session = Depends(get_session),
):
    return audit.LoginAudit(session).stats()
