from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_notifier, get_principal
from inventory_desk.models import ReportStatus
from inventory_desk.schemas import (
    Message,
    MonthCount,
    Page,
    ReportCreate,
    ReportRead,
    ReportSummary,
    ReportUpdate,
)
from inventory_desk.services.notifier import Notifier
from inventory_desk.services.reports import ReportRepository

router = APIRouter(prefix="/api/reports", tags=["reports"])


def report_repo(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ReportRepository:
    return ReportRepository(session, principal, notifier)


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
def create_report(data: ReportCreate, repo: ReportRepository = Depends(report_repo)):
    return repo.create(data.model_dump())


@router.get("", response_model=Page[ReportRead])
def list_reports(
    q: Optional[str] = None,
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: ReportRepository = Depends(report_repo),
):
    return repo.list(owner_id=user_id, q=q, page=page, page_size=page_size, status=report_status)


@router.get("/summary", response_model=ReportSummary)
def report_summary(
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    repo: ReportRepository = Depends(report_repo),
):
    return repo.summary(user_id)


@router.get("/monthly", response_model=list[MonthCount])
def reports_by_month(
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    repo: ReportRepository = Depends(report_repo),
):
    return repo.by_month(user_id)


@router.get("/{report_id}", response_model=ReportRead)
def get_report(report_id: int, repo: ReportRepository = Depends(report_repo)):
    return repo.get(report_id)


@router.put("/{report_id}", response_model=ReportRead)
def update_report(report_id: int, data: ReportUpdate, repo: ReportRepository = Depends(report_repo)):
    return repo.update(report_id, data.model_dump(exclude_unset=True))


@router.delete("/{report_id}", response_model=Message)
def delete_report(report_id: int, repo: ReportRepository = Depends(report_repo)):
    repo.delete(report_id)
    return {"message": "Report deleted successfully"}
