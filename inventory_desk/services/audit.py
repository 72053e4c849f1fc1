"""
Login audit trail and the admin overview counters built on it.
"""

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from inventory_desk.models import (
    InventoryItem,
    LoginLog,
    Report,
    Task,
    TaskStatus,
    Tool,
    User,
    utcnow,
)

logger = logging.getLogger(__name__)


def start_of_today():
    return utcnow().replace(hour=0, minute=0, second=0, microsecond=0)


class LoginAudit:
    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        staff_id: str,
        *,
        success: bool,
        user: User | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> LoginLog:
        """Add an attempt to the session; the caller commits."""
        entry = LoginLog(
            user_id=user.id if user else None,
            staff_id=staff_id[:100],
            login_type=user.role.value if user else "unknown",
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
            success=success,
        )
        self.session.add(entry)
        return entry

    def _count(self, *conds) -> int:
        return self.session.exec(select(func.count()).select_from(LoginLog).where(*conds)).one()

    def stats(self, days: int = 7) -> dict[str, Any]:
        today = start_of_today()
        since = today - timedelta(days=days - 1)

        by_type = self.session.exec(
            select(LoginLog.login_type, func.count())
            .where(LoginLog.success.is_(True), LoginLog.created_at >= today)
            .group_by(LoginLog.login_type)
        ).all()

        day = func.date(LoginLog.created_at)
        weekly = self.session.exec(
            select(day, func.count())
            .where(LoginLog.success.is_(True), LoginLog.created_at >= since)
            .group_by(day)
            .order_by(day)
        ).all()

        return {
            "today_logins": self._count(LoginLog.success.is_(True), LoginLog.created_at >= today),
            "today_failed_logins": self._count(LoginLog.success.is_(False), LoginLog.created_at >= today),
            "today_logins_by_type": [{"value": t, "count": n} for t, n in by_type],
            "weekly_logins": [{"date": str(d), "count": n} for d, n in weekly],
        }


def _total(session: Session, model: type[SQLModel], *conds) -> int:
    stmt = select(func.count()).select_from(model)
    if conds:
        stmt = stmt.where(*conds)
    return session.exec(stmt).one()


def overview(session: Session) -> dict[str, Any]:
    """Headline counters for the admin dashboard."""
    return {
        "reports": _total(session, Report),
        "inventory": _total(session, InventoryItem),
        "toolbox": _total(session, Tool),
        "tasks": _total(session, Task),
        "in_progress": _total(session, Task, Task.status == TaskStatus.in_progress),
        "completed": _total(session, Task, Task.status == TaskStatus.completed),
        "total_users": _total(session, User),
        "today_logins": _total(session, LoginLog, LoginLog.success.is_(True), LoginLog.created_at >= start_of_today()),
        "generated_at": utcnow(),
    }
