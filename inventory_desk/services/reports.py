from datetime import timedelta
from typing import Any

from sqlalchemy import func
from sqlmodel import select

from inventory_desk.errors import ForbiddenError
from inventory_desk.models import Report, ReportStatus, utcnow
from inventory_desk.schemas import ReportRead
from inventory_desk.services.repository import Repository


class ReportRepository(Repository[Report]):
    model = Report
    read_schema = ReportRead
    resource = "report"
    label = "Report"
    search_fields = ("title", "job_description", "location", "remarks", "tools_used")

    def _owner(self, user_id: int | None) -> int:
        user_id = user_id or self.principal.user_id
        if user_id != self.principal.user_id and not self.principal.is_admin:
            raise ForbiddenError("You can only view your own reports")
        return user_id

    def summary(self, user_id: int | None = None) -> dict[str, int]:
        """Report totals for one owner (the caller by default)."""
        user_id = self._owner(user_id)
        stmt = (
            select(Report.status, func.count())
            .where(Report.user_id == user_id)
            .group_by(Report.status)
        )
        by_status = dict(self.session.exec(stmt).all())
        return {
            "total": sum(by_status.values()),
            "completed": by_status.get(ReportStatus.completed, 0),
            "in_progress": by_status.get(ReportStatus.in_progress, 0),
        }

    def by_month(self, user_id: int | None = None) -> list[dict[str, Any]]:
        """Reports per ``YYYY-MM`` of ``report_date`` over the last year."""
        user_id = self._owner(user_id)
        since = (utcnow() - timedelta(days=365)).strftime("%Y-%m-%d")
        month = func.substr(Report.report_date, 1, 7)
        stmt = (
            select(month, func.count())
            .where(Report.user_id == user_id, Report.report_date >= since)
            .group_by(month)
            .order_by(month)
        )
        return [{"month": m, "count": n} for m, n in self.session.exec(stmt).all()]
