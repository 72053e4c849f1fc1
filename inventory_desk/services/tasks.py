from typing import Any

from sqlalchemy import func
from sqlmodel import select

from inventory_desk.errors import ForbiddenError
from inventory_desk.models import Task, TaskStatus
from inventory_desk.schemas import TaskRead
from inventory_desk.services.repository import Repository, plain


class TaskRepository(Repository[Task]):
    model = Task
    read_schema = TaskRead
    resource = "task"
    label = "Task"
    owner_field = "assigned_to"
    search_fields = ("title", "description")

    def create(self, fields: dict[str, Any]) -> Task:
        return super().create({**fields, "assigned_by": self.principal.user_id})

    def counts(self, user_id: int | None = None) -> dict[str, int]:
        """Task totals per status for one assignee (the caller by default)."""
        user_id = user_id or self.principal.user_id
        if user_id != self.principal.user_id and not self.principal.is_admin:
            raise ForbiddenError("You can only view your own task counts")

        stmt = (
            select(Task.status, func.count())
            .where(Task.assigned_to == user_id)
            .group_by(Task.status)
        )
        counts = {status.value: 0 for status in TaskStatus}
        for status, n in self.session.exec(stmt).all():
            counts[plain(status)] = n
        counts["total"] = sum(counts.values())
        return counts
