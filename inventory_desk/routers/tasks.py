from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from inventory_desk.db import get_session
from inventory_desk.deps import Principal, get_notifier, get_principal
from inventory_desk.models import TaskPriority, TaskStatus
from inventory_desk.schemas import Message, Page, TaskCounts, TaskCreate, TaskRead, TaskUpdate
from inventory_desk.services.notifier import Notifier
from inventory_desk.services.tasks import TaskRepository

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def task_repo(
    principal: Principal = Depends(get_principal),
    session: Session = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> TaskRepository:
    return TaskRepository(session, principal, notifier)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(data: TaskCreate, repo: TaskRepository = Depends(task_repo)):
    return repo.create(data.model_dump())


@router.get("", response_model=Page[TaskRead])
def list_tasks(
    q: Optional[str] = None,
    assigned_to: Optional[int] = Query(None, ge=1, alias="assignedTo"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100, alias="pageSize"),
    repo: TaskRepository = Depends(task_repo),
):
    return repo.list(
        owner_id=assigned_to,
        q=q,
        page=page,
        page_size=page_size,
        status=task_status,
        priority=priority,
    )


@router.get("/counts", response_model=TaskCounts)
def task_counts(
    user_id: Optional[int] = Query(None, ge=1, alias="userId"),
    repo: TaskRepository = Depends(task_repo),
):
    return repo.counts(user_id)


@router.get("/{task_id}", response_model=TaskRead)
def get_task(task_id: int, repo: TaskRepository = Depends(task_repo)):
    return repo.get(task_id)


@router.put("/{task_id}", response_model=TaskRead)
def update_task(task_id: int, data: TaskUpdate, repo: TaskRepository = Depends(task_repo)):
    return repo.update(task_id, data.model_dump(exclude_unset=True))


@router.delete("/{task_id}", response_model=Message)
def delete_task(task_id: int, repo: TaskRepository = Depends(task_repo)):
    repo.delete(task_id)
    return {"message": "Task deleted successfully"}
